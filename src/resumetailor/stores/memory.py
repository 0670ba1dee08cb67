"""Thread-safe in-process stores."""

import threading

from resumetailor.exceptions import NotFoundError
from resumetailor.schemas.records import ProgressRecord, ResumeRecord, ResumeUpdate
from resumetailor.schemas.tailoring import TailoringAttempt
from resumetailor.stores.base import AttemptStore, ProgressStore, ResumeStore


class InMemoryStore(ResumeStore, AttemptStore, ProgressStore):
    """All three stores over plain dicts guarded by one lock."""

    def __init__(self):
        self._lock = threading.Lock()
        self._resumes: dict[str, ResumeRecord] = {}
        self._attempts: dict[str, list[TailoringAttempt]] = {}
        self._progress: dict[tuple[str, str], ProgressRecord] = {}

    # Resumes -----------------------------------------------------------

    def add_resume(self, record: ResumeRecord) -> None:
        with self._lock:
            self._resumes[record.resume_id] = record

    def get(self, resume_id: str, owner_id: str) -> ResumeRecord | None:
        with self._lock:
            record = self._resumes.get(resume_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record

    def update(self, resume_id: str, owner_id: str, update: ResumeUpdate) -> ResumeRecord:
        with self._lock:
            record = self._resumes.get(resume_id)
            if record is None or record.owner_id != owner_id:
                raise NotFoundError(f"Resume {resume_id} not found")
            updated = record.model_copy(update=update.model_dump())
            self._resumes[resume_id] = updated
            return updated

    # Attempts ----------------------------------------------------------

    def append(self, job_id: str, attempt: TailoringAttempt) -> None:
        with self._lock:
            attempts = self._attempts.setdefault(job_id, [])
            if any(a.attempt_number == attempt.attempt_number for a in attempts):
                raise ValueError(f"Attempt {attempt.attempt_number} already recorded for {job_id}")
            attempts.append(attempt)
            attempts.sort(key=lambda a: a.attempt_number)

    def list_attempts(self, job_id: str) -> list[TailoringAttempt]:
        with self._lock:
            return list(self._attempts.get(job_id, []))

    # Progress ----------------------------------------------------------

    def get_progress(self, job_id: str, owner_id: str) -> ProgressRecord | None:
        with self._lock:
            return self._progress.get((job_id, owner_id))

    def upsert_progress(self, record: ProgressRecord) -> None:
        with self._lock:
            self._progress[(record.job_id, record.owner_id)] = record
