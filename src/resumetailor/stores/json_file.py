"""JSON-file stores for local CLI use."""

import json
import re
import threading
from pathlib import Path

import structlog

from resumetailor.exceptions import NotFoundError
from resumetailor.schemas.records import ProgressRecord, ResumeRecord, ResumeUpdate
from resumetailor.schemas.tailoring import TailoringAttempt
from resumetailor.stores.base import AttemptStore, ProgressStore, ResumeStore

logger = structlog.get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _safe_name(value: str) -> str:
    return _UNSAFE_CHARS.sub("_", value)


class JsonFileStore(ResumeStore, AttemptStore, ProgressStore):
    """
    Stores records as JSON files under one directory:

    - ``resumes/{resume_id}.json``
    - ``attempts/{job_id}.json`` (list, ordered by attempt number)
    - ``progress/{owner_id}--{job_id}.json``

    Writes go to a temp file that is renamed into place, so a concurrent
    reader sees either the old record or the new one.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root)
        for sub in ("resumes", "attempts", "progress"):
            (self.root / sub).mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self.logger = logger.bind(store="JsonFileStore", root=str(self.root))

    def _write(self, path: Path, payload) -> None:
        tmp_path = path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, default=str)
        tmp_path.replace(path)

    def _read(self, path: Path):
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    # Resumes -----------------------------------------------------------

    def _resume_path(self, resume_id: str) -> Path:
        return self.root / "resumes" / f"{_safe_name(resume_id)}.json"

    def add_resume(self, record: ResumeRecord) -> None:
        with self._lock:
            self._write(self._resume_path(record.resume_id), record.model_dump(mode="json"))

    def get(self, resume_id: str, owner_id: str) -> ResumeRecord | None:
        data = self._read(self._resume_path(resume_id))
        if data is None:
            return None
        record = ResumeRecord.model_validate(data)
        return record if record.owner_id == owner_id else None

    def update(self, resume_id: str, owner_id: str, update: ResumeUpdate) -> ResumeRecord:
        with self._lock:
            record = self.get(resume_id, owner_id)
            if record is None:
                raise NotFoundError(f"Resume {resume_id} not found")
            updated = record.model_copy(update=update.model_dump())
            self._write(self._resume_path(resume_id), updated.model_dump(mode="json"))
        self.logger.info("resume_updated", resume_id=resume_id, version=update.version)
        return updated

    # Attempts ----------------------------------------------------------

    def _attempts_path(self, job_id: str) -> Path:
        return self.root / "attempts" / f"{_safe_name(job_id)}.json"

    def append(self, job_id: str, attempt: TailoringAttempt) -> None:
        with self._lock:
            attempts = self.list_attempts(job_id)
            if any(a.attempt_number == attempt.attempt_number for a in attempts):
                raise ValueError(f"Attempt {attempt.attempt_number} already recorded for {job_id}")
            attempts.append(attempt)
            attempts.sort(key=lambda a: a.attempt_number)
            self._write(self._attempts_path(job_id), [a.model_dump(mode="json") for a in attempts])

    def list_attempts(self, job_id: str) -> list[TailoringAttempt]:
        data = self._read(self._attempts_path(job_id)) or []
        return [TailoringAttempt.model_validate(item) for item in data]

    # Progress ----------------------------------------------------------

    def _progress_path(self, job_id: str, owner_id: str) -> Path:
        return self.root / "progress" / f"{_safe_name(owner_id)}--{_safe_name(job_id)}.json"

    def get_progress(self, job_id: str, owner_id: str) -> ProgressRecord | None:
        data = self._read(self._progress_path(job_id, owner_id))
        return ProgressRecord.model_validate(data) if data is not None else None

    def upsert_progress(self, record: ProgressRecord) -> None:
        with self._lock:
            self._write(self._progress_path(record.job_id, record.owner_id), record.model_dump(mode="json"))
