"""Progress tracking for long-running tailoring jobs."""

import structlog

from resumetailor.schemas.records import ProgressRecord, TailoringStatus, utcnow
from resumetailor.stores.base import ProgressStore

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

# Percent complete on entering each fixed status
STATUS_PROGRESS = {
    TailoringStatus.NOT_STARTED: 0,
    TailoringStatus.STARTED: 5,
    TailoringStatus.ANALYZING: 10,
    TailoringStatus.ANALYZING_JD: 15,
    TailoringStatus.PROCESSING: 80,
    TailoringStatus.COMPLETED: 100,
    TailoringStatus.ERROR: 0,
}

# attempt_k / scoring_k share the band between analyzing_jd and processing
ATTEMPT_BAND_START = 20
ATTEMPT_BAND_WIDTH = 50


def attempt_status(attempt_number: int) -> str:
    return f"attempt_{attempt_number}"


def scoring_status(attempt_number: int) -> str:
    return f"scoring_{attempt_number}"


def attempt_progress(attempt_number: int, max_attempts: int) -> int:
    """Percent on starting attempt k: 20, 37, 53 for three attempts."""
    return round(ATTEMPT_BAND_START + (attempt_number - 1) / max_attempts * ATTEMPT_BAND_WIDTH)


def scoring_progress(attempt_number: int, max_attempts: int) -> int:
    """Percent on scoring attempt k: always between attempt_k and attempt_{k+1}."""
    return round(ATTEMPT_BAND_START + (attempt_number - 0.5) / max_attempts * ATTEMPT_BAND_WIDTH)


class ProgressTracker:
    """
    Start, update and read progress records.

    The tracker does not enforce that progress only moves forward; the job
    that owns a record is responsible for that (except when entering
    ``error``, which resets progress to 0).
    """

    def __init__(self, store: ProgressStore):
        self.store = store

    def start(self, job_id: str, owner_id: str, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> ProgressRecord:
        """Create or reset a record to ``started`` at 5%."""
        record = ProgressRecord(
            job_id=job_id,
            owner_id=owner_id,
            status=TailoringStatus.STARTED.value,
            progress=STATUS_PROGRESS[TailoringStatus.STARTED],
            current_attempt=0,
            max_attempts=max_attempts,
        )
        self.store.upsert_progress(record)
        logger.info("progress_started", job_id=job_id, max_attempts=max_attempts)
        return record

    def update(
        self,
        job_id: str,
        owner_id: str,
        status: TailoringStatus | str,
        progress: int,
        current_attempt: int | None = None,
    ) -> ProgressRecord:
        """
        Upsert a record: create it if absent, otherwise overwrite status,
        progress and timestamp (and current_attempt when given).
        """
        status_value = status.value if isinstance(status, TailoringStatus) else status
        existing = self.store.get_progress(job_id, owner_id)
        if existing is None:
            record = ProgressRecord(
                job_id=job_id,
                owner_id=owner_id,
                status=status_value,
                progress=progress,
                current_attempt=current_attempt,
            )
        else:
            changes = {"status": status_value, "progress": progress, "updated_at": utcnow()}
            if current_attempt is not None:
                changes["current_attempt"] = current_attempt
            record = existing.model_copy(update=changes)
        self.store.upsert_progress(record)
        logger.debug("progress_updated", job_id=job_id, status=status_value, progress=progress)
        return record

    def enter(
        self,
        job_id: str,
        owner_id: str,
        status: TailoringStatus,
        current_attempt: int | None = None,
    ) -> ProgressRecord:
        """Update to a fixed status at its scheduled percent."""
        return self.update(job_id, owner_id, status, STATUS_PROGRESS[status], current_attempt)

    def complete(self, job_id: str, owner_id: str) -> ProgressRecord:
        return self.enter(job_id, owner_id, TailoringStatus.COMPLETED)

    def fail(self, job_id: str, owner_id: str) -> ProgressRecord:
        return self.enter(job_id, owner_id, TailoringStatus.ERROR)

    def read(self, job_id: str, owner_id: str) -> ProgressRecord:
        """Current record, or a ``not_started`` record at 0% if none exists."""
        record = self.store.get_progress(job_id, owner_id)
        if record is None:
            return ProgressRecord(job_id=job_id, owner_id=owner_id)
        return record
