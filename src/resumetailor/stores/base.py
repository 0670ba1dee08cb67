"""Storage interfaces the tailoring pipeline depends on."""

from abc import ABC, abstractmethod

from resumetailor.schemas.records import ProgressRecord, ResumeRecord, ResumeUpdate
from resumetailor.schemas.tailoring import TailoringAttempt


class ResumeStore(ABC):
    """Resumes and their latest tailoring result, scoped by owner."""

    @abstractmethod
    def get(self, resume_id: str, owner_id: str) -> ResumeRecord | None:
        """Return the resume, or None if missing or owned by someone else."""
        pass

    @abstractmethod
    def update(self, resume_id: str, owner_id: str, update: ResumeUpdate) -> ResumeRecord:
        """
        Write a tailoring result onto a resume.

        Raises:
            NotFoundError: If the resume is missing or owned by someone else
        """
        pass


class AttemptStore(ABC):
    """Write-once log of tailoring attempts per job."""

    @abstractmethod
    def append(self, job_id: str, attempt: TailoringAttempt) -> None:
        """
        Record an attempt.

        Raises:
            ValueError: If an attempt with the same number already exists
        """
        pass

    @abstractmethod
    def list_attempts(self, job_id: str) -> list[TailoringAttempt]:
        """Attempts for a job ordered by attempt number."""
        pass


class ProgressStore(ABC):
    """Progress records keyed by (job_id, owner_id). Last write wins."""

    @abstractmethod
    def get_progress(self, job_id: str, owner_id: str) -> ProgressRecord | None:
        pass

    @abstractmethod
    def upsert_progress(self, record: ProgressRecord) -> None:
        pass
