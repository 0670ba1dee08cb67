"""Persisted record schemas (resumes, progress)."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from resumetailor.schemas.tailoring import TailoringMode


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TailoringStatus(str, Enum):
    """Fixed progress statuses. Per-attempt statuses are ``attempt_{k}`` / ``scoring_{k}``."""

    NOT_STARTED = "not_started"
    STARTED = "started"
    ANALYZING = "analyzing"
    ANALYZING_JD = "analyzing_jd"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STATUSES = frozenset({TailoringStatus.COMPLETED.value, TailoringStatus.ERROR.value})


class ProgressRecord(BaseModel):
    """Where a tailoring job is, keyed by (job_id, owner_id)."""

    job_id: str
    owner_id: str
    status: str = TailoringStatus.NOT_STARTED.value
    progress: int = Field(default=0, ge=0, le=100)
    current_attempt: int | None = None
    max_attempts: int | None = None
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class ResumeRecord(BaseModel):
    """A stored resume plus the latest tailoring result."""

    resume_id: str
    owner_id: str
    resume_text: str
    job_description: str
    tailoring_mode: TailoringMode = TailoringMode.PERSONALIZED
    version: int = Field(default=0, ge=0)
    modified_resume: str | None = None
    ats_score: int | None = None
    jd_score: int | None = None
    golden_passed: bool | None = None
    modified_sections: list[str] = Field(default_factory=list)


class ResumeUpdate(BaseModel):
    """Fields written back after a tailoring run."""

    modified_resume: str
    ats_score: int = Field(..., ge=0, le=100)
    jd_score: int = Field(..., ge=0, le=100)
    version: int = Field(..., ge=1)
    tailoring_mode: TailoringMode
    golden_passed: bool
    modified_sections: list[str] = Field(default_factory=list)


class StartResult(BaseModel):
    """Synchronous answer to a start-tailoring request."""

    success: bool
    job_id: str | None = None
    run_id: str | None = None
    error: str | None = None
