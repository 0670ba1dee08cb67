"""Pydantic schemas for ResumeTailor data models."""

from resumetailor.schemas.records import (
    ProgressRecord,
    ResumeRecord,
    ResumeUpdate,
    StartResult,
    TailoringStatus,
    TERMINAL_STATUSES,
)
from resumetailor.schemas.tailoring import (
    AttemptHistory,
    ChangeConfidence,
    GoldenRuleResult,
    JobIntelligence,
    QualityScore,
    SectionDiff,
    SectionModification,
    SkillCategories,
    TailoringAttempt,
    TailoringMode,
    TailoringOutcome,
    TailoringRequest,
)

__all__ = [
    # Tailoring models
    "TailoringMode",
    "TailoringAttempt",
    "AttemptHistory",
    "TailoringOutcome",
    "TailoringRequest",
    "SectionDiff",
    "SectionModification",
    "ChangeConfidence",
    "JobIntelligence",
    "SkillCategories",
    "QualityScore",
    "GoldenRuleResult",
    # Records
    "ProgressRecord",
    "ResumeRecord",
    "ResumeUpdate",
    "StartResult",
    "TailoringStatus",
    "TERMINAL_STATUSES",
]
