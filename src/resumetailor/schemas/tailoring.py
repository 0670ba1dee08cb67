"""Tailoring loop schema definitions."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class TailoringMode(str, Enum):
    """How much rewriting latitude the model gets."""

    BASIC = "basic"
    PERSONALIZED = "personalized"
    AGGRESSIVE = "aggressive"


class ChangeConfidence(str, Enum):
    """Rough size of an edit, by changed-word ratio."""

    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"


class SectionDiff(BaseModel):
    """Raw before/after text for one section that changed."""

    model_config = ConfigDict(frozen=True)

    before: str = ""
    after: str = ""

    @property
    def is_addition(self) -> bool:
        return not self.before and bool(self.after)

    @property
    def is_removal(self) -> bool:
        return bool(self.before) and not self.after


# Job Intelligence Models
class SkillCategories(BaseModel):
    """Keywords grouped by kind."""

    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)


class JobIntelligence(BaseModel):
    """Structured facts pulled out of a job description."""

    role: str = ""
    seniority: str = ""
    responsibilities: list[str] = Field(default_factory=list)
    qualifications: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    categories: SkillCategories = Field(default_factory=SkillCategories)

    @field_validator("responsibilities", "qualifications", "keywords", mode="before")
    @classmethod
    def drop_blank_entries(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return [str(item).strip() for item in v if str(item).strip()]


# Evaluator Models
class QualityScore(BaseModel):
    """ATS and JD alignment scores for one candidate."""

    ats_score: int = Field(..., ge=0, le=100)
    jd_score: int = Field(..., ge=0, le=100)
    ats_feedback: str = ""
    jd_feedback: str = ""
    is_fallback: bool = False

    @property
    def combined_score(self) -> int:
        return self.ats_score + self.jd_score


class GoldenRuleResult(BaseModel):
    """Pass/fail against the five golden rules."""

    passed: bool
    feedback: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    is_fallback: bool = False


# Attempt Models
class TailoringAttempt(BaseModel):
    """One iteration of the tailoring loop. Immutable once recorded."""

    model_config = ConfigDict(frozen=True)

    attempt_number: int = Field(..., ge=1)
    ats_score: int = Field(..., ge=0, le=100)
    jd_score: int = Field(..., ge=0, le=100)
    golden_passed: bool
    ats_feedback: str = ""
    jd_feedback: str = ""
    golden_feedback: tuple[str, ...] = ()
    golden_suggestions: tuple[str, ...] = ()
    sections_sent: tuple[str, ...] = ()
    sections_received: tuple[str, ...] = ()
    prompt_chars: int = 0
    prompt_tokens: int = 0

    @computed_field
    @property
    def combined_score(self) -> int:
        return self.ats_score + self.jd_score

    def feedback_text(self) -> list[str]:
        """Every feedback string this attempt produced, golden rules first."""
        items = [*self.golden_feedback, *self.golden_suggestions, self.ats_feedback, self.jd_feedback]
        return [item for item in items if item]


class AttemptHistory:
    """Ordered attempts of one run plus the best one seen so far."""

    def __init__(self):
        self._attempts: list[TailoringAttempt] = []
        self._best: TailoringAttempt | None = None

    def record(self, attempt: TailoringAttempt) -> bool:
        """
        Append an attempt.

        Returns:
            True if the attempt became the new best (strictly higher combined
            score; ties keep the earlier attempt)
        """
        self._attempts.append(attempt)
        if self._best is None or attempt.combined_score > self._best.combined_score:
            self._best = attempt
            return True
        return False

    @property
    def attempts(self) -> tuple[TailoringAttempt, ...]:
        return tuple(self._attempts)

    @property
    def best(self) -> TailoringAttempt | None:
        return self._best

    @property
    def last(self) -> TailoringAttempt | None:
        return self._attempts[-1] if self._attempts else None

    def __len__(self) -> int:
        return len(self._attempts)


class SectionModification(BaseModel):
    """One merged change to a section: which attempt made it and why."""

    model_config = ConfigDict(frozen=True)

    section: str
    attempt_number: int = Field(..., ge=1)
    reason: str
    confidence: ChangeConfidence


class TailoringOutcome(BaseModel):
    """Result of one completed orchestrator run."""

    final_text: str
    best_attempt: TailoringAttempt
    attempts: list[TailoringAttempt] = Field(default_factory=list)
    golden_passed: bool = False
    modified_sections: list[str] = Field(default_factory=list)
    # Every merged section change, in the order the attempts made them
    section_history: list[SectionModification] = Field(default_factory=list)
    version: int = 1
    mode: TailoringMode = TailoringMode.PERSONALIZED
    warnings: list[str] = Field(default_factory=list)


class TailoringRequest(BaseModel):
    """Everything one orchestrator run needs."""

    job_id: str
    owner_id: str
    resume_text: str
    job_description: str
    mode: TailoringMode = TailoringMode.PERSONALIZED
    version: int = Field(default=1, ge=1)
    run_id: str = ""

    @property
    def attempt_log_id(self) -> str:
        """Attempt-log key; each run of a job gets its own log."""
        return f"{self.job_id}-{self.run_id}" if self.run_id else self.job_id
