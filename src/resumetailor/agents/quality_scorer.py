"""ATS and job-description alignment scoring."""

import math

from resumetailor.agents.base import BaseAgent
from resumetailor.schemas.tailoring import QualityScore

# Constants
SCORING_TEMPERATURE = 0.1  # Low temperature for consistent scoring
MAX_RESUME_CHARS = 2000
MAX_JD_CHARS = 1000
FALLBACK_SCORE = 50


def clamp_score(value) -> int:
    """
    Coerce a model-provided score into an int in [0, 100].

    Raises:
        ValueError: If the value is not a finite number (NaN and infinity
            included)
    """
    score = float(value)
    if not math.isfinite(score):
        raise ValueError(f"Score is not a finite number: {value!r}")
    return max(0, min(100, round(score)))


class QualityScorer(BaseAgent[QualityScore]):
    """Scores a candidate resume for ATS compatibility and JD alignment."""

    def __init__(self, gateway, model: str | None = None, temperature: float = SCORING_TEMPERATURE):
        super().__init__(gateway, model, temperature)

    def build_prompt(self, original_text: str, candidate_text: str, job_description: str) -> str:
        return f"""You are an ATS (Applicant Tracking System) expert and recruiter. Score the tailored resume below.

ORIGINAL RESUME:
{original_text[:MAX_RESUME_CHARS]}

TAILORED RESUME:
{candidate_text[:MAX_RESUME_CHARS]}

JOB DESCRIPTION:
{job_description[:MAX_JD_CHARS]}

Provide two scores from 0 to 100:
1. ats_score: how well the tailored resume would parse and rank in an ATS (structure, standard headings, keyword coverage, plain formatting).
2. jd_score: how closely the tailored resume matches the job description's requirements, skills and responsibilities.

Respond with JSON only, in exactly this shape:
{{"ats_score": <0-100>, "jd_score": <0-100>, "ats_feedback": "<one or two sentences>", "jd_feedback": "<one or two sentences>"}}"""

    def parse_response(self, data: dict) -> QualityScore:
        return QualityScore(
            ats_score=clamp_score(data["ats_score"]),
            jd_score=clamp_score(data["jd_score"]),
            ats_feedback=str(data.get("ats_feedback") or "").strip(),
            jd_feedback=str(data.get("jd_feedback") or "").strip(),
        )

    def fallback(self, reason: str, *args) -> QualityScore:
        return QualityScore(
            ats_score=FALLBACK_SCORE,
            jd_score=FALLBACK_SCORE,
            ats_feedback="Unable to generate detailed ATS feedback; score is a neutral estimate.",
            jd_feedback="Unable to generate detailed job-match feedback; score is a neutral estimate.",
            is_fallback=True,
        )

    def score(self, original_text: str, candidate_text: str, job_description: str) -> QualityScore:
        """Score a candidate. Never raises; degrades to neutral 50/50 scores."""
        result = self.run(original_text, candidate_text, job_description)
        self.logger.info(
            "quality_scored",
            ats_score=result.ats_score,
            jd_score=result.jd_score,
            is_fallback=result.is_fallback,
        )
        return result
