"""Golden-rule quality gate."""

from resumetailor.agents.base import BaseAgent
from resumetailor.schemas.tailoring import GoldenRuleResult

GOLDEN_RULES_TEMPERATURE = 0.2
MAX_RESUME_CHARS = 4000
MAX_JD_CHARS = 2000

GOLDEN_RULES = {
    "AUTHENTICITY": "Every claim is plausible for this candidate; nothing is invented or inflated.",
    "READABILITY": "Clear, concise language with scannable bullets and no walls of text.",
    "RELEVANCE": "Content emphasizes what matters for this specific job.",
    "SPECIFICITY": "Achievements are concrete, with numbers, scope or outcomes where possible.",
    "CONSISTENCY": "Tense, formatting, dates and terminology are consistent throughout.",
}

FALLBACK_FEEDBACK = "Error evaluating golden rules"
FALLBACK_SUGGESTION = "Please try again"


def _as_string_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    return [str(item).strip() for item in value if str(item).strip()]


class GoldenRuleChecker(BaseAgent[GoldenRuleResult]):
    """Checks a resume against the five golden rules."""

    def __init__(self, gateway, model: str | None = None, temperature: float = GOLDEN_RULES_TEMPERATURE):
        super().__init__(gateway, model, temperature)

    def build_prompt(self, candidate_text: str, job_description: str) -> str:
        rules = "\n".join(f"{i}. {name}: {text}" for i, (name, text) in enumerate(GOLDEN_RULES.items(), 1))
        return f"""You are a senior resume reviewer. Check the resume against these golden rules:

{rules}

RESUME:
{candidate_text[:MAX_RESUME_CHARS]}

JOB DESCRIPTION:
{job_description[:MAX_JD_CHARS]}

The resume passes only if it satisfies all five rules. For each violated rule, add one feedback item
that starts with the rule name and names the resume section it concerns (e.g. "SPECIFICITY: EXPERIENCE bullets lack metrics").

Respond with JSON only:
{{"passed": true|false, "feedback": ["..."], "suggestions": ["..."]}}"""

    def parse_response(self, data: dict) -> GoldenRuleResult:
        passed = data["passed"]
        if isinstance(passed, str):
            passed = passed.strip().lower() == "true"
        return GoldenRuleResult(
            passed=bool(passed),
            feedback=_as_string_list(data.get("feedback")),
            suggestions=_as_string_list(data.get("suggestions")),
        )

    def fallback(self, reason: str, *args) -> GoldenRuleResult:
        return GoldenRuleResult(
            passed=False,
            feedback=[FALLBACK_FEEDBACK],
            suggestions=[FALLBACK_SUGGESTION],
            is_fallback=True,
        )

    def check(self, candidate_text: str, job_description: str) -> GoldenRuleResult:
        """Evaluate the rules. Failures come back as passed=False, never as success."""
        result = self.run(candidate_text, job_description)
        self.logger.info(
            "golden_rules_checked",
            passed=result.passed,
            feedback_count=len(result.feedback),
            is_fallback=result.is_fallback,
        )
        return result
