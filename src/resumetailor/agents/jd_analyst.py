"""Job description analysis."""

import re

from resumetailor.agents.base import BaseAgent
from resumetailor.schemas.tailoring import JobIntelligence, SkillCategories

JD_ANALYSIS_TEMPERATURE = 0.2
MAX_JD_CHARS = 6000

_ROLE_PATTERN = re.compile(r"(?:hiring|seeking|looking for|for)(?:\s+an?)?\s+([^.,:;\n]+)", re.IGNORECASE)
_SENIOR_PATTERN = re.compile(r"\b(?:senior|sr\.?|lead|principal|staff|architect|head of)\b", re.IGNORECASE)
_JUNIOR_PATTERN = re.compile(r"\b(?:junior|jr\.?|entry[- ]level|graduate|intern(?:ship)?)\b", re.IGNORECASE)

TECH_KEYWORDS = [
    "python", "java", "javascript", "typescript", "go", "golang", "rust", "c\\+\\+", "c#", "ruby",
    "react", "node", "django", "flask", "fastapi", "spring", "sql", "postgresql", "mysql", "mongodb",
    "redis", "kafka", "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "linux",
    "microservices", "distributed systems", "machine learning", "data", "analytics", "devops",
    "ci/cd", "cloud", "frontend", "backend", "full-stack", "testing", "ui", "ux",
]
PROCESS_KEYWORDS = ["agile", "scrum", "kanban"]
SOFT_SKILLS = ["communication", "leadership", "collaboration", "mentoring", "teamwork", "problem solving"]

_KEYWORD_PATTERN = re.compile(
    r"(?<![\w+#])(" + "|".join(TECH_KEYWORDS + PROCESS_KEYWORDS) + r")(?![\w+#])",
    re.IGNORECASE,
)
_SOFT_PATTERN = re.compile(r"\b(" + "|".join(SOFT_SKILLS) + r")\b", re.IGNORECASE)


def _unique_lower(matches) -> list[str]:
    seen: dict[str, None] = {}
    for match in matches:
        seen.setdefault(match.lower(), None)
    return list(seen)


def fallback_analysis(job_description: str) -> JobIntelligence:
    """
    Regex heuristic used when the model analysis is unavailable.

    Args:
        job_description: Job description text

    Returns:
        JobIntelligence with role, seniority and keywords filled where found
    """
    text = job_description or ""
    role_match = _ROLE_PATTERN.search(text[:200])
    if role_match:
        role = role_match.group(1).strip()
    else:
        first_line = next((line.strip() for line in text.split("\n") if line.strip()), "")
        role = first_line.split(",")[0][:80]

    if _SENIOR_PATTERN.search(text):
        seniority = "Senior"
    elif _JUNIOR_PATTERN.search(text):
        seniority = "Junior"
    else:
        seniority = "Mid-level"

    keywords = _unique_lower(_KEYWORD_PATTERN.findall(text))
    return JobIntelligence(
        role=role,
        seniority=seniority,
        keywords=keywords,
        categories=SkillCategories(
            technical=[k for k in keywords if k not in PROCESS_KEYWORDS],
            soft=_unique_lower(_SOFT_PATTERN.findall(text)),
        ),
    )


class JDAnalyst(BaseAgent[JobIntelligence]):
    """Extracts role, seniority, requirements and keywords from a job description."""

    def __init__(self, gateway, model: str | None = None, temperature: float = JD_ANALYSIS_TEMPERATURE):
        super().__init__(gateway, model, temperature)

    def build_prompt(self, job_description: str) -> str:
        return f"""Analyze this job description and extract structured information.

JOB DESCRIPTION:
{job_description[:MAX_JD_CHARS]}

Respond with JSON only:
{{
  "role": "<job title>",
  "seniority": "<Junior|Mid-level|Senior|Lead|Executive>",
  "responsibilities": ["<key responsibility>", "..."],
  "qualifications": ["<required qualification>", "..."],
  "keywords": ["<ATS keyword>", "..."],
  "categories": {{"technical": ["..."], "soft": ["..."], "certifications": ["..."]}}
}}"""

    def parse_response(self, data: dict) -> JobIntelligence:
        intelligence = JobIntelligence.model_validate(data)
        if not intelligence.role and not intelligence.keywords:
            raise ValueError("JD analysis returned neither a role nor keywords")
        return intelligence

    def fallback(self, reason: str, job_description: str = "") -> JobIntelligence:
        return fallback_analysis(job_description)

    def analyze(self, job_description: str) -> JobIntelligence:
        """Analyze a job description; falls back to the regex heuristic on failure."""
        intelligence = self.run(job_description)
        self.logger.info(
            "jd_analyzed",
            role=intelligence.role,
            seniority=intelligence.seniority,
            keyword_count=len(intelligence.keywords),
        )
        return intelligence
