"""Prompt compilation for full and section-targeted tailoring requests."""

import re
from typing import Iterable

from pydantic import BaseModel

from resumetailor.schemas.tailoring import JobIntelligence, TailoringMode

MAX_PRIOR_FEEDBACK = 3
MAX_REFINEMENT_KEYWORDS = 5


class TailoringModeConfig(BaseModel):
    """Instruction block and sampling temperature for one tailoring mode."""

    name: str
    description: str
    temperature: float
    instructions: str
    additional_guidance: str


TAILORING_MODES: dict[TailoringMode, TailoringModeConfig] = {
    TailoringMode.BASIC: TailoringModeConfig(
        name="Basic",
        description="Light optimization with minimal changes",
        temperature=0.3,
        instructions=(
            "- Fix grammar, structure and formatting only where needed.\n"
            "- Keep the original content and tone.\n"
            "- Mirror job description keywords without restructuring the resume.\n"
            "- Keep every section and its formatting.\n"
            "- Change only what improves ATS compatibility.\n"
            "- Never add experience or qualifications the candidate does not have."
        ),
        additional_guidance=(
            "Act as an editor, not a rewriter. Small, safe improvements to "
            "readability and ATS compatibility beat sweeping changes."
        ),
    ),
    TailoringMode.PERSONALIZED: TailoringModeConfig(
        name="Personalized",
        description="Stronger alignment that keeps the candidate's voice",
        temperature=0.5,
        instructions=(
            "- Keep the candidate's tone and career story.\n"
            "- Improve clarity and flow, and align with the job.\n"
            "- Do not sand away personality.\n"
            "- Bring forward the experience most relevant to the role.\n"
            "- Restructure only where it clearly improves alignment.\n"
            "- Every change must stay true to the candidate's background."
        ),
        additional_guidance=(
            "Work like a career coach: help the candidate tell their own story "
            "better while optimizing for this role."
        ),
    ),
    TailoringMode.AGGRESSIVE: TailoringModeConfig(
        name="Aggressive",
        description="Maximum alignment with the job requirements",
        temperature=0.7,
        instructions=(
            "- Rewrite boldly for maximum alignment with the job description.\n"
            "- Restructure content to lead with the most relevant experience.\n"
            "- Prioritize keyword coverage and ATS-friendly formatting.\n"
            "- Cut filler and passive phrasing; use strong active verbs.\n"
            "- Make every bullet show value for the target role.\n"
            "- Stay truthful: sharpen real experience, never invent it."
        ),
        additional_guidance=(
            "Think like a strategic advisor preparing the candidate for a highly "
            "competitive role. Effectiveness outranks the original structure."
        ),
    ),
}

OUTPUT_FORMAT_RULES = (
    "- Return ONLY the tailored resume text. No introduction, explanation or closing remarks.\n"
    "- Keep the section order and section headings of the original resume.\n"
    "- Do not add tags or markers such as [MODIFIED], [UPDATED] or [SECTION: X].\n"
    "- Do not describe what you changed.\n"
    "- Use plain text with simple '-' bullets; no tables, columns or markdown headings."
)

REFINEMENT_FORMAT_RULES = (
    "- Return ONLY the sections listed above, each starting with its delimiter line: ### SECTION NAME ###\n"
    "- Use the exact section names given; do not rename, merge or add sections.\n"
    "- No commentary, explanations, tags or meta-markers before, between or after sections.\n"
    "- Do not include the section name again inside the section body."
)


def get_mode_config(mode: TailoringMode | str) -> TailoringModeConfig:
    """Mode configuration; unknown modes fall back to personalized."""
    try:
        return TAILORING_MODES[TailoringMode(mode)]
    except ValueError:
        return TAILORING_MODES[TailoringMode.PERSONALIZED]


def get_temperature_for_mode(mode: TailoringMode | str) -> float:
    return get_mode_config(mode).temperature


def _format_intelligence(intelligence: JobIntelligence, keyword_limit: int | None = None) -> str:
    keywords = intelligence.keywords[:keyword_limit] if keyword_limit else intelligence.keywords
    lines = [
        f"Role: {intelligence.role or 'Not specified'}",
        f"Seniority: {intelligence.seniority or 'Not specified'}",
        f"Key Keywords: {', '.join(keywords) if keywords else 'None identified'}",
    ]
    if intelligence.responsibilities:
        lines.append("Key Responsibilities:")
        lines.extend(f"- {item}" for item in intelligence.responsibilities)
    if intelligence.qualifications:
        lines.append("Key Qualifications:")
        lines.extend(f"- {item}" for item in intelligence.qualifications)
    return "\n".join(lines)


def compile_full_prompt(
    resume_text: str,
    job_description: str,
    mode: TailoringMode | str = TailoringMode.PERSONALIZED,
    intelligence: JobIntelligence | None = None,
    prior_feedback: Iterable[str] = (),
    version: int = 1,
) -> str:
    """
    Build the first-pass request that rewrites the whole resume.

    The output is a pure function of its arguments, which is what lets the
    gateway cache first-pass completions.

    Args:
        resume_text: Full resume text
        job_description: Target job description
        mode: Tailoring mode
        intelligence: Extracted job facts, if available
        prior_feedback: Evaluator feedback, oldest first; the last three are used
        version: Resume version being produced

    Returns:
        Prompt text
    """
    config = get_mode_config(mode)
    parts = [
        "You are an expert resume writer who tailors resumes to specific job openings.",
        "TASK:\nRewrite the resume below so it matches the job description more closely.",
        f"TAILORING MODE: {config.name} ({config.description})",
        f"TAILORING INSTRUCTIONS:\n{config.instructions}",
    ]

    if intelligence is not None:
        parts.append(
            "JOB INTELLIGENCE:\n"
            f"{_format_intelligence(intelligence)}\n"
            "Use this intelligence to guide your tailoring."
        )

    if version > 1:
        parts.append(
            f"VERSION CONTEXT:\nThis is version {version} of the resume. "
            "Refine and improve on the previous version rather than starting over."
        )

    recent = [item.strip() for item in prior_feedback if item and item.strip()][-MAX_PRIOR_FEEDBACK:]
    if recent:
        bullets = "\n".join(f"- {item}" for item in recent)
        parts.append(f"PREVIOUS FEEDBACK TO ADDRESS:\n{bullets}")

    parts.extend([
        f"OUTPUT FORMAT REQUIREMENTS:\n{OUTPUT_FORMAT_RULES}",
        f"ADDITIONAL GUIDANCE:\n{config.additional_guidance}",
        f"RESUME:\n{resume_text}",
        f"JOB DESCRIPTION:\n{job_description}",
        "Return only the complete tailored resume.",
    ])
    return "\n\n".join(parts)


def compile_refinement_prompt(
    sections_to_refine: dict[str, str],
    feedback: Iterable[str],
    job_description: str,
    mode: TailoringMode | str = TailoringMode.PERSONALIZED,
    intelligence: JobIntelligence | None = None,
    version: int = 1,
    golden_rule_feedback: Iterable[str] = (),
) -> str:
    """
    Build a request limited to specific sections.

    Each section is sent and must come back as a ``### NAME ###`` block; that
    delimiter is what ``parse_delimited_sections`` reads on the way back.

    Args:
        sections_to_refine: Section name -> current body
        feedback: Scorer feedback to address
        job_description: Target job description
        mode: Tailoring mode
        intelligence: Extracted job facts, if available
        version: Resume version being produced
        golden_rule_feedback: Golden-rule violations and suggestions

    Returns:
        Prompt text
    """
    config = get_mode_config(mode)
    names = list(sections_to_refine)
    section_blocks = "\n\n".join(f"### {name} ###\n{body.strip()}" for name, body in sections_to_refine.items())

    parts = [
        "You are an expert resume writer refining specific sections of a tailored resume.",
        f"TAILORING MODE: {config.name} ({config.description})",
        f"TAILORING INSTRUCTIONS:\n{config.instructions}",
        f"SECTIONS TO REFINE ({', '.join(names)}):\n{section_blocks}",
    ]

    feedback_items = [item.strip() for item in feedback if item and item.strip()]
    if feedback_items:
        parts.append("FEEDBACK TO ADDRESS:\n" + "\n".join(f"- {item}" for item in feedback_items))

    golden_items = [item.strip() for item in golden_rule_feedback if item and item.strip()]
    if golden_items:
        parts.append(
            "GOLDEN RULE FEEDBACK (authenticity, readability, relevance, specificity, consistency):\n"
            + "\n".join(f"- {item}" for item in golden_items)
        )

    if intelligence is not None:
        parts.append(f"JOB INTELLIGENCE:\n{_format_intelligence(intelligence, MAX_REFINEMENT_KEYWORDS)}")

    if version > 1:
        parts.append(f"VERSION CONTEXT:\nThis refines version {version} of the resume.")

    example = "\n\n".join(f"### {name} ###\n<refined {name.lower()} content>" for name in names[:2])
    parts.extend([
        f"JOB DESCRIPTION:\n{job_description}",
        f"OUTPUT FORMAT:\n{REFINEMENT_FORMAT_RULES}\n\nExample:\n{example}",
    ])
    return "\n\n".join(parts)


_FEEDBACK_SPLIT = re.compile(r"(?:^|\n)\s*(?:[•*\-]|\d+[.)])\s+|\n+")


def extract_feedback_points(text: str) -> list[str]:
    """Split evaluator prose into individual points (bullets, numbered items, lines)."""
    if not text:
        return []
    points = [p.strip() for p in _FEEDBACK_SPLIT.split(text)]
    return [p for p in points if len(p) > 3]
