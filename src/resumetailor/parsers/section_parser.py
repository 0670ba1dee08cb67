"""Split resume text into named sections."""

import re
from typing import Iterable

import structlog

from resumetailor.utils.cleaning import clean_section_content

logger = structlog.get_logger(__name__)

HEADER_SECTION = "HEADER"

# Recognized heading lines. Matching is case-insensitive on the trimmed line.
SECTION_HEADINGS = [
    "SUMMARY",
    "PROFESSIONAL SUMMARY",
    "CAREER SUMMARY",
    "PROFILE",
    "PROFESSIONAL PROFILE",
    "OBJECTIVE",
    "CAREER OBJECTIVE",
    "EXPERIENCE",
    "WORK EXPERIENCE",
    "PROFESSIONAL EXPERIENCE",
    "RELEVANT EXPERIENCE",
    "EMPLOYMENT HISTORY",
    "EDUCATION",
    "SKILLS",
    "TECHNICAL SKILLS",
    "CORE COMPETENCIES",
    "CERTIFICATIONS",
    "LICENSES AND CERTIFICATIONS",
    "PROJECTS",
    "ACHIEVEMENTS",
    "AWARDS",
    "LANGUAGES",
    "INTERESTS",
    "VOLUNTEER EXPERIENCE",
    "PUBLICATIONS",
    "RESEARCH",
    "AFFILIATIONS",
    "LEADERSHIP",
    "ADDITIONAL INFORMATION",
    "REFERENCES",
]

# Longest first so "WORK EXPERIENCE" wins over "EXPERIENCE"
_HEADING_ALTERNATION = "|".join(
    re.escape(h).replace(r"\ ", r"\s+")
    for h in sorted(SECTION_HEADINGS, key=len, reverse=True)
)
HEADING_PATTERN = re.compile(
    rf"^(?:#{{1,6}}\s*)?\**\s*({_HEADING_ALTERNATION})\s*\**\s*(?::\s*(.*))?$",
    re.IGNORECASE,
)

DELIMITED_SECTION_PATTERN = re.compile(
    r"###\s*([^#\n]+?)\s*###(.*?)(?=###\s*[^#\n]+?\s*###|\Z)",
    re.DOTALL,
)


def normalize_section_name(name: str) -> str:
    """Uppercase a heading and collapse inner whitespace."""
    return " ".join(name.strip().rstrip(":").split()).upper()


def match_heading(line: str) -> tuple[str, str] | None:
    """
    Check whether a line is a section heading.

    Args:
        line: One line of resume text

    Returns:
        Tuple of (normalized section name, inline content after a colon),
        or None if the line is not a heading
    """
    match = HEADING_PATTERN.match(line.strip())
    if not match:
        return None
    return normalize_section_name(match.group(1)), (match.group(2) or "").strip(" *")


def extract_sections(text: str) -> dict[str, str]:
    """
    Split resume text into an ordered map of section name to body.

    Content before the first recognized heading lands in ``HEADER``.
    A heading that appears twice appends to the existing section.
    Sections with no content once cleaned (blank, or nothing but meta
    tags) are dropped.

    Args:
        text: Raw resume text

    Returns:
        Ordered dict of section name -> body text
    """
    sections: dict[str, str] = {}
    current = HEADER_SECTION
    buffer: list[str] = []

    def flush() -> None:
        body = "\n".join(buffer).strip("\n")
        if not clean_section_content(body):
            return
        if current in sections:
            sections[current] = f"{sections[current]}\n{body}"
        else:
            sections[current] = body

    for line in (text or "").replace("\r\n", "\n").split("\n"):
        heading = match_heading(line)
        if heading:
            flush()
            current, inline = heading
            buffer = [inline] if inline else []
        else:
            buffer.append(line)

    flush()
    return sections


def parse_delimited_sections(
    text: str,
    expected: Iterable[str] | None = None,
) -> dict[str, str]:
    """
    Parse a refinement response made of ``### NAME ###`` blocks.

    When the response carries no delimiters at all, fall back to the
    heading heuristic used for original resumes. Preamble text captured as
    ``HEADER`` in that fallback is discarded unless ``HEADER`` was asked for.

    Args:
        text: Model response text
        expected: Section names that were requested, if known

    Returns:
        Ordered dict of section name -> body (empty if nothing parseable)
    """
    sections: dict[str, str] = {}
    for match in DELIMITED_SECTION_PATTERN.finditer(text or ""):
        name = normalize_section_name(match.group(1))
        body = match.group(2).strip()
        if name and body:
            sections[name] = body

    if sections:
        return sections

    expected_names = {normalize_section_name(n) for n in expected or ()}
    fallback = extract_sections(text or "")
    if HEADER_SECTION not in expected_names:
        fallback.pop(HEADER_SECTION, None)

    logger.warning(
        "delimited_parse_fallback",
        recovered_sections=list(fallback),
        response_length=len(text or ""),
    )
    return fallback
