"""Checks run against a final tailored resume."""

import re

from resumetailor.parsers.section_parser import match_heading
from resumetailor.utils.cleaning import META_TAG_PATTERN

MIN_RESUME_LENGTH = 100
MAX_ATS_LINE_LENGTH = 100

_BOX_GLYPHS = re.compile(r"[□■●◆◇★☆✓✔➢➤►]")
_HTML_TABLE = re.compile(r"<\s*(?:table|tr|td|th)\b", re.IGNORECASE)


def validate_final_resume(text: str, min_length: int = MIN_RESUME_LENGTH) -> list[str]:
    """
    Find structural problems in a final resume.

    Args:
        text: Final resume text
        min_length: Minimum acceptable length in characters

    Returns:
        List of issue descriptions (empty if the resume looks sound)
    """
    issues = []
    stripped = (text or "").strip()
    if len(stripped) < min_length:
        issues.append(f"Resume is too short ({len(stripped)} < {min_length} characters)")

    leftover = sorted({m.group(0) for m in META_TAG_PATTERN.finditer(stripped)})
    if leftover:
        issues.append(f"Resume contains leftover edit markers: {', '.join(leftover)}")

    lines = [line.strip() for line in stripped.split("\n")]
    for i, line in enumerate(lines):
        heading = match_heading(line)
        if not heading or heading[1]:
            continue
        following = next((rest for rest in lines[i + 1:] if rest), None)
        if following is None or match_heading(following):
            issues.append(f"Section '{heading[0]}' is empty")

    return issues


def validate_ats_safe_resume(text: str) -> list[str]:
    """Formatting that commonly trips applicant tracking systems."""
    warnings = []
    if _HTML_TABLE.search(text):
        warnings.append("Contains HTML table markup")
    glyphs = sorted(set(_BOX_GLYPHS.findall(text)))
    if glyphs:
        warnings.append(f"Contains decorative glyphs: {' '.join(glyphs)}")
    long_lines = sum(1 for line in text.split("\n") if len(line) > MAX_ATS_LINE_LENGTH)
    if long_lines:
        warnings.append(f"{long_lines} line(s) longer than {MAX_ATS_LINE_LENGTH} characters")
    if re.search(r"\n{4,}", text):
        warnings.append("Contains runs of three or more blank lines")
    return warnings
