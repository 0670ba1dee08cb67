"""Normalize model-generated resume text.

Generated sections tend to come back decorated with edit markers
(``[MODIFIED]``), narration about the edit ("I have updated the summary
to..."), and a mix of bullet glyphs. Everything here is idempotent:
``clean_section_content(clean_section_content(x)) == clean_section_content(x)``.
"""

import re
from collections import Counter

BULLET_GLYPHS = ["-", "•", "*", "○", "▪", "▫", "◦"]
DEFAULT_BULLET = "-"
BULLET_INDENT = "  "

META_TAGS = [
    "HEADER",
    "RESUME SECTION",
    "SECTION",
    "MODIFIED",
    "ORIGINAL",
    "TAILORED",
    "UNCHANGED",
    "ADDED",
    "REMOVED",
    "UPDATED",
    "ENHANCED",
    "IMPROVED",
    "OPTIMIZED",
    "REFINED",
    "REVISED",
    "EDITED",
    "REWRITTEN",
    "REWORDED",
    "REFORMATTED",
    "RESTRUCTURED",
    "REORGANIZED",
    "REARRANGED",
    "REORDERED",
    "REPHRASED",
    "REPURPOSED",
    "REALIGNED",
    "ADJUSTED",
    "ALIGNED",
    "FORMATTED",
    "NEW",
    "CHANGED",
]

META_TAG_PATTERN = re.compile(
    r"\[\s*(?:" + "|".join(re.escape(t).replace(r"\ ", r"\s+") for t in META_TAGS) + r")\b[^\]\n]*\]",
    re.IGNORECASE,
)

_EDIT_VERBS = (
    r"(?:modified|updated|tailored|revised|rewritten|rewrote|enhanced|optimized|"
    r"adjusted|changed|improved|refined|reworded|edited|added|removed|kept|left|"
    r"emphasized|highlighted|restructured|reorganized|aligned|incorporated|streamlined)"
)

EXPLANATORY_LINE_PATTERNS = [
    re.compile(rf"^(?:note:\s*)?this section (?:was|has been|is|have been) {_EDIT_VERBS}\b", re.IGNORECASE),
    re.compile(rf"^(?:note:\s*)?i(?:\s+have|'ve|’ve)?\s+{_EDIT_VERBS}\b", re.IGNORECASE),
    re.compile(r"^(?:note:\s*)?(?:changes made|modifications(?: made)?|updates(?: made)?|changes|explanation|rationale)\s*:", re.IGNORECASE),
    re.compile(r"^(?:here is|here's|here are|below is|below are)\s+(?:the|your)\s+(?:\w+\s+){0,3}?(?:tailored|updated|modified|revised|refined|optimized|rewritten)\b", re.IGNORECASE),
    re.compile(r"^note:.*\b(?:modif|updat|tailor|chang|revis)\w*", re.IGNORECASE),
]

CODE_FENCE_PATTERN = re.compile(r"^\s*```[\w-]*\s*$")

_BULLET_LINE = re.compile(r"^\s*(?:([•○▪▫◦])\s*|([-*])\s+)(\S.*)$")


def _parse_bullet(line: str) -> tuple[str, str] | None:
    match = _BULLET_LINE.match(line)
    if not match:
        return None
    return match.group(1) or match.group(2), match.group(3)


def _strip_meta_tags(line: str) -> str | None:
    """Remove meta tags from a line; None if nothing but tags was on it."""
    if not META_TAG_PATTERN.search(line):
        return line
    # Removing one tag can expose another, e.g. "[[NEW]NEW]"
    count = 1
    while count:
        line, count = META_TAG_PATTERN.subn(" ", line)
    stripped = re.sub(r"[ ]{2,}", " ", line).strip()
    return stripped or None


def _is_explanatory(line: str) -> bool:
    text = line.strip()
    return any(p.match(text) for p in EXPLANATORY_LINE_PATTERNS)


def detect_bullet_glyph(lines: list[str]) -> str:
    """Most frequent bullet glyph; ties go to the earlier glyph in BULLET_GLYPHS."""
    counts = Counter()
    for line in lines:
        parsed = _parse_bullet(line)
        if parsed:
            counts[parsed[0]] += 1
    if not counts:
        return DEFAULT_BULLET
    return max(BULLET_GLYPHS, key=lambda g: (counts[g], -BULLET_GLYPHS.index(g)))


def clean_section_content(text: str) -> str:
    """
    Strip edit artifacts from generated text and normalize its layout.

    Args:
        text: Section body or whole document

    Returns:
        Cleaned text with consistent bullets and blank-line spacing
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "").replace("\t", "  ")

    lines: list[str] = []
    for line in text.split("\n"):
        line = _strip_meta_tags(line)
        if line is None or _is_explanatory(line):
            continue
        lines.append(line)

    glyph = detect_bullet_glyph(lines)
    normalized = []
    for line in lines:
        parsed = _parse_bullet(line)
        if parsed:
            normalized.append(f"{BULLET_INDENT}{glyph} {parsed[1].rstrip()}")
        else:
            normalized.append(line.rstrip())

    result = "\n".join(normalized)
    result = re.sub(r"\n{3,}", "\n\n", result).strip("\n").rstrip()
    # A leading bullet keeps its indent; anything else is trimmed.
    if result and not _parse_bullet(result.split("\n", 1)[0]):
        result = result.lstrip()
    return result


def clean_resume_output(text: str) -> str:
    """Clean a whole generated resume, dropping markdown code fences first."""
    if not text:
        return ""
    lines = [line for line in text.split("\n") if not CODE_FENCE_PATTERN.match(line)]
    return clean_section_content("\n".join(lines))


def normalize_for_comparison(text: str) -> str:
    """Cleaned text with bullet glyphs and all whitespace runs flattened."""
    lines = []
    for line in clean_section_content(text).split("\n"):
        parsed = _parse_bullet(line)
        lines.append(parsed[1] if parsed else line)
    return " ".join(" ".join(lines).split())
