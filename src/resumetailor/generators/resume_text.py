"""Plain-text resume generation from a section map."""

from resumetailor.parsers.section_parser import HEADER_SECTION, normalize_section_name
from resumetailor.utils.cleaning import clean_section_content

# Canonical reassembly order. Names not listed follow in encounter order.
SECTION_ORDER = [
    HEADER_SECTION,
    "SUMMARY",
    "PROFESSIONAL SUMMARY",
    "CAREER SUMMARY",
    "PROFILE",
    "PROFESSIONAL PROFILE",
    "OBJECTIVE",
    "CAREER OBJECTIVE",
    "SKILLS",
    "TECHNICAL SKILLS",
    "CORE COMPETENCIES",
    "EXPERIENCE",
    "WORK EXPERIENCE",
    "PROFESSIONAL EXPERIENCE",
    "RELEVANT EXPERIENCE",
    "EMPLOYMENT HISTORY",
    "PROJECTS",
    "EDUCATION",
    "CERTIFICATIONS",
    "LICENSES AND CERTIFICATIONS",
    "ACHIEVEMENTS",
    "AWARDS",
    "PUBLICATIONS",
    "RESEARCH",
    "LEADERSHIP",
    "VOLUNTEER EXPERIENCE",
    "AFFILIATIONS",
    "LANGUAGES",
    "INTERESTS",
    "ADDITIONAL INFORMATION",
    "REFERENCES",
]

_ORDER_INDEX = {name: i for i, name in enumerate(SECTION_ORDER)}

FALLBACK_EXCERPT_CHARS = 500


def order_section_names(names) -> list[str]:
    """Known names by priority, then unknown names in the order given."""
    names = list(names)
    known = sorted((n for n in names if n in _ORDER_INDEX), key=_ORDER_INDEX.__getitem__)
    unknown = [n for n in names if n not in _ORDER_INDEX]
    return known + unknown


def reconstruct_resume_from_sections(sections: dict[str, str]) -> str:
    """
    Render a section map as one resume document.

    ``HEADER`` goes first with no label; every other section is rendered as
    its name on one line followed by its cleaned body. A section whose body
    cleans down to nothing is still emitted as a bare label so no key is lost.

    Args:
        sections: Section name -> body

    Returns:
        Resume text with a blank line between sections
    """
    blocks = []
    for name in order_section_names(sections):
        body = clean_section_content(sections[name])
        if name == HEADER_SECTION:
            if body:
                blocks.append(body)
            continue
        label = normalize_section_name(name)
        blocks.append(f"{label}\n{body}" if body else label)
    return "\n\n".join(blocks)


def build_fallback_document(original_text: str) -> str:
    """Placeholder persisted when tailoring fails validation."""
    excerpt = (original_text or "")[:FALLBACK_EXCERPT_CHARS]
    return (
        "[TAILORING ENCOUNTERED AN ERROR]\n\n"
        f"Original Resume:\n{excerpt}...\n\n"
        "We apologize, but the tailoring process could not produce a valid result. "
        "Please try again or adjust your resume and job description."
    )
