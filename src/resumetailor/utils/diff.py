"""Section-level diffing between an original resume and a generated one."""

from resumetailor.parsers.section_parser import extract_sections
from resumetailor.schemas.tailoring import ChangeConfidence, SectionDiff
from resumetailor.utils.cleaning import normalize_for_comparison

DEFAULT_SIGNIFICANCE_THRESHOLD = 0.05


def levenshtein_distance(a: str, b: str, max_distance: int | None = None) -> int:
    """
    Edit distance between two strings.

    With ``max_distance`` set, only a diagonal band of the table is filled and
    the function returns ``max_distance + 1`` as soon as the distance is known
    to exceed it.

    Args:
        a: First string
        b: Second string
        max_distance: Optional cutoff

    Returns:
        Levenshtein distance (capped at max_distance + 1 when a cutoff is given)
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    n, m = len(a), len(b)
    limit = n if max_distance is None else max_distance
    over = limit + 1
    if m == 0:
        return min(n, over)
    if n - m > limit:
        return over

    previous = [j if j <= limit else over for j in range(m + 1)]
    for i in range(1, n + 1):
        current = [over] * (m + 1)
        if i <= limit:
            current[0] = i
        row_min = current[0]
        char_a = a[i - 1]
        for j in range(max(1, i - limit), min(m, i + limit) + 1):
            value = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != b[j - 1]),
            )
            current[j] = value if value <= limit else over
            if current[j] < row_min:
                row_min = current[j]
        if row_min > limit:
            return over
        previous = current
    return previous[m]


def is_significant_change(
    before: str,
    after: str,
    threshold: float = DEFAULT_SIGNIFICANCE_THRESHOLD,
) -> bool:
    """
    Decide whether two section bodies differ by more than cosmetics.

    Both sides are cleaned and flattened (bullet glyphs and whitespace
    ignored); the change is significant when the edit distance exceeds
    ``threshold`` of the longer flattened string.
    """
    norm_before = normalize_for_comparison(before)
    norm_after = normalize_for_comparison(after)
    if norm_before == norm_after:
        return False
    longest = max(len(norm_before), len(norm_after))
    cutoff = int(threshold * longest)
    distance = levenshtein_distance(norm_before, norm_after, max_distance=cutoff)
    return distance / longest > threshold


def diff_sections(
    original_text: str,
    modified_text: str,
    threshold: float = DEFAULT_SIGNIFICANCE_THRESHOLD,
) -> dict[str, SectionDiff]:
    """
    Compare two resumes section by section.

    Entries keep the uncleaned text of each side; cleaning only decides
    significance. A section whose generated body cleans down to nothing
    counts as removed.

    Args:
        original_text: Resume before tailoring
        modified_text: Resume returned by the model
        threshold: Edit-distance ratio above which a change counts

    Returns:
        Ordered dict of section name -> SectionDiff (original order first,
        then sections new in the modified text)
    """
    original = extract_sections(original_text)
    modified = extract_sections(modified_text)
    diff: dict[str, SectionDiff] = {}

    for name, before in original.items():
        after = modified.get(name)
        if after is None:
            diff[name] = SectionDiff(before=before, after="")
        elif is_significant_change(before, after, threshold):
            diff[name] = SectionDiff(before=before, after=after)

    for name, after in modified.items():
        if name not in original:
            diff[name] = SectionDiff(before="", after=after)

    return diff


def calculate_change_confidence(before: str, after: str) -> ChangeConfidence:
    """Classify an edit by the share of words that differ."""
    before_words = normalize_for_comparison(before).lower().split()
    after_words = normalize_for_comparison(after).lower().split()
    total = max(len(before_words), len(after_words), 1)
    changed = len(set(before_words) ^ set(after_words))
    ratio = changed / total
    if ratio < 0.1:
        return ChangeConfidence.MINIMAL
    if ratio < 0.3:
        return ChangeConfidence.MODERATE
    return ChangeConfidence.SIGNIFICANT


def generate_change_summary(diff: dict[str, SectionDiff]) -> list[str]:
    """One human-readable line per diff entry."""
    lines = []
    for name, entry in diff.items():
        if entry.is_addition:
            lines.append(f"+ {name}: added")
        elif entry.is_removal:
            lines.append(f"- {name}: removed")
        else:
            confidence = calculate_change_confidence(entry.before, entry.after)
            lines.append(f"~ {name}: {confidence.value} change")
    return lines
