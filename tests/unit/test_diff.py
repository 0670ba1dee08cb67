"""Unit tests for section diffing."""

import pytest

from resumetailor.schemas.tailoring import ChangeConfidence, SectionDiff
from resumetailor.utils.diff import (
    calculate_change_confidence,
    diff_sections,
    generate_change_summary,
    is_significant_change,
    levenshtein_distance,
)
from tests.fixtures import SAMPLE_RESUME, TAILORED_RESUME


class TestLevenshteinDistance:
    """Tests for levenshtein_distance."""

    @pytest.mark.parametrize(
        "a, b, expected",
        [("kitten", "sitting", 3), ("", "abc", 3), ("abc", "", 3), ("same", "same", 0), ("flaw", "lawn", 2)],
    )
    def test_distance(self, a, b, expected):
        assert levenshtein_distance(a, b) == expected
        assert levenshtein_distance(b, a) == expected

    def test_cutoff_caps_the_result(self):
        assert levenshtein_distance("kitten", "sitting", max_distance=1) == 2
        assert levenshtein_distance("kitten", "sitting", max_distance=3) == 3
        assert levenshtein_distance("a" * 50, "b" * 10, max_distance=5) == 6


class TestIsSignificantChange:
    """Tests for is_significant_change."""

    def test_bullet_glyph_swap_is_not_significant(self):
        before = "- Built APIs in Python\n- Led a team of four"
        after = "• Built APIs in Python\n• Led a team of four"
        assert is_significant_change(before, after) is False

    def test_whitespace_only_change_is_not_significant(self):
        assert is_significant_change("Python,  Go\n", "Python, Go") is False

    def test_single_typo_in_long_text_is_not_significant(self):
        before = "Backend engineer with six years of experience building web services."
        after = "Backend engineer with six years of experience building web servces."
        assert is_significant_change(before, after) is False

    def test_rewrite_is_significant(self):
        assert is_significant_change("Built REST APIs", "Designed event-driven platforms on AWS") is True

    def test_threshold_is_configurable(self):
        before = "Backend engineer with six years of experience building web services."
        after = "Backend engineer with six years of experience building web servces."
        assert is_significant_change(before, after, threshold=0.0) is True


class TestDiffSections:
    """Tests for diff_sections."""

    def test_only_reworded_section_is_reported(self):
        diff = diff_sections(SAMPLE_RESUME, TAILORED_RESUME)

        assert list(diff) == ["EXPERIENCE"]
        entry = diff["EXPERIENCE"]
        assert entry.before.startswith("Software Engineer, Acme Corp")
        assert "Designed and shipped" in entry.after

    def test_entries_keep_raw_text(self):
        modified = SAMPLE_RESUME.replace("SKILLS\nPython, Django, PostgreSQL, Docker", "SKILLS\n[MODIFIED]\nGo, Rust")
        diff = diff_sections(SAMPLE_RESUME, modified)
        assert diff["SKILLS"].after == "[MODIFIED]\nGo, Rust"

    def test_additions_and_removals(self):
        original = "SUMMARY\nEngineer\n\nSKILLS\nPython"
        modified = "SUMMARY\nEngineer\n\nPROJECTS\nOpen-source CLI"
        diff = diff_sections(original, modified)

        assert diff["SKILLS"] == SectionDiff(before="Python", after="")
        assert diff["SKILLS"].is_removal
        assert diff["PROJECTS"] == SectionDiff(before="", after="Open-source CLI")
        assert diff["PROJECTS"].is_addition
        assert list(diff) == ["SKILLS", "PROJECTS"]

    def test_section_emptied_by_cleaning_counts_as_removed(self):
        diff = diff_sections("SKILLS\nPython", "SKILLS\n[MODIFIED]")
        assert diff["SKILLS"].is_removal

    def test_identical_documents(self):
        assert diff_sections(SAMPLE_RESUME, SAMPLE_RESUME) == {}


class TestChangeSummary:
    """Tests for change confidence and summaries."""

    def test_confidence_levels(self):
        words = " ".join(f"word{i}" for i in range(20))
        assert calculate_change_confidence(words, words) == ChangeConfidence.MINIMAL
        assert calculate_change_confidence(words, words.replace("word0 ", "new0 ")) == ChangeConfidence.MODERATE
        assert calculate_change_confidence("Built APIs", "Designed platforms") == ChangeConfidence.SIGNIFICANT

    def test_summary_lines(self):
        diff = {
            "SKILLS": SectionDiff(before="Python", after=""),
            "PROJECTS": SectionDiff(before="", after="CLI"),
            "SUMMARY": SectionDiff(before="Built APIs", after="Designed platforms"),
        }
        assert generate_change_summary(diff) == [
            "- SKILLS: removed",
            "+ PROJECTS: added",
            "~ SUMMARY: significant change",
        ]
