"""Unit tests for the prompt compiler."""

import pytest

from resumetailor.prompts import (
    TAILORING_MODES,
    compile_full_prompt,
    compile_refinement_prompt,
    extract_feedback_points,
    get_mode_config,
    get_temperature_for_mode,
)
from resumetailor.schemas.tailoring import JobIntelligence, TailoringMode
from tests.fixtures import SAMPLE_JD, SAMPLE_RESUME


class TestModes:
    """Tests for tailoring mode lookup."""

    @pytest.mark.parametrize(
        "mode, temperature",
        [(TailoringMode.BASIC, 0.3), ("personalized", 0.5), ("aggressive", 0.7)],
    )
    def test_temperatures(self, mode, temperature):
        assert get_temperature_for_mode(mode) == temperature

    def test_unknown_mode_falls_back_to_personalized(self):
        assert get_mode_config("reckless") == TAILORING_MODES[TailoringMode.PERSONALIZED]


class TestCompileFullPrompt:
    """Tests for compile_full_prompt."""

    def test_contains_resume_and_job_description_verbatim(self):
        prompt = compile_full_prompt(SAMPLE_RESUME, SAMPLE_JD, TailoringMode.BASIC)
        assert SAMPLE_RESUME in prompt
        assert SAMPLE_JD in prompt
        assert "TAILORING MODE: Basic" in prompt

    def test_is_deterministic(self):
        args = (SAMPLE_RESUME, SAMPLE_JD, "aggressive")
        assert compile_full_prompt(*args) == compile_full_prompt(*args)

    def test_only_three_most_recent_feedback_items(self):
        feedback = ["first point", "second point", "third point", "fourth point"]
        prompt = compile_full_prompt(SAMPLE_RESUME, SAMPLE_JD, prior_feedback=feedback)
        assert "first point" not in prompt
        for item in feedback[1:]:
            assert f"- {item}" in prompt

    def test_no_feedback_section_without_feedback(self):
        prompt = compile_full_prompt(SAMPLE_RESUME, SAMPLE_JD, prior_feedback=["", "  "])
        assert "PREVIOUS FEEDBACK" not in prompt

    def test_version_context_only_after_first_version(self):
        assert "VERSION CONTEXT" not in compile_full_prompt(SAMPLE_RESUME, SAMPLE_JD)
        assert "version 3" in compile_full_prompt(SAMPLE_RESUME, SAMPLE_JD, version=3)

    def test_job_intelligence_is_included(self):
        intelligence = JobIntelligence(
            role="Backend Engineer",
            seniority="Senior",
            keywords=["python", "aws"],
            responsibilities=["Own the API platform"],
        )
        prompt = compile_full_prompt(SAMPLE_RESUME, SAMPLE_JD, intelligence=intelligence)
        assert "Role: Backend Engineer" in prompt
        assert "Key Keywords: python, aws" in prompt
        assert "- Own the API platform" in prompt


class TestCompileRefinementPrompt:
    """Tests for compile_refinement_prompt."""

    def test_sends_only_named_sections_as_delimited_blocks(self):
        prompt = compile_refinement_prompt(
            {"EXPERIENCE": "- Built APIs\n", "SKILLS": "Python"},
            feedback=["Quantify impact"],
            job_description=SAMPLE_JD,
        )
        assert "### EXPERIENCE ###\n- Built APIs" in prompt
        assert "### SKILLS ###\nPython" in prompt
        assert "### EDUCATION ###" not in prompt
        assert "- Quantify impact" in prompt

    def test_golden_rule_feedback_section(self):
        prompt = compile_refinement_prompt(
            {"SUMMARY": "Engineer"},
            feedback=[],
            job_description=SAMPLE_JD,
            golden_rule_feedback=["AUTHENTICITY: SUMMARY overstates scope"],
        )
        assert "GOLDEN RULE FEEDBACK" in prompt
        assert "- AUTHENTICITY: SUMMARY overstates scope" in prompt
        assert "FEEDBACK TO ADDRESS" not in prompt

    def test_keywords_are_limited(self):
        intelligence = JobIntelligence(role="Engineer", keywords=[f"kw{i}" for i in range(8)])
        prompt = compile_refinement_prompt({"SKILLS": "Python"}, [], SAMPLE_JD, intelligence=intelligence)
        assert "kw4" in prompt
        assert "kw5" not in prompt


class TestExtractFeedbackPoints:
    """Tests for extract_feedback_points."""

    def test_splits_bullets_and_numbers(self):
        text = "- Add metrics to EXPERIENCE\n* Mention AWS\n1. Shorten the summary\n2) Fix tense"
        assert extract_feedback_points(text) == [
            "Add metrics to EXPERIENCE",
            "Mention AWS",
            "Shorten the summary",
            "Fix tense",
        ]

    def test_empty_text(self):
        assert extract_feedback_points("") == []
