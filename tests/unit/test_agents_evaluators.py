"""Unit tests for the quality scorer and golden-rule checker."""

import json

import pytest

from resumetailor.agents.golden_rules import GOLDEN_RULES, GoldenRuleChecker
from resumetailor.agents.quality_scorer import QualityScorer, clamp_score
from resumetailor.exceptions import ProviderError
from tests.fixtures import SAMPLE_JD, SAMPLE_RESUME, TAILORED_RESUME, create_mock_gateway


class TestQualityScorer:
    """Tests for QualityScorer."""

    def test_scores_are_parsed(self):
        payload = {"ats_score": 78, "jd_score": 82, "ats_feedback": "Good headings.", "jd_feedback": "Add AWS."}
        gateway = create_mock_gateway(response=json.dumps(payload))

        result = QualityScorer(gateway).score(SAMPLE_RESUME, TAILORED_RESUME, SAMPLE_JD)

        assert (result.ats_score, result.jd_score) == (78, 82)
        assert result.combined_score == 160
        assert result.jd_feedback == "Add AWS."
        assert result.is_fallback is False
        assert gateway.generate.call_args.args[2] == 0.1

    def test_scores_are_clamped_and_rounded(self):
        gateway = create_mock_gateway(response='{"ats_score": 120, "jd_score": "72.6"}')
        result = QualityScorer(gateway).score(SAMPLE_RESUME, TAILORED_RESUME, SAMPLE_JD)
        assert (result.ats_score, result.jd_score) == (100, 73)

    def test_inputs_are_truncated(self):
        gateway = create_mock_gateway(response='{"ats_score": 1, "jd_score": 1}')
        QualityScorer(gateway).score("a" * 5000, "b" * 5000, "c" * 5000)
        prompt = gateway.generate.call_args.args[0]
        assert "a" * 2000 in prompt and "a" * 2001 not in prompt
        assert "c" * 1000 in prompt and "c" * 1001 not in prompt

    @pytest.mark.parametrize("response", ["not json", '{"jd_score": 80}', '{"ats_score": "high", "jd_score": 1}'])
    def test_bad_output_falls_back_to_neutral_scores(self, response):
        gateway = create_mock_gateway(response=response)
        result = QualityScorer(gateway).score(SAMPLE_RESUME, TAILORED_RESUME, SAMPLE_JD)
        assert (result.ats_score, result.jd_score) == (50, 50)
        assert result.is_fallback is True
        assert result.ats_feedback.startswith("Unable to generate detailed")

    def test_gateway_failure_falls_back(self):
        gateway = create_mock_gateway(responses=[ProviderError("down")])
        assert QualityScorer(gateway).score(SAMPLE_RESUME, TAILORED_RESUME, SAMPLE_JD).is_fallback

    def test_clamp_score(self):
        assert clamp_score(-5) == 0
        assert clamp_score(99.5) == 100
        assert clamp_score("42") == 42

    @pytest.mark.parametrize(
        "response",
        [
            '{"ats_score": 1e999, "jd_score": 80}',
            '{"ats_score": 80, "jd_score": Infinity}',
            '{"ats_score": NaN, "jd_score": 80}',
        ],
    )
    def test_non_finite_scores_fall_back(self, response):
        gateway = create_mock_gateway(response=response)
        result = QualityScorer(gateway).score(SAMPLE_RESUME, TAILORED_RESUME, SAMPLE_JD)
        assert (result.ats_score, result.jd_score) == (50, 50)
        assert result.is_fallback is True

    def test_clamp_score_rejects_infinity(self):
        with pytest.raises(ValueError, match="finite"):
            clamp_score(float("inf"))
        with pytest.raises(ValueError, match="finite"):
            clamp_score("-inf")


class TestGoldenRuleChecker:
    """Tests for GoldenRuleChecker."""

    def test_prompt_lists_all_rules(self):
        gateway = create_mock_gateway(response='{"passed": true}')
        GoldenRuleChecker(gateway).check(TAILORED_RESUME, SAMPLE_JD)
        prompt = gateway.generate.call_args.args[0]
        for rule in GOLDEN_RULES:
            assert rule in prompt

    def test_parses_failure_with_feedback(self):
        payload = {
            "passed": False,
            "feedback": ["SPECIFICITY: EXPERIENCE bullets lack metrics"],
            "suggestions": "Quantify outcomes",
        }
        gateway = create_mock_gateway(response=json.dumps(payload))

        result = GoldenRuleChecker(gateway).check(TAILORED_RESUME, SAMPLE_JD)

        assert result.passed is False
        assert result.feedback == ["SPECIFICITY: EXPERIENCE bullets lack metrics"]
        assert result.suggestions == ["Quantify outcomes"]

    def test_string_booleans_are_accepted(self):
        gateway = create_mock_gateway(response='{"passed": "True", "feedback": []}')
        assert GoldenRuleChecker(gateway).check(TAILORED_RESUME, SAMPLE_JD).passed is True

    def test_failure_never_reads_as_passed(self):
        gateway = create_mock_gateway(responses=[ProviderError("down")])

        result = GoldenRuleChecker(gateway).check(TAILORED_RESUME, SAMPLE_JD)

        assert result.passed is False
        assert result.feedback == ["Error evaluating golden rules"]
        assert result.suggestions == ["Please try again"]
        assert result.is_fallback is True

    def test_missing_passed_field_falls_back(self):
        gateway = create_mock_gateway(response='{"feedback": ["ok"]}')
        assert GoldenRuleChecker(gateway).check(TAILORED_RESUME, SAMPLE_JD).is_fallback
