"""Unit tests for JD Analyst agent."""

import json

from resumetailor.agents.jd_analyst import JDAnalyst, fallback_analysis
from resumetailor.exceptions import ProviderError
from tests.fixtures import SAMPLE_JD, create_mock_gateway


class TestFallbackAnalysis:
    """Tests for the regex heuristic."""

    def test_extracts_role_seniority_and_keywords(self):
        result = fallback_analysis(SAMPLE_JD)

        assert result.role == "Senior Backend Engineer to build distributed systems on AWS"
        assert result.seniority == "Senior"
        for keyword in ("python", "postgresql", "docker", "kubernetes", "aws", "distributed systems"):
            assert keyword in result.keywords
        assert result.categories.soft == ["communication", "mentoring"]

    def test_junior_roles(self):
        result = fallback_analysis("Looking for an entry-level data analyst, SQL a plus.")
        assert result.seniority == "Junior"
        assert result.role == "entry-level data analyst"
        assert "sql" in result.keywords

    def test_role_defaults_to_first_line(self):
        result = fallback_analysis("Staff Platform Engineer, Remote\nWork on Go and Terraform.")
        assert result.role == "Staff Platform Engineer"
        assert result.seniority == "Senior"
        assert "terraform" in result.keywords

    def test_no_placeholder_keywords(self):
        result = fallback_analysis("We need someone great.")
        assert result.keywords == []
        assert result.seniority == "Mid-level"

    def test_keywords_are_unique(self):
        result = fallback_analysis("Python, python and PYTHON.")
        assert result.keywords == ["python"]


class TestJDAnalyst:
    """Tests for JDAnalyst.analyze."""

    def test_parses_model_analysis(self):
        payload = {
            "role": "Backend Engineer",
            "seniority": "Senior",
            "responsibilities": ["Build APIs", ""],
            "qualifications": "5+ years of Python",
            "keywords": ["Python", "AWS"],
            "categories": {"technical": ["Python"], "soft": [], "certifications": []},
        }
        gateway = create_mock_gateway(response=json.dumps(payload))

        result = JDAnalyst(gateway, model="gemini-1.5-flash").analyze(SAMPLE_JD)

        assert result.role == "Backend Engineer"
        assert result.responsibilities == ["Build APIs"]
        assert result.qualifications == ["5+ years of Python"]
        assert result.keywords == ["Python", "AWS"]
        assert gateway.generate.call_args.args[2] == 0.2

    def test_empty_analysis_falls_back_to_heuristic(self):
        gateway = create_mock_gateway(response='{"role": "", "keywords": []}')
        result = JDAnalyst(gateway).analyze(SAMPLE_JD)
        assert result.seniority == "Senior"
        assert "python" in result.keywords

    def test_gateway_failure_falls_back_to_heuristic(self):
        gateway = create_mock_gateway(responses=[ProviderError("timeout")])
        result = JDAnalyst(gateway).analyze(SAMPLE_JD)
        assert result == fallback_analysis(SAMPLE_JD)
