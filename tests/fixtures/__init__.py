"""Test fixtures and sample data."""

from pathlib import Path
from unittest.mock import MagicMock

from resumetailor.config import Config, GatewaySettings
from resumetailor.schemas.tailoring import GoldenRuleResult, JobIntelligence, QualityScore

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

__all__ = [
    "SAMPLE_RESUME",
    "SAMPLE_JD",
    "TAILORED_RESUME",
    "load_sample_resume",
    "load_sample_jd",
    "create_mock_provider",
    "create_mock_gateway",
    "create_test_config",
    "make_score",
    "make_golden",
    "create_mock_evaluators",
]

SAMPLE_RESUME = """Jane Doe
jane.doe@example.com | (555) 010-2030

SUMMARY
Backend engineer with six years of experience building web services.

EXPERIENCE
Software Engineer, Acme Corp (2019-2024)
- Built REST APIs in Python and Django
- Maintained PostgreSQL databases

EDUCATION
B.S. Computer Science, State University, 2018

SKILLS
Python, Django, PostgreSQL, Docker"""

# Same resume with only EXPERIENCE reworded
TAILORED_RESUME = """Jane Doe
jane.doe@example.com | (555) 010-2030

SUMMARY
Backend engineer with six years of experience building web services.

EXPERIENCE
Software Engineer, Acme Corp (2019-2024)
- Designed and shipped high-traffic REST APIs in Python and Django on AWS
- Tuned PostgreSQL schemas and queries, cutting p95 latency by 40%

EDUCATION
B.S. Computer Science, State University, 2018

SKILLS
Python, Django, PostgreSQL, Docker"""

SAMPLE_JD = """We are hiring a Senior Backend Engineer to build distributed systems on AWS.

Requirements:
- 5+ years of Python experience
- Experience with PostgreSQL, Docker and Kubernetes
- Strong communication and mentoring skills"""


def load_sample_resume() -> str:
    """Sample resume text."""
    return SAMPLE_RESUME


def load_sample_jd() -> str:
    """Sample job description text."""
    return SAMPLE_JD


def create_mock_provider(
    model: str = "test-model",
    response: str = "A generated response long enough to count.",
    token_count: int = 100,
) -> MagicMock:
    """
    Create a mocked provider for unit tests.

    Args:
        model: Model name to use
        response: Response text to return from complete()
        token_count: Token count to return from count_tokens()

    Returns:
        Mocked provider instance
    """
    mock_provider = MagicMock()
    mock_provider.model = model
    mock_provider.complete = MagicMock(return_value=response)
    mock_provider.generate_text = MagicMock(return_value=response)
    mock_provider.count_tokens = MagicMock(return_value=token_count)
    return mock_provider


def create_mock_gateway(responses=None, response: str = "{}", token_count: int = 100) -> MagicMock:
    """
    Create a mocked completion gateway.

    Args:
        responses: Sequence of responses (or exceptions) returned by
            successive generate() calls; overrides ``response``
        response: Response returned by every generate() call
        token_count: Value returned by estimate_tokens()
    """
    gateway = MagicMock()
    if responses is not None:
        gateway.generate = MagicMock(side_effect=list(responses))
    else:
        gateway.generate = MagicMock(return_value=response)
    gateway.estimate_tokens = MagicMock(return_value=token_count)
    return gateway


def create_test_config(**tailoring) -> Config:
    """Default config with instant retries and optional tailoring overrides."""
    config = Config(
        gateway=GatewaySettings(
            backoff_multiplier=0,
            backoff_min_seconds=0,
            backoff_max_seconds=0,
        )
    )
    if tailoring:
        config.tailoring = config.tailoring.model_copy(update=tailoring)
    return config


def make_score(ats: int, jd: int, ats_feedback: str = "Clear structure.", jd_feedback: str = "Solid match.") -> QualityScore:
    return QualityScore(ats_score=ats, jd_score=jd, ats_feedback=ats_feedback, jd_feedback=jd_feedback)


def make_golden(passed: bool, feedback=(), suggestions=()) -> GoldenRuleResult:
    return GoldenRuleResult(passed=passed, feedback=list(feedback), suggestions=list(suggestions))


def create_mock_evaluators(scores, golden, intelligence: JobIntelligence | None = None):
    """
    Scorer, golden-rule checker and JD analyst mocks.

    ``scores`` and ``golden`` are either a single result or a list consumed
    one per call.
    """
    scorer = MagicMock()
    if isinstance(scores, list):
        scorer.score = MagicMock(side_effect=scores)
    else:
        scorer.score = MagicMock(return_value=scores)

    checker = MagicMock()
    if isinstance(golden, list):
        checker.check = MagicMock(side_effect=golden)
    else:
        checker.check = MagicMock(return_value=golden)

    analyst = MagicMock()
    analyst.analyze = MagicMock(return_value=intelligence or JobIntelligence(role="Senior Backend Engineer"))
    return scorer, checker, analyst
