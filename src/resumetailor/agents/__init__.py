"""Model-backed evaluators and analyzers used by the tailoring loop."""

from resumetailor.agents.base import BaseAgent
from resumetailor.agents.golden_rules import GoldenRuleChecker
from resumetailor.agents.jd_analyst import JDAnalyst, fallback_analysis
from resumetailor.agents.quality_scorer import QualityScorer

__all__ = [
    "BaseAgent",
    "QualityScorer",
    "GoldenRuleChecker",
    "JDAnalyst",
    "fallback_analysis",
]
