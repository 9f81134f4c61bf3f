"""Gated multi-level test execution and error simulation."""

from .executor import GatedTestExecutor, TestSuiteResult, TestTier, TierResult
from .scenarios import DEFAULT_SCENARIOS, ErrorScenario, ErrorScenarioResult, ErrorSimulator

__all__ = [
    "DEFAULT_SCENARIOS",
    "ErrorScenario",
    "ErrorScenarioResult",
    "ErrorSimulator",
    "GatedTestExecutor",
    "TestSuiteResult",
    "TestTier",
    "TierResult",
]
