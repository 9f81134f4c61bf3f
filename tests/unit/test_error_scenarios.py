"""
Unit tests for error simulation scenarios
"""

import pytest

from buildcheck.runtime import RuntimeExceptionHandler
from buildcheck.testing import DEFAULT_SCENARIOS, ErrorScenario, ErrorSimulator


@pytest.fixture
def simulator(classifier):
    return ErrorSimulator(RuntimeExceptionHandler(classifier))


class TestErrorSimulator:
    def test_catalogue(self):
        assert [s.name for s in DEFAULT_SCENARIOS] == [
            "NetworkFailure",
            "DatabaseUnavailable",
            "AuthenticationFailure",
            "ResourceExhaustion",
            "ConfigurationError",
            "DependencyFailure",
        ]

    @pytest.mark.parametrize("scenario", DEFAULT_SCENARIOS, ids=lambda s: s.name)
    def test_default_scenarios_handled(self, simulator, scenario):
        result = simulator.run_scenario(scenario)

        assert result.handled_correctly, result.detail

    def test_fault_factory_raising_is_mishandled(self, simulator):
        def broken():
            raise RuntimeError("could not build fault")

        scenario = ErrorScenario("Broken", "Fault factory fails", broken, None, 500)

        result = simulator.run_scenario(scenario)

        assert not result.handled_correctly
        assert result.detail == "could not build fault"

    def test_run_returns_one_result_per_scenario(self, simulator):
        assert len(simulator.run()) == len(DEFAULT_SCENARIOS)
