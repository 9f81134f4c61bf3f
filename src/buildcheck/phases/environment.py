"""Environment phase: required variables, TLS material and configuration files."""

from __future__ import annotations

from buildcheck.domain.results import PhaseResult
from buildcheck.environment import EnvironmentValidator

from .base import PhaseContext


class EnvironmentPhase:
    name = "Environment"

    def execute(self, result: PhaseResult, context: PhaseContext) -> None:
        validator = EnvironmentValidator(
            workspace=context.workspace,
            config=context.config.environment,
            classifier=context.classifier,
            environ=context.environ,
        )
        environment_result = validator.validate()
        result.detail = environment_result
        for error in environment_result.all_errors():
            result.add_error(error)
        for warning in environment_result.all_warnings():
            result.add_warning(warning)
