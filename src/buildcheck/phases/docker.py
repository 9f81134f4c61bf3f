"""Docker phase: container build diagnostics for the workspace."""

from __future__ import annotations

from buildcheck.docker import DockerDiagnostics
from buildcheck.domain.results import PhaseResult

from .base import PhaseContext


class DockerPhase:
    name = "Docker"

    def execute(self, result: PhaseResult, context: PhaseContext) -> None:
        diagnostics = DockerDiagnostics(
            workspace=context.workspace,
            config=context.config.docker,
            classifier=context.classifier,
            runner=context.runner,
        )
        docker_result = diagnostics.validate()
        result.detail = docker_result
        for error in docker_result.errors:
            result.add_error(error)
        for recommendation in dict.fromkeys(docker_result.recommendations):
            result.add_warning(recommendation)
