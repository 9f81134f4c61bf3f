"""Application service layer over the orchestrator.

Provides a stable surface for CLI and SDK callers: each service takes a
workspace, builds the orchestrator from the workspace configuration and
returns a CommandResult.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from buildcheck.config import BuildCheckConfig
from buildcheck.core.workspace import load_config
from buildcheck.domain.results import CommandResult
from buildcheck.domain.taxonomy import ValidationStatus
from buildcheck.environment import HealthState
from buildcheck.orchestrator import ValidationOrchestrator, ValidationTarget

OrchestratorFactory = Callable[[Path, BuildCheckConfig], ValidationOrchestrator]


def _default_factory(cancel_event: threading.Event) -> OrchestratorFactory:
    def build(workspace: Path, config: BuildCheckConfig) -> ValidationOrchestrator:
        return ValidationOrchestrator(workspace, config, cancel_event=cancel_event)

    return build


@dataclass(slots=True)
class ValidateService:
    """Run the full pipeline or one targeted phase."""

    cancel_event: threading.Event = field(default_factory=threading.Event)
    factory: OrchestratorFactory | None = None

    def run(self, *, workspace: Path, target: ValidationTarget) -> CommandResult:
        config = load_config(workspace)
        orchestrator = (self.factory or _default_factory(self.cancel_event))(workspace, config)
        result = orchestrator.run(target)
        passed = result.status is ValidationStatus.PASSED
        return CommandResult(
            success=passed,
            code=result.status.value.lower(),
            message=f"Validation {target.value}: {result.status.value}",
            data=result.to_dict(),
            artifact=result,
        )


@dataclass(slots=True)
class DiagnoseService:
    """Classify and resolve the errors of a build log."""

    cancel_event: threading.Event = field(default_factory=threading.Event)
    factory: OrchestratorFactory | None = None

    def run(self, *, workspace: Path, log_file: Path) -> CommandResult:
        config = load_config(workspace)
        orchestrator = (self.factory or _default_factory(self.cancel_event))(workspace, config)
        diagnosis = orchestrator.diagnose(log_file)
        return CommandResult(
            success=diagnosis.success,
            code="resolved" if diagnosis.success else "unresolved",
            message=f"Resolution success rate {diagnosis.success_rate:.1%}",
            data=diagnosis.to_dict(),
            artifact=diagnosis,
        )


@dataclass(slots=True)
class HealthService:
    """Check the running system."""

    cancel_event: threading.Event = field(default_factory=threading.Event)
    factory: OrchestratorFactory | None = None

    def run(self, *, workspace: Path) -> CommandResult:
        config = load_config(workspace)
        orchestrator = (self.factory or _default_factory(self.cancel_event))(workspace, config)
        status = orchestrator.check_health()
        healthy = status.overall is HealthState.HEALTHY
        return CommandResult(
            success=healthy,
            code=status.overall.value.lower(),
            message=f"Overall health: {status.overall.value}",
            data=status.to_dict(),
            artifact=status,
        )
