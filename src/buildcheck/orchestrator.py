"""
Validation Orchestrator

Sequences the validation phases, repairs failing phases through the strategy
registry before moving on, runs the gated test suite and monitoring setup,
and folds everything into one overall status. Faults never escape ``run``:
they are recorded as SystemError entries on the result.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Any

from buildcheck.classification import ErrorClassifier
from buildcheck.config import BuildCheckConfig
from buildcheck.core.process import ProcessRunner
from buildcheck.docker import DockerValidationResult
from buildcheck.domain.errors import PipelineCancelledError
from buildcheck.domain.results import BuildValidationResult, PhaseResult
from buildcheck.domain.status import escalate
from buildcheck.domain.taxonomy import BuildError, ErrorCategory, ErrorSeverity, ValidationStatus
from buildcheck.environment import EnvironmentValidationResult, HealthChecker, SystemHealthStatus
from buildcheck.monitoring import MonitoringConfigurator, MonitoringSetupResult
from buildcheck.phases import PhaseContext, ValidationPhase, build_phases, run_phase
from buildcheck.resolution import (
    CompilationResolutionResult,
    DiagnosisResult,
    ErrorResolver,
    StrategyRegistry,
    default_registry,
    diagnose_log,
)
from buildcheck.runtime import RuntimeExceptionHandler
from buildcheck.testing import ErrorSimulator, GatedTestExecutor, TestSuiteResult

logger = logging.getLogger(__name__)


class ValidationTarget(StrEnum):
    ALL = "all"
    BUILD = "build"
    DOCKER = "docker"
    ENVIRONMENT = "environment"
    TESTING = "test"
    MONITORING = "monitoring"


TARGET_PHASES: dict[ValidationTarget, tuple[str, ...]] = {
    ValidationTarget.ALL: (
        "Dependencies",
        "ProjectReferences",
        "Compilation",
        "Docker",
        "Environment",
    ),
    ValidationTarget.BUILD: ("Dependencies", "ProjectReferences", "Compilation"),
    ValidationTarget.DOCKER: ("Docker",),
    ValidationTarget.ENVIRONMENT: ("Environment",),
    ValidationTarget.TESTING: (),
    ValidationTarget.MONITORING: (),
}


@dataclass(slots=True)
class OrchestrationResult:
    """Everything one orchestration run produced"""

    target: ValidationTarget
    build: BuildValidationResult = field(default_factory=BuildValidationResult)
    resolutions: dict[str, CompilationResolutionResult] = field(default_factory=dict)
    testing: TestSuiteResult | None = None
    monitoring: MonitoringSetupResult | None = None
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration: float = 0.0

    @property
    def status(self) -> ValidationStatus:
        statuses = [self.build.status]
        if self.testing is not None:
            statuses.append(self.testing.status)
        if self.monitoring is not None:
            statuses.append(self.monitoring.validation_status)
        return escalate(statuses)

    @property
    def docker(self) -> DockerValidationResult | None:
        phase = self.build.phases.get("Docker")
        return phase.detail if phase is not None else None

    @property
    def environment(self) -> EnvironmentValidationResult | None:
        phase = self.build.phases.get("Environment")
        return phase.detail if phase is not None else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "target": self.target.value,
            "status": self.status.value,
            "startTime": self.start_time.isoformat(),
            "durationSeconds": round(self.duration, 3),
            "build": self.build.to_dict(),
            "resolutions": {name: r.to_dict() for name, r in self.resolutions.items()},
        }
        if self.docker is not None:
            data["docker"] = self.docker.to_dict()
        if self.environment is not None:
            data["environment"] = self.environment.to_dict()
        if self.testing is not None:
            data["testing"] = self.testing.to_dict()
        if self.monitoring is not None:
            data["monitoring"] = self.monitoring.to_dict()
        return data


class ValidationOrchestrator:
    """Run validation targets against one workspace.

    Every collaborator can be injected; defaults are built from ``config``.

    Attributes:
        workspace: Root of the solution being validated
        config: Loaded configuration
        classifier: Error classifier shared by every phase
        runner: External process runner (carries the cancellation event)
        registry: Resolution strategies keyed by category
        environ: Environment variables under validation
    """

    def __init__(
        self,
        workspace: Path,
        config: BuildCheckConfig | None = None,
        *,
        classifier: ErrorClassifier | None = None,
        registry: StrategyRegistry | None = None,
        runner: ProcessRunner | None = None,
        environ: Mapping[str, str] | None = None,
        cancel_event: threading.Event | None = None,
        phases: list[ValidationPhase] | None = None,
        runtime_handler: RuntimeExceptionHandler | None = None,
    ) -> None:
        self.workspace = workspace
        self.config = config or BuildCheckConfig()
        self.classifier = classifier or ErrorClassifier()
        self.runner = runner or ProcessRunner(cancel_event=cancel_event)
        self.registry = registry or default_registry(workspace, self.config, self.runner)
        self.environ = environ if environ is not None else dict(os.environ)
        self.phases = {phase.name: phase for phase in (phases or build_phases())}
        self.runtime_handler = runtime_handler or RuntimeExceptionHandler(
            classifier=self.classifier, production=self.config.runtime.is_production
        )

    @property
    def resolver(self) -> ErrorResolver:
        return ErrorResolver(self.registry)

    def context(self) -> PhaseContext:
        return PhaseContext(
            workspace=self.workspace,
            config=self.config,
            classifier=self.classifier,
            runner=self.runner,
            environ=self.environ,
        )

    def run(self, target: ValidationTarget = ValidationTarget.ALL) -> OrchestrationResult:
        """Run a target. Always returns a result; never raises."""
        result = OrchestrationResult(target=target)
        started = time.monotonic()
        try:
            self._run_phases(TARGET_PHASES[target], result)
            if target in (ValidationTarget.ALL, ValidationTarget.TESTING):
                self.runner.check_cancelled()
                result.testing = self.run_tests()
            if target in (ValidationTarget.ALL, ValidationTarget.MONITORING):
                self.runner.check_cancelled()
                result.monitoring = self.setup_monitoring()
        except PipelineCancelledError as e:
            logger.warning("Validation cancelled")
            result.build.add_error(self._system_error(e.message))
        except Exception as e:
            logger.exception("Validation pipeline failed")
            result.build.add_error(self._system_error(f"Validation pipeline failed: {e}"))
        result.duration = time.monotonic() - started
        return result

    def _run_phases(self, names: tuple[str, ...], result: OrchestrationResult) -> None:
        context = self.context()
        for name in names:
            self.runner.check_cancelled()
            phase_result = run_phase(self.phases[name], context)
            result.build.add_phase(phase_result)
            resolution = self.resolve_phase(phase_result)
            if resolution is not None:
                result.resolutions[name] = resolution

    def resolve_phase(self, phase_result: PhaseResult) -> CompilationResolutionResult | None:
        """Repair step run after each phase that did not pass."""
        if not self.config.resolution.enabled:
            return None
        if phase_result.status not in (ValidationStatus.FAILED, ValidationStatus.ERROR):
            return None
        logger.info("Attempting resolution of %d errors", len(phase_result.errors))
        return self.resolver.resolve(phase_result.errors)

    def run_tests(self) -> TestSuiteResult:
        executor = GatedTestExecutor(
            workspace=self.workspace,
            config=self.config.testing,
            runner=self.runner,
            classifier=self.classifier,
            simulator=ErrorSimulator(self.runtime_handler),
        )
        return executor.run()

    def setup_monitoring(self) -> MonitoringSetupResult:
        return MonitoringConfigurator(self.workspace, self.config).setup()

    def diagnose(self, log_file: Path) -> DiagnosisResult:
        return diagnose_log(
            log_file,
            classifier=self.classifier,
            resolver=self.resolver,
            threshold=self.config.resolution.success_threshold,
        )

    def check_health(self) -> SystemHealthStatus:
        checker = HealthChecker(
            config=self.config.health,
            environment=self.config.environment,
            runner=self.runner,
            environ=self.environ,
        )
        return checker.check()

    def _system_error(self, message: str) -> BuildError:
        return self.classifier.make_error(
            ErrorCategory.SYSTEM_ERROR,
            message,
            source="Orchestrator",
            severity=ErrorSeverity.CRITICAL,
        )
