"""Typed result envelopes used by the pipeline, CLI and SDK entrypoints."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .status import escalate
from .taxonomy import BuildError, ErrorSeverity, ValidationStatus

SYSTEM_PHASE = "System"


@dataclass(slots=True)
class CommandResult:
    """Common command/service response payload.

    ``artifact`` carries the rich domain object for callers that render it
    (the CLI); it is not part of the machine-readable structure.
    """

    success: bool
    code: str = "ok"
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    artifact: Any = field(default=None, repr=False)

    def as_json_dict(self) -> dict[str, Any]:
        """Return a stable machine-readable structure."""
        return {
            "success": self.success,
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


@dataclass(slots=True)
class PhaseResult:
    """Outcome of one validation phase.

    Created when the phase starts and mutated only by the phase body;
    ``finish`` records the terminal status and duration.
    """

    phase_name: str
    status: ValidationStatus = ValidationStatus.SKIPPED
    errors: list[BuildError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration: float = 0.0
    detail: Any = field(default=None, repr=False)
    _started: float = field(default_factory=time.monotonic, repr=False)

    def add_error(self, error: BuildError) -> None:
        self.errors.append(error)

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def finish(self, status: ValidationStatus) -> PhaseResult:
        self.status = status
        self.duration = time.monotonic() - self._started
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "phaseName": self.phase_name,
            "status": self.status.value,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": list(self.warnings),
            "startTime": self.start_time.isoformat(),
            "durationSeconds": round(self.duration, 3),
        }


@dataclass(slots=True)
class BuildValidationResult:
    """Phase results keyed by phase name, in execution order."""

    phases: dict[str, PhaseResult] = field(default_factory=dict)
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def status(self) -> ValidationStatus:
        return escalate(phase.status for phase in self.phases.values())

    def add_phase(self, phase: PhaseResult) -> None:
        self.phases[phase.phase_name] = phase

    def add_error(self, error: BuildError) -> None:
        """Record an error that belongs to no phase (pipeline-level fault)."""
        system = self.phases.get(SYSTEM_PHASE)
        if system is None:
            system = PhaseResult(phase_name=SYSTEM_PHASE)
            self.phases[SYSTEM_PHASE] = system
        system.add_error(error)
        system.finish(ValidationStatus.ERROR)

    def all_errors(self) -> list[BuildError]:
        return [error for phase in self.phases.values() for error in phase.errors]

    def critical_errors(self) -> list[BuildError]:
        return [e for e in self.all_errors() if e.severity == ErrorSeverity.CRITICAL]

    def high_severity_errors(self) -> list[BuildError]:
        return [e for e in self.all_errors() if e.severity >= ErrorSeverity.HIGH]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "startTime": self.start_time.isoformat(),
            "phases": [phase.to_dict() for phase in self.phases.values()],
        }
