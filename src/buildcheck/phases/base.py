"""
Phase runner.

A phase is any object with a ``name`` and an ``execute(result, context)``
method that records errors and warnings on the PhaseResult it is given. The
runner owns the status transition: a fault escaping ``execute`` becomes a
SystemError and the phase ends in Error; otherwise the collected errors decide
between Passed and Failed.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from buildcheck.classification import ErrorClassifier
from buildcheck.config import BuildCheckConfig
from buildcheck.core.process import ProcessRunner
from buildcheck.domain.errors import PipelineCancelledError
from buildcheck.domain.results import PhaseResult
from buildcheck.domain.status import status_from_errors
from buildcheck.domain.taxonomy import ErrorCategory, ErrorSeverity, ValidationStatus
from buildcheck.projects import ProjectFile, discover_projects, load_projects

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PhaseContext:
    """Read-only collaborators shared by every phase of one run"""

    workspace: Path
    config: BuildCheckConfig
    classifier: ErrorClassifier
    runner: ProcessRunner
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))

    def project_paths(self) -> list[Path]:
        projects = self.config.projects
        return discover_projects(
            self.workspace,
            pattern=projects.pattern,
            excluded=projects.excluded_projects,
            skip_directories=projects.skip_directories,
        )

    def load_projects(self, result: PhaseResult) -> list[ProjectFile]:
        """Parse the workspace projects, recording unreadable ones on ``result``."""
        parsed, failures = load_projects(self.project_paths())
        for path, message in failures:
            result.add_error(
                self.classifier.make_error(
                    ErrorCategory.CONFIGURATION_ERROR,
                    message,
                    source=path.stem,
                    severity=ErrorSeverity.HIGH,
                    project=str(path),
                )
            )
        return parsed


class ValidationPhase(Protocol):
    name: str

    def execute(self, result: PhaseResult, context: PhaseContext) -> None: ...


def run_phase(phase: ValidationPhase, context: PhaseContext) -> PhaseResult:
    """Execute one phase and settle its terminal status.

    Raises:
        PipelineCancelledError: Cancellation is never converted into a result
    """
    result = PhaseResult(phase_name=phase.name)
    logger.info("Running %s validation", phase.name)
    try:
        phase.execute(result, context)
    except PipelineCancelledError:
        raise
    except Exception as e:
        logger.exception("%s validation failed", phase.name)
        result.add_error(
            context.classifier.make_error(
                ErrorCategory.SYSTEM_ERROR,
                f"{phase.name} validation failed: {e}",
                source=phase.name,
                severity=ErrorSeverity.CRITICAL,
            )
        )
        return result.finish(ValidationStatus.ERROR)

    return result.finish(status_from_errors(result.errors))
