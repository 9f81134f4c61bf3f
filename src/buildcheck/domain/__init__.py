"""Domain model: error taxonomy, status escalation and result envelopes."""

from .errors import (
    BuildCheckDomainError,
    ConfigurationLoadError,
    PipelineCancelledError,
    WorkspaceNotFoundError,
)
from .results import BuildValidationResult, CommandResult, PhaseResult
from .status import escalate, status_from_errors
from .taxonomy import BuildError, ErrorCategory, ErrorSeverity, ValidationStatus

__all__ = [
    "BuildCheckDomainError",
    "BuildError",
    "BuildValidationResult",
    "CommandResult",
    "ConfigurationLoadError",
    "ErrorCategory",
    "ErrorSeverity",
    "PhaseResult",
    "PipelineCancelledError",
    "ValidationStatus",
    "WorkspaceNotFoundError",
    "escalate",
    "status_from_errors",
]
