"""Domain error taxonomy for failures outside the validation result model."""

from dataclasses import dataclass


@dataclass(slots=True)
class BuildCheckDomainError(Exception):
    """Base class for application/domain-level failures."""

    message: str
    code: str

    def __str__(self) -> str:
        return self.message


class ConfigurationLoadError(BuildCheckDomainError):
    """Raised when .buildcheck/config.json cannot be read or validated."""


class WorkspaceNotFoundError(BuildCheckDomainError):
    """Raised when the requested workspace directory does not exist."""


class PipelineCancelledError(BuildCheckDomainError):
    """Raised at a suspension point once cancellation has been requested."""
