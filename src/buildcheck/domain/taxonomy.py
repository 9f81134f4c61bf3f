"""
Error Taxonomy

Closed category set, ordered severity scale and the immutable BuildError record
shared by every validation phase, resolution strategy and runtime handler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    """Where a problem comes from"""

    UNKNOWN = "Unknown"
    COMPILATION_ERROR = "CompilationError"
    PACKAGE_REFERENCE = "PackageReference"
    PROJECT_REFERENCE = "ProjectReference"
    FRAMEWORK_COMPATIBILITY = "FrameworkCompatibility"
    DOCKER_BUILD = "DockerBuild"
    DATABASE_CONNECTIVITY = "DatabaseConnectivity"
    AUTHENTICATION = "Authentication"
    NETWORK_CONNECTIVITY = "NetworkConnectivity"
    ENVIRONMENT_CONFIGURATION = "EnvironmentConfiguration"
    CONFIGURATION_ERROR = "ConfigurationError"
    RUNTIME_EXCEPTION = "RuntimeException"
    SYSTEM_ERROR = "SystemError"


class ErrorSeverity(IntEnum):
    """How bad a problem is. Totally ordered so escalation can use >=."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.title()


class ValidationStatus(StrEnum):
    """Terminal state of a phase, tier or aggregate"""

    PASSED = "Passed"
    FAILED = "Failed"
    ERROR = "Error"
    SKIPPED = "Skipped"


@dataclass(frozen=True, slots=True)
class BuildError:
    """A single classified problem.

    Immutable once created. ``cause`` keeps the underlying exception when the
    error was produced from one; it is never serialized.
    """

    category: ErrorCategory
    message: str
    source: str = ""
    severity: ErrorSeverity = ErrorSeverity.LOW
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    resolution_hint: str = ""
    cause: BaseException | None = field(default=None, compare=False, repr=False)
    additional_data: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_blocking(self) -> bool:
        """True when the error alone fails its phase"""
        return self.severity >= ErrorSeverity.HIGH

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "source": self.source,
            "severity": self.severity.label,
            "timestamp": self.timestamp.isoformat(),
            "resolutionStrategyHint": self.resolution_hint,
            "additionalData": {key: str(value) for key, value in self.additional_data.items()},
        }
