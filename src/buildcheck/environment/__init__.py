"""Environment validation and live health checks."""

from .health import ComponentHealth, HealthChecker, HealthState, SystemHealthStatus
from .validator import (
    ComponentValidationResult,
    EnvironmentValidationResult,
    EnvironmentValidator,
)

__all__ = [
    "ComponentHealth",
    "ComponentValidationResult",
    "EnvironmentValidationResult",
    "EnvironmentValidator",
    "HealthChecker",
    "HealthState",
    "SystemHealthStatus",
]
