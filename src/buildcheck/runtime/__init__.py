"""Request-time exception classification, recovery and responses."""

from .handler import ErrorResponse, RuntimeExceptionHandler
from .middleware import install_exception_handler
from .recovery import DEFAULT_RECOVERY_HANDLERS, RecoveryHandler, RecoveryOutcome, attempt_recovery

__all__ = [
    "DEFAULT_RECOVERY_HANDLERS",
    "ErrorResponse",
    "RecoveryHandler",
    "RecoveryOutcome",
    "RuntimeExceptionHandler",
    "attempt_recovery",
    "install_exception_handler",
]
