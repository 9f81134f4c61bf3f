"""
Runtime Exception Handler

Turns exceptions raised while serving requests into the structured error
response clients receive, using the same classifier as the build pipeline.
Stack traces never reach the response; resolution suggestions are only added
outside production.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from buildcheck.classification import ErrorClassifier
from buildcheck.domain.taxonomy import BuildError, ErrorCategory, ErrorSeverity

from .recovery import DEFAULT_RECOVERY_HANDLERS, RecoveryHandler, attempt_recovery

logger = logging.getLogger(__name__)

C = ErrorCategory

ERROR_CODES: dict[ErrorCategory, str] = {
    C.AUTHENTICATION: "UNAUTHORIZED",
    C.DATABASE_CONNECTIVITY: "SERVICE_UNAVAILABLE",
    C.NETWORK_CONNECTIVITY: "NETWORK_ERROR",
    C.CONFIGURATION_ERROR: "VALIDATION_ERROR",
    C.RUNTIME_EXCEPTION: "SERVER_ERROR",
}

STATUS_CODES: dict[ErrorCategory, int] = {
    C.AUTHENTICATION: 401,
    C.CONFIGURATION_ERROR: 400,
    C.DATABASE_CONNECTIVITY: 503,
    C.NETWORK_CONNECTIVITY: 502,
}

USER_MESSAGES: dict[ErrorCategory, str] = {
    C.AUTHENTICATION: "Authentication failed. Please log in again.",
    C.DATABASE_CONNECTIVITY: "The service is temporarily unavailable. Please try again later.",
    C.NETWORK_CONNECTIVITY: "A network error occurred. Please check your connection and retry.",
    C.CONFIGURATION_ERROR: "The request could not be processed. Please check your input.",
    C.ENVIRONMENT_CONFIGURATION: "The service is misconfigured. Please contact support.",
    C.RUNTIME_EXCEPTION: "An unexpected error occurred. Please try again.",
}
DEFAULT_USER_MESSAGE = "An unexpected error occurred. Please try again."

RESOLUTION_SUGGESTIONS: dict[ErrorCategory, list[str]] = {
    C.AUTHENTICATION: [
        "Check that the JWT token has not expired",
        "Verify Jwt__Key, Jwt__Issuer and Jwt__Audience match the issuing service",
    ],
    C.DATABASE_CONNECTIVITY: [
        "Verify the database server is running",
        "Check ConnectionStrings__DefaultConnection",
    ],
    C.NETWORK_CONNECTIVITY: [
        "Verify the downstream service is reachable",
        "Check firewall and proxy settings",
    ],
    C.CONFIGURATION_ERROR: [
        "Review the validation errors for the offending fields",
    ],
    C.ENVIRONMENT_CONFIGURATION: [
        "Check that required files and directories exist",
        "Verify environment variables are set",
    ],
}

_LOG_LEVELS = {
    ErrorSeverity.CRITICAL: logging.CRITICAL,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.LOW: logging.INFO,
}


@dataclass(slots=True)
class ErrorResponse:
    """Client-facing error body plus the HTTP status it is sent with"""

    error: str
    message: str
    category: str
    status_code: int
    trace_id: str
    request_path: str = ""
    errors: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    recovery_attempted: bool = False
    recovery_successful: bool = False
    resolution_suggestions: list[str] | None = None
    success: bool = False

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "success": self.success,
            "error": self.error,
            "message": self.message,
            "category": self.category,
            "errors": list(self.errors),
            "timestamp": self.timestamp.isoformat(),
            "requestPath": self.request_path,
            "traceId": self.trace_id,
            "recoveryAttempted": self.recovery_attempted,
            "recoverySuccessful": self.recovery_successful,
        }
        if self.resolution_suggestions is not None:
            body["resolutionSuggestions"] = list(self.resolution_suggestions)
        return body


def new_trace_id() -> str:
    return uuid.uuid4().hex[:16]


class RuntimeExceptionHandler:
    """Classify, recover from and render request-time exceptions.

    Attributes:
        classifier: Shared error classifier
        recovery_handlers: Ordered recovery handlers
        production: Hide resolution suggestions when True
    """

    def __init__(
        self,
        classifier: ErrorClassifier | None = None,
        recovery_handlers: tuple[RecoveryHandler, ...] = DEFAULT_RECOVERY_HANDLERS,
        production: bool = False,
    ) -> None:
        self.classifier = classifier or ErrorClassifier()
        self.recovery_handlers = recovery_handlers
        self.production = production

    def handle(self, exc: BaseException, request_path: str = "") -> ErrorResponse:
        """Build the response for ``exc``; falls back to SYSTEM_ERROR if that fails."""
        trace_id = new_trace_id()
        try:
            error = self.classifier.classify_exception(exc, source=request_path)
            self._log(error, trace_id)
            outcome = attempt_recovery(exc, self.recovery_handlers)
            return self.build_response(
                error,
                request_path=request_path,
                trace_id=trace_id,
                recovery_attempted=outcome.attempted,
                recovery_successful=outcome.successful,
            )
        except Exception:
            logger.exception("Exception handler failed (trace %s)", trace_id)
            return self.fallback_response(request_path, trace_id)

    def build_response(
        self,
        error: BuildError,
        request_path: str,
        trace_id: str,
        recovery_attempted: bool = False,
        recovery_successful: bool = False,
    ) -> ErrorResponse:
        category = error.category
        suggestions = None
        if not self.production:
            suggestions = RESOLUTION_SUGGESTIONS.get(category, [error.resolution_hint])
        return ErrorResponse(
            error=ERROR_CODES.get(category, "UNKNOWN_ERROR"),
            message=USER_MESSAGES.get(category, DEFAULT_USER_MESSAGE),
            category=category.value,
            status_code=STATUS_CODES.get(category, 500),
            trace_id=trace_id,
            request_path=request_path,
            errors=list(error.additional_data.get("validation_errors", [])),
            recovery_attempted=recovery_attempted,
            recovery_successful=recovery_successful,
            resolution_suggestions=suggestions,
        )

    @staticmethod
    def fallback_response(request_path: str = "", trace_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            error="SYSTEM_ERROR",
            message="A system error occurred. Please try again later.",
            category=ErrorCategory.SYSTEM_ERROR.value,
            status_code=500,
            trace_id=trace_id or new_trace_id(),
            request_path=request_path,
        )

    @staticmethod
    def _log(error: BuildError, trace_id: str) -> None:
        logger.log(
            _LOG_LEVELS[error.severity],
            "[%s] %s at %s: %s",
            trace_id,
            error.category,
            error.source,
            error.message,
        )
