"""
Error Classifier

Best-effort triage of raw error text and live exceptions into
(ErrorCategory, ErrorSeverity), plus the informational resolution hint for the
category. Classification is total: every input maps to exactly one category,
defaulting to Unknown.
"""

from __future__ import annotations

from typing import Any

import requests
from pydantic import ValidationError

from buildcheck.domain.taxonomy import BuildError, ErrorCategory, ErrorSeverity

from .rules import ClassificationRules

# DB-API 2.0 exception names shared by sqlite3, psycopg, pymysql and friends.
_DB_API_ERROR_NAMES = frozenset({"DatabaseError", "OperationalError", "InterfaceError"})

_AUTH_MESSAGE_MARKERS = ("jwt", "bearer token")

# Checked in order; the first isinstance match wins.
_EXCEPTION_CATEGORIES: tuple[tuple[tuple[type[BaseException], ...], ErrorCategory], ...] = (
    ((PermissionError,), ErrorCategory.AUTHENTICATION),
    ((TimeoutError, requests.Timeout), ErrorCategory.NETWORK_CONNECTIVITY),
    ((ConnectionError, requests.ConnectionError), ErrorCategory.NETWORK_CONNECTIVITY),
    ((ValidationError,), ErrorCategory.CONFIGURATION_ERROR),
    ((FileNotFoundError, NotADirectoryError), ErrorCategory.ENVIRONMENT_CONFIGURATION),
)


def is_database_error(exc: BaseException) -> bool:
    """True for any exception whose class hierarchy follows DB-API naming."""
    return any(cls.__name__ in _DB_API_ERROR_NAMES for cls in type(exc).__mro__)


class ErrorClassifier:
    """Classify error text and exceptions using injected rules.

    Attributes:
        rules: The pattern and severity tables in use
    """

    def __init__(self, rules: ClassificationRules | None = None) -> None:
        self.rules = rules or ClassificationRules()
        self._patterns = self.rules.ordered_patterns()

    def classify(self, text: str, source: str = "", **additional_data: Any) -> BuildError:
        """Classify a raw error line or message.

        Args:
            text: Error text, typically one line of tool output
            source: Where the text came from (project, file, phase)
            **additional_data: Extra context stored on the error

        Returns:
            BuildError with category, severity and resolution hint filled in
        """
        category = self.categorize(text)
        return BuildError(
            category=category,
            message=text,
            source=source,
            severity=self.severity_for(text, category),
            resolution_hint=self.hint_for(category),
            additional_data=dict(additional_data),
        )

    def classify_diagnostic(
        self, code: str, message: str, source: str = "", **additional_data: Any
    ) -> BuildError:
        """Classify a coded tool diagnostic such as ``CS0246`` or ``NU1101``.

        The code prefix decides the category when it is known; the message
        text is only consulted for unknown prefixes.
        """
        text = f"{code}: {message}"
        category = self.categorize_code(code) or self.categorize(text)
        return BuildError(
            category=category,
            message=text,
            source=source,
            severity=self.severity_for(text, category),
            resolution_hint=self.hint_for(category),
            additional_data={"code": code, **additional_data},
        )

    def classify_exception(self, exc: BaseException, source: str = "") -> BuildError:
        """Classify a live exception by type rather than text."""
        category = self.categorize_exception(exc)
        data: dict[str, Any] = {"exception_type": f"{type(exc).__module__}.{type(exc).__qualname__}"}
        if isinstance(exc, ValidationError):
            data["validation_errors"] = [
                f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
                for item in exc.errors()
            ]
        return BuildError(
            category=category,
            message=str(exc) or type(exc).__name__,
            source=source or type(exc).__qualname__,
            severity=self.rules.exception_severity.get(category, ErrorSeverity.MEDIUM),
            resolution_hint=self.hint_for(category),
            cause=exc,
            additional_data=data,
        )

    def make_error(
        self,
        category: ErrorCategory,
        message: str,
        source: str = "",
        severity: ErrorSeverity | None = None,
        **additional_data: Any,
    ) -> BuildError:
        """Build an error whose category is already known (phase findings)."""
        if severity is None:
            severity = self.rules.category_severity.get(category, ErrorSeverity.LOW)
        return BuildError(
            category=category,
            message=message,
            source=source,
            severity=severity,
            resolution_hint=self.hint_for(category),
            additional_data=dict(additional_data),
        )

    def categorize(self, text: str) -> ErrorCategory:
        lowered = text.lower()
        for pattern, category in self._patterns:
            if pattern in lowered:
                return category

        for keywords, category in self.rules.fallbacks:
            if any(keyword in lowered for keyword in keywords):
                return category

        return ErrorCategory.UNKNOWN

    def categorize_code(self, code: str) -> ErrorCategory | None:
        upper = code.upper()
        for prefix, category in self.rules.diagnostic_prefixes:
            if upper.startswith(prefix) and upper[len(prefix) :].isdigit():
                return category
        return None

    def categorize_exception(self, exc: BaseException) -> ErrorCategory:
        if is_database_error(exc):
            return ErrorCategory.DATABASE_CONNECTIVITY

        for exception_types, category in _EXCEPTION_CATEGORIES:
            if isinstance(exc, exception_types):
                return category

        if isinstance(exc, RuntimeError):
            lowered = str(exc).lower()
            if any(marker in lowered for marker in _AUTH_MESSAGE_MARKERS):
                return ErrorCategory.AUTHENTICATION

        return ErrorCategory.RUNTIME_EXCEPTION

    def severity_for(self, text: str, category: ErrorCategory) -> ErrorSeverity:
        """Keyword severity first, then the category default."""
        lowered = text.lower()
        for severity, keywords in self.rules.severity_keywords:
            if any(keyword in lowered for keyword in keywords):
                return severity
        return self.rules.category_severity.get(category, ErrorSeverity.LOW)

    def hint_for(self, category: ErrorCategory) -> str:
        return self.rules.resolution_hints.get(
            category, self.rules.resolution_hints.get(ErrorCategory.UNKNOWN, "")
        )
