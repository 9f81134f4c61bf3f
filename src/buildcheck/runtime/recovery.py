"""
Recovery handlers for request-time exceptions.

Each handler recognizes a family of exceptions and performs one bounded
recovery action, reporting whether it was attempted and whether it worked.
Database failures are never reported as recovered: they need an operator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import requests
from pydantic import ValidationError

from buildcheck.classification.classifier import is_database_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecoveryOutcome:
    attempted: bool
    successful: bool
    action: str = ""


NOT_ATTEMPTED = RecoveryOutcome(attempted=False, successful=False)


@dataclass(frozen=True, slots=True)
class RecoveryHandler:
    """Recovery action for exceptions accepted by ``matches``."""

    name: str
    matches: Callable[[BaseException], bool]
    action: str
    successful: bool

    def recover(self, exc: BaseException) -> RecoveryOutcome:
        logger.info("Recovery (%s) for %s: %s", self.name, type(exc).__name__, self.action)
        return RecoveryOutcome(attempted=True, successful=self.successful, action=self.action)


def _instance_of(*types: type[BaseException]) -> Callable[[BaseException], bool]:
    return lambda exc: isinstance(exc, types)


# First match wins. Timeout precedes Network: requests.ConnectTimeout is both.
DEFAULT_RECOVERY_HANDLERS: tuple[RecoveryHandler, ...] = (
    RecoveryHandler(
        name="Authentication",
        matches=_instance_of(PermissionError),
        action="Authentication state cleared",
        successful=True,
    ),
    RecoveryHandler(
        name="Timeout",
        matches=_instance_of(TimeoutError, requests.Timeout),
        action="Request timeout extended for retry",
        successful=True,
    ),
    RecoveryHandler(
        name="Database",
        matches=is_database_error,
        action="Database connection monitoring initiated",
        successful=False,
    ),
    RecoveryHandler(
        name="Network",
        matches=_instance_of(ConnectionError, requests.ConnectionError),
        action="Network retry policy activated",
        successful=True,
    ),
    RecoveryHandler(
        name="Validation",
        matches=_instance_of(ValidationError),
        action="Validation errors returned to client",
        successful=True,
    ),
    RecoveryHandler(
        name="Operation",
        matches=_instance_of(RuntimeError),
        action="Operation state logged for investigation",
        successful=False,
    ),
)


def attempt_recovery(
    exc: BaseException, handlers: tuple[RecoveryHandler, ...] = DEFAULT_RECOVERY_HANDLERS
) -> RecoveryOutcome:
    for handler in handlers:
        if handler.matches(exc):
            return handler.recover(exc)
    return NOT_ATTEMPTED
