"""
Resolution contracts.

A strategy is any object with a ``category`` and a ``resolve(errors)`` method;
there is no base class to inherit. ``resolve_each`` implements the shared
per-error loop so a failure on one error never blocks the next.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from buildcheck.domain.taxonomy import BuildError, ErrorCategory

logger = logging.getLogger(__name__)

# Returns a description of the fix applied, or None when nothing could be done.
FixAttempt = Callable[[BuildError], str | None]


@dataclass(slots=True)
class CategoryResolutionResult:
    """Outcome of resolving one category's batch of errors"""

    category: ErrorCategory
    resolved_errors: list[BuildError] = field(default_factory=list)
    unresolved_errors: list[BuildError] = field(default_factory=list)
    resolution_actions: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.resolved_errors) + len(self.unresolved_errors)

    def mark_resolved(self, error: BuildError, action: str) -> None:
        self.resolved_errors.append(error)
        self.resolution_actions.append(action)

    def mark_unresolved(self, error: BuildError) -> None:
        self.unresolved_errors.append(error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "resolved": len(self.resolved_errors),
            "unresolved": len(self.unresolved_errors),
            "resolutionActions": list(self.resolution_actions),
        }


@dataclass(slots=True)
class CompilationResolutionResult:
    """Aggregate over every category touched by one resolution run"""

    category_results: dict[ErrorCategory, CategoryResolutionResult] = field(default_factory=dict)
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration: float = 0.0
    _started: float = field(default_factory=time.monotonic, repr=False)

    @property
    def resolved_errors(self) -> list[BuildError]:
        return [e for r in self.category_results.values() for e in r.resolved_errors]

    @property
    def unresolved_errors(self) -> list[BuildError]:
        return [e for r in self.category_results.values() for e in r.unresolved_errors]

    @property
    def total_errors(self) -> int:
        return sum(result.total for result in self.category_results.values())

    @property
    def success_rate(self) -> float:
        """resolved / total, and 1.0 for an empty run"""
        total = self.total_errors
        if total == 0:
            return 1.0
        return len(self.resolved_errors) / total

    @property
    def actions(self) -> list[str]:
        return [a for r in self.category_results.values() for a in r.resolution_actions]

    def add(self, result: CategoryResolutionResult) -> None:
        self.category_results[result.category] = result

    def finish(self) -> CompilationResolutionResult:
        self.duration = time.monotonic() - self._started
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalErrors": self.total_errors,
            "resolvedErrors": len(self.resolved_errors),
            "unresolvedErrors": len(self.unresolved_errors),
            "successRate": round(self.success_rate, 4),
            "categories": [r.to_dict() for r in self.category_results.values()],
            "durationSeconds": round(self.duration, 3),
        }


@runtime_checkable
class ResolutionStrategy(Protocol):
    """Capability: attempt automated fixes for one error category."""

    category: ErrorCategory

    def resolve(self, errors: list[BuildError]) -> CategoryResolutionResult: ...


def resolve_each(
    category: ErrorCategory, errors: list[BuildError], attempt: FixAttempt
) -> CategoryResolutionResult:
    """Attempt every error independently.

    A fix that raises counts as unresolved for that error only.
    """
    result = CategoryResolutionResult(category=category)
    for error in errors:
        try:
            action = attempt(error)
        except Exception as e:
            logger.warning("Resolution attempt failed for %r: %s", error.message, e)
            action = None
        if action:
            result.mark_resolved(error, action)
        else:
            result.mark_unresolved(error)
    return result
