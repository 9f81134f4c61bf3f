"""
Status escalation.

Aggregation is a fold over the scale Error > Failed > Passed. Skipped is the
identity element: it never changes the accumulated status, so a parent is only
Skipped when every child is.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import reduce

from .taxonomy import BuildError, ErrorCategory, ValidationStatus

_RANK: dict[ValidationStatus, int] = {
    ValidationStatus.SKIPPED: 0,
    ValidationStatus.PASSED: 1,
    ValidationStatus.FAILED: 2,
    ValidationStatus.ERROR: 3,
}


def worse(left: ValidationStatus, right: ValidationStatus) -> ValidationStatus:
    """Return the worse of two statuses (Skipped is neutral)."""
    return left if _RANK[left] >= _RANK[right] else right


def escalate(statuses: Iterable[ValidationStatus]) -> ValidationStatus:
    """Fold child statuses into the parent status."""
    return reduce(worse, statuses, ValidationStatus.SKIPPED)


def status_from_errors(errors: Iterable[BuildError]) -> ValidationStatus:
    """Terminal status implied by the errors a phase collected.

    SystemError entries mean the validation logic itself broke (Error); any
    other error at High or above means a real problem was found (Failed).
    """
    status = ValidationStatus.PASSED
    for error in errors:
        if error.category is ErrorCategory.SYSTEM_ERROR:
            return ValidationStatus.ERROR
        if error.is_blocking:
            status = ValidationStatus.FAILED
    return status
