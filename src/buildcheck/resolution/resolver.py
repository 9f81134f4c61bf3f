"""
Error Resolver

Groups errors by category and hands each group to the registered strategy.
Groups without a strategy are reported unresolved, never dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from buildcheck.domain.taxonomy import BuildError, ErrorCategory

from .base import CategoryResolutionResult, CompilationResolutionResult
from .registry import StrategyRegistry

logger = logging.getLogger(__name__)


def group_by_category(errors: Iterable[BuildError]) -> dict[ErrorCategory, list[BuildError]]:
    """Group errors by category, preserving first-seen category order."""
    groups: dict[ErrorCategory, list[BuildError]] = {}
    for error in errors:
        groups.setdefault(error.category, []).append(error)
    return groups


class ErrorResolver:
    """Dispatch errors to category strategies"""

    def __init__(self, registry: StrategyRegistry) -> None:
        self.registry = registry

    def resolve(self, errors: Iterable[BuildError]) -> CompilationResolutionResult:
        result = CompilationResolutionResult()

        for category, group in group_by_category(errors).items():
            strategy = self.registry.get(category)
            if strategy is None:
                logger.warning("No resolution strategy available for category: %s", category)
                result.add(CategoryResolutionResult(category=category, unresolved_errors=group))
                continue

            try:
                category_result = strategy.resolve(group)
            except Exception as e:
                logger.error("Resolution strategy for %s failed: %s", category, e)
                category_result = CategoryResolutionResult(
                    category=category, unresolved_errors=list(group)
                )
            result.add(category_result)

        return result.finish()
