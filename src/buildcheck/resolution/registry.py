"""
Strategy Registry

Maps each error category to the strategy that resolves it. Registries are
ordinary objects built by the caller and handed to the resolver; there is no
process-wide instance.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from buildcheck.domain.taxonomy import ErrorCategory

from .base import ResolutionStrategy
from .strategies import (
    CompilationErrorStrategy,
    ConfigurationErrorStrategy,
    FrameworkCompatibilityStrategy,
    PackageReferenceStrategy,
    ProjectReferenceStrategy,
)

if TYPE_CHECKING:
    from buildcheck.config import BuildCheckConfig
    from buildcheck.core.process import ProcessRunner

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Registry of resolution strategies keyed by category"""

    def __init__(self, strategies: list[ResolutionStrategy] | None = None) -> None:
        self.strategies: dict[ErrorCategory, ResolutionStrategy] = {}
        for strategy in strategies or []:
            self.register(strategy)

    def register(self, strategy: ResolutionStrategy) -> None:
        """
        Register a strategy

        Args:
            strategy: Strategy to register

        Raises:
            ValueError: If a strategy for the same category is already registered
        """
        if strategy.category in self.strategies:
            raise ValueError(
                f"Strategy for category '{strategy.category}' is already registered"
            )

        self.strategies[strategy.category] = strategy
        logger.debug("Registered resolution strategy for %s", strategy.category)

    def get(self, category: ErrorCategory) -> ResolutionStrategy | None:
        return self.strategies.get(category)

    def get_all(self) -> list[ResolutionStrategy]:
        return list(self.strategies.values())

    def categories(self) -> list[ErrorCategory]:
        return list(self.strategies.keys())

    def has(self, category: ErrorCategory) -> bool:
        return category in self.strategies

    def unregister(self, category: ErrorCategory) -> None:
        self.strategies.pop(category, None)

    def clear(self) -> None:
        self.strategies.clear()


def default_registry(
    workspace: Path, config: BuildCheckConfig, runner: ProcessRunner
) -> StrategyRegistry:
    """Registry with the built-in strategies for a workspace."""
    return StrategyRegistry(
        [
            PackageReferenceStrategy(workspace=workspace, config=config.projects, runner=runner),
            ProjectReferenceStrategy(workspace=workspace, config=config.projects),
            CompilationErrorStrategy(workspace=workspace),
            FrameworkCompatibilityStrategy(
                workspace=workspace, target_framework=config.projects.target_framework
            ),
            ConfigurationErrorStrategy(workspace=workspace),
        ]
    )
