"""Validation phases and the runner that executes them."""

from .base import PhaseContext, ValidationPhase, run_phase
from .compilation import CompilationPhase
from .dependencies import DependenciesPhase
from .docker import DockerPhase
from .environment import EnvironmentPhase
from .references import ProjectReferencesPhase

__all__ = [
    "CompilationPhase",
    "DependenciesPhase",
    "DockerPhase",
    "EnvironmentPhase",
    "PhaseContext",
    "ProjectReferencesPhase",
    "ValidationPhase",
    "build_phases",
    "run_phase",
]


def build_phases() -> list[ValidationPhase]:
    """All validation phases in dependency order."""
    return [
        DependenciesPhase(),
        ProjectReferencesPhase(),
        CompilationPhase(),
        DockerPhase(),
        EnvironmentPhase(),
    ]
