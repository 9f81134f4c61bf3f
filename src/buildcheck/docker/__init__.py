"""Container build diagnostics."""

from .diagnostics import (
    STAGE_RECOMMENDATIONS,
    DockerDiagnostics,
    determine_failure_stage,
)
from .models import (
    ComposeAnalysis,
    DockerBuildError,
    DockerBuildStage,
    DockerBuildTest,
    DockerfileAnalysis,
    DockerValidationResult,
)

__all__ = [
    "STAGE_RECOMMENDATIONS",
    "ComposeAnalysis",
    "DockerBuildError",
    "DockerBuildStage",
    "DockerBuildTest",
    "DockerDiagnostics",
    "DockerValidationResult",
    "DockerfileAnalysis",
    "determine_failure_stage",
]
