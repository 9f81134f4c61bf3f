"""Docker diagnostics data model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from buildcheck.domain.status import status_from_errors
from buildcheck.domain.taxonomy import BuildError, ValidationStatus


class DockerBuildStage(StrEnum):
    """Point in the container build lifecycle a problem belongs to"""

    UNKNOWN = "Unknown"
    DOCKERFILE = "Dockerfile"
    COMPOSE = "Compose"
    BUILD_CONTEXT = "BuildContext"
    BASE_IMAGE = "BaseImage"
    RESTORE = "Restore"
    BUILD = "Build"
    PUBLISH = "Publish"
    RUNTIME = "Runtime"
    TESTING = "Testing"
    VALIDATION = "Validation"
    MULTI_STAGE = "MultiStage"


@dataclass(frozen=True, slots=True)
class DockerBuildError(BuildError):
    """BuildError tagged with the build stage it belongs to"""

    stage: DockerBuildStage = DockerBuildStage.UNKNOWN

    def to_dict(self) -> dict[str, Any]:
        data = BuildError.to_dict(self)
        data["stage"] = self.stage.value
        return data


@dataclass(slots=True)
class DockerfileAnalysis:
    path: Path
    base_images: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    run_instructions: int = 0
    is_multi_stage: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.issues


@dataclass(slots=True)
class ComposeAnalysis:
    path: Path
    services: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues


@dataclass(slots=True)
class DockerBuildTest:
    dockerfile: Path
    success: bool
    stage: DockerBuildStage = DockerBuildStage.UNKNOWN
    errors: list[DockerBuildError] = field(default_factory=list)
    recommendation: str = ""
    duration: float = 0.0


@dataclass(slots=True)
class DockerValidationResult:
    """Everything the Docker phase found, keyed by file"""

    dockerfiles: dict[str, DockerfileAnalysis] = field(default_factory=dict)
    compose_files: dict[str, ComposeAnalysis] = field(default_factory=dict)
    build_tests: dict[str, DockerBuildTest] = field(default_factory=dict)
    errors: list[BuildError] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def status(self) -> ValidationStatus:
        return status_from_errors(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "dockerfiles": {
                name: {"issues": a.issues, "recommendations": a.recommendations}
                for name, a in self.dockerfiles.items()
            },
            "composeFiles": {
                name: {"services": a.services, "issues": a.issues}
                for name, a in self.compose_files.items()
            },
            "buildTests": {
                name: {"success": t.success, "stage": t.stage.value, "recommendation": t.recommendation}
                for name, t in self.build_tests.items()
            },
            "recommendations": list(self.recommendations),
        }
