"""
Docker Build Diagnostics

Static analysis of Dockerfiles, compose files and build contexts, plus
stage-aware classification of real ``docker build`` output.
"""

from __future__ import annotations

import json
import logging
import re
import shlex
from pathlib import Path

import yaml

from buildcheck.classification import ErrorClassifier
from buildcheck.config import DockerConfig
from buildcheck.core.process import ProcessRunner
from buildcheck.domain.taxonomy import ErrorCategory, ErrorSeverity
from buildcheck.projects import is_build_summary

from .models import (
    ComposeAnalysis,
    DockerBuildError,
    DockerBuildStage,
    DockerBuildTest,
    DockerfileAnalysis,
    DockerValidationResult,
)

logger = logging.getLogger(__name__)

# Case-sensitive, checked in priority order; first hit names the failed stage.
STAGE_KEYWORDS: tuple[tuple[str, DockerBuildStage], ...] = (
    ("FROM", DockerBuildStage.BASE_IMAGE),
    ("restore", DockerBuildStage.RESTORE),
    ("build", DockerBuildStage.BUILD),
    ("publish", DockerBuildStage.PUBLISH),
    ("ENTRYPOINT", DockerBuildStage.RUNTIME),
)

STAGE_RECOMMENDATIONS: dict[DockerBuildStage, str] = {
    DockerBuildStage.BASE_IMAGE: "Verify base image availability and version",
    DockerBuildStage.RESTORE: "Check NuGet sources and network connectivity",
    DockerBuildStage.BUILD: "Review compilation errors and file paths",
    DockerBuildStage.PUBLISH: "Verify output paths and permissions",
    DockerBuildStage.RUNTIME: "Check ENTRYPOINT and runtime configuration",
}
DEFAULT_RECOMMENDATION = "Review Docker build output for specific errors"

# Container-specific output patterns, checked before the general table.
OUTPUT_PATTERNS: tuple[tuple[str, ErrorCategory], ...] = (
    ("copy failed", ErrorCategory.DOCKER_BUILD),
    ("no such file", ErrorCategory.DOCKER_BUILD),
    ("permission denied", ErrorCategory.ENVIRONMENT_CONFIGURATION),
    ("network timeout", ErrorCategory.NETWORK_CONNECTIVITY),
)

_WILDCARD = re.compile(r"[*?\[]")


def determine_failure_stage(output: str) -> DockerBuildStage:
    for keyword, stage in STAGE_KEYWORDS:
        if keyword in output:
            return stage
    return DockerBuildStage.UNKNOWN


def output_severity(line: str) -> ErrorSeverity:
    lowered = line.lower()
    if "fatal" in lowered or "critical" in lowered:
        return ErrorSeverity.CRITICAL
    if "error" in lowered:
        return ErrorSeverity.HIGH
    if "warning" in lowered:
        return ErrorSeverity.MEDIUM
    return ErrorSeverity.LOW


def _logical_lines(text: str) -> list[str]:
    """Dockerfile lines with continuations joined and comments dropped."""
    lines: list[str] = []
    pending = ""
    for raw in text.splitlines():
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if stripped.endswith("\\"):
            pending += stripped[:-1] + " "
            continue
        lines.append(pending + stripped)
        pending = ""
    if pending.strip():
        lines.append(pending.strip())
    return lines


def _copy_arguments(arguments: str) -> list[str]:
    if arguments.startswith("["):
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError:
            return []
        return [str(part) for part in parsed]
    try:
        return shlex.split(arguments)
    except ValueError:
        return arguments.split()


def _is_unpinned(image: str) -> bool:
    if "@" in image:
        return False
    name = image.rsplit("/", 1)[-1]
    if ":" not in name:
        return True
    return name.rsplit(":", 1)[1] == "latest"


class DockerDiagnostics:
    """Analyze container build inputs and outputs for one workspace.

    Attributes:
        workspace: Build context root (``docker build`` runs from here)
        config: Docker section of the configuration
        classifier: Shared classifier for generic error lines
        runner: External process runner for the container engine
    """

    def __init__(
        self,
        workspace: Path,
        config: DockerConfig,
        classifier: ErrorClassifier,
        runner: ProcessRunner,
    ) -> None:
        self.workspace = workspace
        self.config = config
        self.classifier = classifier
        self.runner = runner

    def find_dockerfiles(self) -> list[Path]:
        return self._find(self.config.dockerfile_pattern)

    def find_compose_files(self) -> list[Path]:
        return self._find(self.config.compose_pattern)

    def _find(self, pattern: str) -> list[Path]:
        skipped = {"bin", "obj", "node_modules", ".git"}
        return sorted(
            path
            for path in self.workspace.rglob(pattern)
            if path.is_file() and not skipped.intersection(path.relative_to(self.workspace).parts)
        )

    def validate(self) -> DockerValidationResult:
        """Run every Docker check for the workspace."""
        result = DockerValidationResult()

        dockerfiles = self.find_dockerfiles()
        if not dockerfiles:
            result.errors.append(
                self._error(
                    "No Dockerfile found in workspace",
                    DockerBuildStage.DOCKERFILE,
                    severity=ErrorSeverity.HIGH,
                )
            )

        for dockerfile in dockerfiles:
            name = self._relative(dockerfile)
            analysis = self.analyze_dockerfile(dockerfile)
            result.dockerfiles[name] = analysis
            for issue in analysis.issues:
                result.errors.append(
                    self._error(issue, DockerBuildStage.DOCKERFILE, source=name)
                )
            result.recommendations.extend(analysis.recommendations)

        for compose_file in self.find_compose_files():
            name = self._relative(compose_file)
            compose = self.analyze_compose(compose_file)
            result.compose_files[name] = compose
            for issue in compose.issues:
                result.errors.append(self._error(issue, DockerBuildStage.COMPOSE, source=name))
            result.recommendations.extend(compose.recommendations)

        result.recommendations.extend(self.analyze_build_context())

        if dockerfiles and self.config.build_test:
            if not self.is_engine_available():
                result.errors.append(
                    self._error(
                        "Docker is not available for build testing",
                        DockerBuildStage.TESTING,
                        severity=ErrorSeverity.HIGH,
                    )
                )
            else:
                for dockerfile in dockerfiles:
                    test = self.test_build(dockerfile)
                    result.build_tests[self._relative(dockerfile)] = test
                    result.errors.extend(test.errors)
                    if test.recommendation:
                        result.recommendations.append(test.recommendation)

        return result

    def analyze_dockerfile(self, path: Path) -> DockerfileAnalysis:
        """Static checks on one Dockerfile; no container engine involved."""
        analysis = DockerfileAnalysis(path=path)
        context = self.workspace
        stage_aliases: set[str] = set()
        has_from = False
        has_workdir = False
        run_streak = 0
        max_run_streak = 0

        for line in _logical_lines(path.read_text(encoding="utf-8", errors="replace")):
            instruction, _, arguments = line.partition(" ")
            instruction = instruction.upper()
            arguments = arguments.strip()

            if instruction == "RUN":
                analysis.run_instructions += 1
                run_streak += 1
                max_run_streak = max(max_run_streak, run_streak)
            else:
                run_streak = 0

            if instruction == "FROM":
                has_from = True
                self._check_from(arguments, analysis, stage_aliases)
            elif instruction in ("COPY", "ADD"):
                self._check_copy(instruction, arguments, analysis, context)
            elif instruction == "WORKDIR":
                has_workdir = True

        if not has_from:
            analysis.issues.append("No FROM instruction found")
        if max_run_streak > self.config.max_run_instructions:
            analysis.recommendations.append("Consider combining RUN instructions to reduce layers")
        if has_from and not has_workdir:
            analysis.recommendations.append("Consider setting WORKDIR for clarity")
        analysis.is_multi_stage = len(analysis.base_images) > 1
        return analysis

    @staticmethod
    def _check_from(
        arguments: str, analysis: DockerfileAnalysis, stage_aliases: set[str]
    ) -> None:
        parts = [part for part in arguments.split() if not part.startswith("--")]
        if not parts:
            analysis.issues.append("Invalid FROM instruction")
            return
        image = parts[0]
        analysis.base_images.append(image)
        if len(parts) >= 3 and parts[1].upper() == "AS":
            stage_aliases.add(parts[2].lower())
        if image.lower() in stage_aliases or image == "scratch":
            return
        if _is_unpinned(image):
            analysis.recommendations.append(f"Consider explicit tag for: {image}")

    @staticmethod
    def _check_copy(
        instruction: str, arguments: str, analysis: DockerfileAnalysis, context: Path
    ) -> None:
        parts = _copy_arguments(arguments)
        from_stage = any(part.startswith("--from") for part in parts)
        parts = [part for part in parts if not part.startswith("--")]
        if len(parts) < 2:
            analysis.issues.append(f"Invalid {instruction} instruction")
            return
        if from_stage:
            return

        for source in parts[:-1]:
            if instruction == "ADD" and re.match(r"^[a-z]+://", source):
                continue
            if source.startswith("/") or ".." in Path(source).parts:
                analysis.issues.append(f"{instruction} source should be relative: {source}")
            elif not _WILDCARD.search(source) and not (context / source).exists():
                analysis.issues.append(f"{instruction} source not found: {source}")

    def analyze_compose(self, path: Path) -> ComposeAnalysis:
        analysis = ComposeAnalysis(path=path)
        text = path.read_text(encoding="utf-8", errors="replace")
        if not text.strip():
            analysis.issues.append("Compose file is empty")
            return analysis

        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            analysis.issues.append(f"Invalid compose file: {e}")
            return analysis

        if not isinstance(document, dict):
            analysis.issues.append("Compose file must be a mapping")
            return analysis
        if "version" in document:
            analysis.recommendations.append(
                "The top-level 'version' key is obsolete and can be removed"
            )

        services = document.get("services")
        if not isinstance(services, dict) or not services:
            analysis.issues.append("No services defined")
            return analysis

        for name, service in services.items():
            analysis.services.append(str(name))
            service = {} if service is None else service
            if not isinstance(service, dict):
                analysis.issues.append(f"Service {name} must be a mapping")
                continue
            build = service.get("build")
            if build is None and "image" not in service:
                analysis.issues.append(f"Service {name} defines neither image nor build")
                continue
            if build is None:
                continue
            if not isinstance(build, (str, dict)):
                analysis.issues.append(f"Service {name} build must be a path or a mapping")
                continue
            build_context = build if isinstance(build, str) else build.get("context", ".")
            if not (path.parent / build_context).exists():
                analysis.issues.append(
                    f"Build context not found for service {name}: {build_context}"
                )
        return analysis

    def analyze_build_context(self) -> list[str]:
        if not (self.workspace / ".dockerignore").exists():
            return ["Consider adding .dockerignore file"]
        return []

    def is_engine_available(self) -> bool:
        """Version check; a missing binary, failure or timeout means unavailable."""
        try:
            version = self.runner.run(
                ["docker", "--version"], timeout=self.config.check_timeout_seconds
            )
        except OSError as e:
            logger.info("Docker version check failed: %s", e)
            return False
        return version.succeeded

    def test_build(self, dockerfile: Path) -> DockerBuildTest:
        """Run ``docker build`` for one Dockerfile and diagnose a failure."""
        tag = f"buildcheck-validation-{dockerfile.parent.name or 'root'}".lower()
        command = ["docker", "build", "-f", str(dockerfile), "-t", tag, str(self.workspace)]
        name = self._relative(dockerfile)

        try:
            process = self.runner.run(
                command, cwd=self.workspace, timeout=self.config.build_timeout_seconds
            )
        except OSError as e:
            return DockerBuildTest(
                dockerfile=dockerfile,
                success=False,
                errors=[
                    self._error(
                        f"Docker build test failed: {e}",
                        DockerBuildStage.TESTING,
                        source=name,
                        category=ErrorCategory.SYSTEM_ERROR,
                        severity=ErrorSeverity.CRITICAL,
                    )
                ],
            )

        if process.succeeded:
            return DockerBuildTest(dockerfile=dockerfile, success=True, duration=process.duration)

        output = process.output
        stage = determine_failure_stage(output)
        errors = self.analyze_build_output(output, source=name, stage=stage)
        if process.timed_out:
            errors.append(
                self._error(
                    f"Docker build timed out: {name}",
                    stage,
                    source=name,
                    category=ErrorCategory.NETWORK_CONNECTIVITY,
                    severity=ErrorSeverity.HIGH,
                )
            )
        elif not any(error.is_blocking for error in errors):
            errors.append(
                self._error(
                    f"Docker build failed for {name} (exit code {process.returncode})",
                    stage,
                    source=name,
                    severity=ErrorSeverity.HIGH,
                )
            )
        return DockerBuildTest(
            dockerfile=dockerfile,
            success=False,
            stage=stage,
            errors=errors,
            recommendation=STAGE_RECOMMENDATIONS.get(stage, DEFAULT_RECOMMENDATION),
            duration=process.duration,
        )

    def analyze_build_output(
        self,
        output: str,
        source: str = "",
        stage: DockerBuildStage | None = None,
    ) -> list[DockerBuildError]:
        """Classify error lines of ``docker build`` output."""
        if stage is None:
            stage = determine_failure_stage(output)
        errors: list[DockerBuildError] = []

        for line in output.splitlines():
            text = line.strip()
            lowered = text.lower()
            if is_build_summary(text):
                continue
            category = next((c for p, c in OUTPUT_PATTERNS if p in lowered), None)
            if category is None:
                if "error" not in lowered:
                    continue
                category = self.classifier.categorize(text)
                if category is ErrorCategory.UNKNOWN:
                    category = ErrorCategory.DOCKER_BUILD
            errors.append(
                self._error(
                    text,
                    stage,
                    source=source,
                    category=category,
                    severity=output_severity(text),
                )
            )
        return errors

    def _error(
        self,
        message: str,
        stage: DockerBuildStage,
        source: str = "",
        category: ErrorCategory = ErrorCategory.DOCKER_BUILD,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
    ) -> DockerBuildError:
        return DockerBuildError(
            category=category,
            message=message,
            source=source,
            severity=severity,
            resolution_hint=self.classifier.hint_for(category),
            stage=stage,
        )

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.workspace).as_posix()
        except ValueError:
            return str(path)
