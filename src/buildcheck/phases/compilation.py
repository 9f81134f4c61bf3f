"""
Compilation phase.

Builds each project in reference order with the configured build command and
classifies the diagnostics of failed builds.
"""

from __future__ import annotations

import re
from dataclasses import replace

from buildcheck.core.process import ProcessResult, expand_command
from buildcheck.domain.results import PhaseResult
from buildcheck.domain.taxonomy import BuildError, ErrorCategory, ErrorSeverity
from buildcheck.projects import ProjectFile, ProjectGraph, is_build_summary
from buildcheck.resolution.diagnosis import extract_error_lines

from .base import PhaseContext

# file(line,col): error CODE: message [project]
MSBUILD_DIAGNOSTIC = re.compile(
    r"^(?P<file>[^\s(][^(]*)\((?P<line>\d+)(?:,(?P<col>\d+))?\):\s*"
    r"error\s+(?P<code>[A-Z]+\d+):\s*(?P<message>.*?)(?:\s+\[[^\]]*\])?$"
)

# [file : ]error CODE: message [project], e.g. NU1101 restore failures
PROJECT_DIAGNOSTIC = re.compile(
    r"^(?:(?P<file>[^\s:][^:]*?)\s*:\s*)?"
    r"error\s+(?P<code>[A-Z]+\d+):\s*(?P<message>.*?)(?:\s+\[[^\]]*\])?$"
)


class CompilationPhase:
    name = "Compilation"

    def execute(self, result: PhaseResult, context: PhaseContext) -> None:
        projects = context.load_projects(result)
        if not projects:
            result.add_warning("No project files found")
            return

        for project in ProjectGraph.from_projects(projects).build_order():
            self._build(project, result, context)

    def _build(self, project: ProjectFile, result: PhaseResult, context: PhaseContext) -> None:
        settings = context.config.projects
        make_error = context.classifier.make_error
        command = expand_command(settings.build_command, project=str(project.path))

        try:
            process = context.runner.run(
                command, cwd=context.workspace, timeout=settings.build_timeout_seconds
            )
        except FileNotFoundError:
            result.add_error(
                make_error(
                    ErrorCategory.ENVIRONMENT_CONFIGURATION,
                    f"Build tool not available: {command[0]}",
                    source=project.name,
                    severity=ErrorSeverity.HIGH,
                )
            )
            return

        if process.timed_out:
            result.add_error(
                make_error(
                    ErrorCategory.COMPILATION_ERROR,
                    f"Build timed out after {settings.build_timeout_seconds:.0f}s: {project.name}",
                    source=project.name,
                    severity=ErrorSeverity.HIGH,
                    project=str(project.path),
                )
            )
            return

        if process.succeeded:
            return

        errors = self.parse_diagnostics(process, project, context)
        if not errors:
            errors = [
                make_error(
                    ErrorCategory.COMPILATION_ERROR,
                    f"Build failed for {project.name} (exit code {process.returncode})",
                    source=project.name,
                    severity=ErrorSeverity.HIGH,
                    project=str(project.path),
                )
            ]
        for error in errors:
            result.add_error(_as_build_failure(error, context))

    @staticmethod
    def parse_diagnostics(
        process: ProcessResult, project: ProjectFile, context: PhaseContext
    ) -> list[BuildError]:
        """Classified errors from build output; MSBuild diagnostics when present."""
        classifier = context.classifier
        seen: set[str] = set()
        errors: list[BuildError] = []

        for line in process.output.splitlines():
            text = line.strip()
            match = MSBUILD_DIAGNOSTIC.match(text)
            if match is not None:
                key = f"{match['file']}:{match['line']}:{match['code']}"
                location = {"file": match["file"].strip(), "line": int(match["line"])}
            else:
                match = PROJECT_DIAGNOSTIC.match(text)
                if match is None:
                    continue
                key = f"{match['file']}:{match['code']}:{match['message']}"
                location = {"file": match["file"].strip()} if match["file"] else {}
            if key in seen:
                continue
            seen.add(key)
            errors.append(
                classifier.classify_diagnostic(
                    match["code"],
                    match["message"],
                    source=project.name,
                    project=str(project.path),
                    **location,
                )
            )

        if errors:
            return errors

        for line in extract_error_lines(process.output):
            if line in seen or is_build_summary(line):
                continue
            seen.add(line)
            errors.append(classifier.classify(line, source=project.name, project=str(project.path)))
        return errors


def _as_build_failure(error: BuildError, context: PhaseContext) -> BuildError:
    """A diagnostic from a failed build is at least a High compilation problem."""
    category = error.category
    if category is ErrorCategory.UNKNOWN:
        category = ErrorCategory.COMPILATION_ERROR
    severity = max(error.severity, ErrorSeverity.HIGH)
    if category is error.category and severity == error.severity:
        return error
    return replace(
        error,
        category=category,
        severity=ErrorSeverity(severity),
        resolution_hint=context.classifier.hint_for(category),
    )
