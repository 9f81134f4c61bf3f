"""
Project references phase.

Builds the project reference graph and reports missing references and every
distinct reference cycle.
"""

from __future__ import annotations

from buildcheck.domain.results import PhaseResult
from buildcheck.domain.taxonomy import ErrorCategory, ErrorSeverity
from buildcheck.projects import ProjectGraph, format_cycle

from .base import PhaseContext


class ProjectReferencesPhase:
    name = "ProjectReferences"

    def execute(self, result: PhaseResult, context: PhaseContext) -> None:
        make_error = context.classifier.make_error
        projects = context.load_projects(result)
        graph = ProjectGraph.from_projects(projects)

        for project, include in graph.missing_references():
            result.add_error(
                make_error(
                    ErrorCategory.PROJECT_REFERENCE,
                    f"Project reference not found: {include} (referenced by {project.name})",
                    source=project.name,
                    severity=ErrorSeverity.HIGH,
                    kind="missing_reference",
                    project=str(project.path),
                    reference=include,
                )
            )

        for cycle in graph.detect_cycles():
            result.add_error(
                make_error(
                    ErrorCategory.PROJECT_REFERENCE,
                    f"Circular dependency detected: {format_cycle(cycle)}",
                    source=self.name,
                    severity=ErrorSeverity.CRITICAL,
                    kind="cycle",
                    cycle=cycle,
                )
            )
