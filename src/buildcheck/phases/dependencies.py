"""
Dependencies phase.

Checks central package management and framework alignment across projects.
"""

from __future__ import annotations

from buildcheck.domain.results import PhaseResult
from buildcheck.domain.taxonomy import ErrorCategory, ErrorSeverity
from buildcheck.projects import ProjectParseError, read_central_versions

from .base import PhaseContext


class DependenciesPhase:
    name = "Dependencies"

    def execute(self, result: PhaseResult, context: PhaseContext) -> None:
        make_error = context.classifier.make_error
        settings = context.config.projects
        props_path = context.workspace / settings.central_packages_file

        central: dict[str, str] | None = None
        if not props_path.is_file():
            result.add_error(
                make_error(
                    ErrorCategory.PACKAGE_REFERENCE,
                    f"{settings.central_packages_file} not found - "
                    "centralized package management required",
                    source=self.name,
                    severity=ErrorSeverity.HIGH,
                )
            )
        else:
            try:
                central = read_central_versions(props_path)
            except ProjectParseError as e:
                result.add_error(
                    make_error(
                        ErrorCategory.PACKAGE_REFERENCE,
                        str(e),
                        source=props_path.name,
                        severity=ErrorSeverity.HIGH,
                    )
                )

        projects = context.load_projects(result)
        if not projects:
            result.add_warning("No project files found")
            return

        for project in projects:
            if central is not None:
                for package in project.package_references:
                    if package.version and package.name in central:
                        result.add_error(
                            make_error(
                                ErrorCategory.PACKAGE_REFERENCE,
                                f"Package version conflict: {project.name} pins "
                                f"{package.name} {package.version} but "
                                f"{settings.central_packages_file} defines "
                                f"{central[package.name]}",
                                source=project.name,
                                severity=ErrorSeverity.HIGH,
                                kind="explicit_version",
                                project=str(project.path),
                                package=package.name,
                            )
                        )
                    elif package.name not in central:
                        result.add_error(
                            make_error(
                                ErrorCategory.PACKAGE_REFERENCE,
                                f"Package {package.name} referenced by {project.name} "
                                f"has no version in {settings.central_packages_file}",
                                source=project.name,
                                severity=ErrorSeverity.HIGH,
                                kind="missing_central_version",
                                project=str(project.path),
                                package=package.name,
                            )
                        )

            expected = settings.target_framework
            if expected is None:
                continue
            if not project.target_frameworks:
                result.add_warning(f"{project.name} does not declare a target framework")
            elif expected not in project.target_frameworks:
                result.add_error(
                    make_error(
                        ErrorCategory.FRAMEWORK_COMPATIBILITY,
                        f"Target framework mismatch: {project.name} targets "
                        f"{';'.join(project.target_frameworks)}, expected {expected}",
                        source=project.name,
                        severity=ErrorSeverity.HIGH,
                        project=str(project.path),
                    )
                )
