"""MSBuild project model and project-reference graph."""

from .graph import ProjectGraph, format_cycle
from .msbuild import (
    PackageReference,
    ProjectFile,
    ProjectParseError,
    discover_projects,
    is_build_summary,
    load_projects,
    parse_project,
    read_central_versions,
)

__all__ = [
    "PackageReference",
    "ProjectFile",
    "ProjectGraph",
    "ProjectParseError",
    "discover_projects",
    "format_cycle",
    "is_build_summary",
    "load_projects",
    "parse_project",
    "read_central_versions",
]
