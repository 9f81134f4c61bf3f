"""
MSBuild project files.

Reads the handful of items the validation phases need from ``*.csproj`` files
and ``Directory.Packages.props``: target framework(s), project references and
package references. SDK-style projects carry no XML namespace, legacy ones do;
tags are compared by local name so both parse the same way.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

# Build totals such as "0 Error(s)" or "3 Warning(s)".
_BUILD_SUMMARY = re.compile(r"^\d+\s+(?:error|warning)\(s\)$", re.IGNORECASE)


def is_build_summary(line: str) -> bool:
    return _BUILD_SUMMARY.match(line.strip()) is not None


class ProjectParseError(Exception):
    """Raised when a project or props file is not well-formed XML"""


@dataclass(slots=True)
class PackageReference:
    name: str
    version: str | None = None


@dataclass(slots=True)
class ProjectFile:
    """Parsed view of one project file"""

    path: Path
    target_frameworks: list[str] = field(default_factory=list)
    project_references: list[str] = field(default_factory=list)
    package_references: list[PackageReference] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.stem

    def reference_path(self, include: str) -> Path:
        """Absolute path of a ProjectReference Include (Windows separators allowed)."""
        return (self.path.parent / include.replace("\\", "/")).resolve()


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _iter_local(root: ET.Element, name: str) -> Iterable[ET.Element]:
    return (element for element in root.iter() if _local(element.tag) == name)


def _child_text(element: ET.Element, name: str) -> str | None:
    for child in element:
        if _local(child.tag) == name and child.text:
            return child.text.strip()
    return None


def _parse_xml(path: Path) -> ET.Element:
    try:
        return ET.parse(path).getroot()
    except ET.ParseError as e:
        raise ProjectParseError(f"Project file could not be parsed: {path.name} ({e})") from e


def parse_project(path: Path) -> ProjectFile:
    """Parse a project file.

    Raises:
        ProjectParseError: If the file is not well-formed XML
    """
    root = _parse_xml(path)
    project = ProjectFile(path=path.resolve())

    for element in root.iter():
        tag = _local(element.tag)
        if tag == "TargetFramework" and element.text:
            project.target_frameworks.append(element.text.strip())
        elif tag == "TargetFrameworks" and element.text:
            project.target_frameworks.extend(
                fw.strip() for fw in element.text.split(";") if fw.strip()
            )
        elif tag == "ProjectReference":
            include = element.get("Include")
            if include:
                project.project_references.append(include)
        elif tag == "PackageReference":
            name = element.get("Include") or element.get("Update")
            if name:
                version = element.get("Version") or _child_text(element, "Version")
                project.package_references.append(PackageReference(name=name, version=version))

    return project


def read_central_versions(props_path: Path) -> dict[str, str]:
    """PackageVersion items from a central package management props file."""
    root = _parse_xml(props_path)
    versions: dict[str, str] = {}
    for element in _iter_local(root, "PackageVersion"):
        name = element.get("Include")
        version = element.get("Version") or _child_text(element, "Version")
        if name and version:
            versions[name] = version
    return versions


def discover_projects(
    workspace: Path,
    pattern: str = "*.csproj",
    excluded: Iterable[str] = (),
    skip_directories: Iterable[str] = ("bin", "obj"),
) -> list[Path]:
    """Project files under the workspace, sorted, minus excluded names."""
    excluded_names = set(excluded)
    skipped = set(skip_directories)
    found = []
    for path in workspace.rglob(pattern):
        relative_parts = path.relative_to(workspace).parts[:-1]
        if any(part in skipped for part in relative_parts):
            continue
        if path.stem in excluded_names or path.name in excluded_names:
            continue
        found.append(path.resolve())
    return sorted(found)


def load_projects(paths: Iterable[Path]) -> tuple[list[ProjectFile], list[tuple[Path, str]]]:
    """Parse every path; unreadable files are returned with their error message."""
    projects: list[ProjectFile] = []
    failures: list[tuple[Path, str]] = []
    for path in paths:
        try:
            projects.append(parse_project(path))
        except ProjectParseError as e:
            failures.append((path, str(e)))
    return projects, failures
