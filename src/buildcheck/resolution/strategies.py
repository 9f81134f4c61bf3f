"""
Built-in resolution strategies.

Each strategy handles one category and works from the ``additional_data`` the
validation phases attach to their errors (project path, package name, config
file, ...). Errors without the data a fix needs stay unresolved.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

from buildcheck.config import ProjectsConfig
from buildcheck.core.process import ProcessRunner, expand_command
from buildcheck.domain.taxonomy import BuildError, ErrorCategory
from buildcheck.projects.msbuild import discover_projects

from .base import CategoryResolutionResult, resolve_each

logger = logging.getLogger(__name__)

# Types whose missing ``using`` directive can be added unambiguously.
KNOWN_NAMESPACES: dict[str, str] = {
    "List": "System.Collections.Generic",
    "Dictionary": "System.Collections.Generic",
    "IEnumerable": "System.Collections.Generic",
    "HashSet": "System.Collections.Generic",
    "Task": "System.Threading.Tasks",
    "CancellationToken": "System.Threading",
    "HttpClient": "System.Net.Http",
    "JsonSerializer": "System.Text.Json",
    "StringBuilder": "System.Text",
    "Regex": "System.Text.RegularExpressions",
    "Enumerable": "System.Linq",
    "File": "System.IO",
    "Path": "System.IO",
    "Stream": "System.IO",
    "ILogger": "Microsoft.Extensions.Logging",
    "IConfiguration": "Microsoft.Extensions.Configuration",
}

_MISSING_TYPE = re.compile(r"type or namespace name '(?P<name>[A-Za-z_][A-Za-z0-9_]*)")
_USING_LINE = re.compile(r"^\s*using\s+[\w.]+\s*;", re.MULTILINE)


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8-sig")


def _write(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")


class PackageReferenceStrategy:
    """Drop versions that fight central package management, else re-run restore."""

    category = ErrorCategory.PACKAGE_REFERENCE

    def __init__(self, workspace: Path, config: ProjectsConfig, runner: ProcessRunner) -> None:
        self.workspace = workspace
        self.config = config
        self.runner = runner

    def resolve(self, errors: list[BuildError]) -> CategoryResolutionResult:
        return resolve_each(self.category, errors, self._attempt)

    def _attempt(self, error: BuildError) -> str | None:
        kind = error.additional_data.get("kind")
        project = error.additional_data.get("project")
        if not project:
            return None
        project_path = Path(project)

        if kind == "explicit_version":
            return self._remove_explicit_version(project_path, error.additional_data["package"])
        if kind == "missing_central_version":
            # No version to add without guessing.
            return None
        return self._restore(project_path)

    def _remove_explicit_version(self, project_path: Path, package: str) -> str | None:
        text = _read(project_path)
        pattern = re.compile(
            rf'(<PackageReference\b[^>]*?Include="{re.escape(package)}"[^>]*?)\s+Version="[^"]*"'
        )
        updated, count = pattern.subn(r"\1", text)
        if count == 0:
            return None
        _write(project_path, updated)
        return f"Removed explicit version of {package} from {project_path.stem} (managed centrally)"

    def _restore(self, project_path: Path) -> str | None:
        command = expand_command(self.config.restore_command, project=str(project_path))
        result = self.runner.run(
            command, cwd=self.workspace, timeout=self.config.build_timeout_seconds
        )
        if not result.succeeded:
            return None
        return f"Restored packages for {project_path.stem}"


class ProjectReferenceStrategy:
    """Repoint references to moved projects. Cycles need a human."""

    category = ErrorCategory.PROJECT_REFERENCE

    def __init__(self, workspace: Path, config: ProjectsConfig) -> None:
        self.workspace = workspace
        self.config = config

    def resolve(self, errors: list[BuildError]) -> CategoryResolutionResult:
        return resolve_each(self.category, errors, self._attempt)

    def _attempt(self, error: BuildError) -> str | None:
        if error.additional_data.get("kind") != "missing_reference":
            return None
        project_path = Path(error.additional_data["project"]).resolve()
        reference: str = error.additional_data["reference"]
        file_name = reference.replace("\\", "/").rsplit("/", 1)[-1]

        candidates = discover_projects(
            self.workspace, pattern=file_name, skip_directories=self.config.skip_directories
        )
        if len(candidates) != 1:
            logger.debug("Cannot repoint %s: %d candidates", reference, len(candidates))
            return None

        new_reference = os.path.relpath(candidates[0], project_path.parent)
        if "\\" in reference:
            new_reference = new_reference.replace("/", "\\")

        text = _read(project_path)
        old_attr = f'Include="{reference}"'
        if old_attr not in text:
            return None
        _write(project_path, text.replace(old_attr, f'Include="{new_reference}"'))
        return f"Updated reference in {project_path.stem}: {reference} -> {new_reference}"


class CompilationErrorStrategy:
    """Add missing ``using`` directives for well-known framework types."""

    category = ErrorCategory.COMPILATION_ERROR

    def __init__(self, workspace: Path, namespaces: dict[str, str] | None = None) -> None:
        self.workspace = workspace
        self.namespaces = namespaces or KNOWN_NAMESPACES

    def resolve(self, errors: list[BuildError]) -> CategoryResolutionResult:
        return resolve_each(self.category, errors, self._attempt)

    def _attempt(self, error: BuildError) -> str | None:
        if error.additional_data.get("code") != "CS0246":
            return None
        match = _MISSING_TYPE.search(error.message)
        source_file = error.additional_data.get("file")
        if match is None or not source_file:
            return None
        namespace = self.namespaces.get(match.group("name"))
        if namespace is None:
            return None

        path = Path(source_file)
        if not path.is_absolute():
            path = self.workspace / path
        text = _read(path)
        directive = f"using {namespace};"
        if directive in text:
            return None

        usings = list(_USING_LINE.finditer(text))
        if usings:
            insert_at = usings[-1].end()
            updated = f"{text[:insert_at]}\n{directive}{text[insert_at:]}"
        else:
            updated = f"{directive}\n{text}"
        _write(path, updated)
        return f"Added '{directive}' to {path.name}"


class FrameworkCompatibilityStrategy:
    """Retarget projects to the configured framework."""

    category = ErrorCategory.FRAMEWORK_COMPATIBILITY

    def __init__(self, workspace: Path, target_framework: str | None) -> None:
        self.workspace = workspace
        self.target_framework = target_framework

    def resolve(self, errors: list[BuildError]) -> CategoryResolutionResult:
        return resolve_each(self.category, errors, self._attempt)

    def _attempt(self, error: BuildError) -> str | None:
        project = error.additional_data.get("project")
        if not project or not self.target_framework:
            return None
        path = Path(project)
        text = _read(path)
        pattern = re.compile(r"<TargetFramework>\s*([^<]+?)\s*</TargetFramework>")
        match = pattern.search(text)
        if match is None or match.group(1) == self.target_framework:
            return None
        replacement = f"<TargetFramework>{self.target_framework}</TargetFramework>"
        _write(path, pattern.sub(replacement, text, count=1))
        return f"Retargeted {path.stem} from {match.group(1)} to {self.target_framework}"


class ConfigurationErrorStrategy:
    """Add missing top-level sections to JSON configuration files."""

    category = ErrorCategory.CONFIGURATION_ERROR

    def __init__(self, workspace: Path) -> None:
        self.workspace = workspace

    def resolve(self, errors: list[BuildError]) -> CategoryResolutionResult:
        return resolve_each(self.category, errors, self._attempt)

    def _attempt(self, error: BuildError) -> str | None:
        config_file = error.additional_data.get("config_file")
        section = error.additional_data.get("missing_section")
        if not config_file or not section:
            return None
        path = Path(config_file)
        document = json.loads(_read(path))
        if not isinstance(document, dict) or section in document:
            return None
        document[section] = {}
        _write(path, json.dumps(document, indent=2) + "\n")
        return f"Added empty '{section}' section to {path.name}"
