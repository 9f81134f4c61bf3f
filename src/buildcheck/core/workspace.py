"""
Workspace discovery and configuration loading.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from buildcheck.config import BuildCheckConfig
from buildcheck.domain.errors import ConfigurationLoadError, WorkspaceNotFoundError

WORKSPACE_MARKERS = ("Directory.Packages.props", "global.json")
CONFIG_DIR = ".buildcheck"
CONFIG_FILE = "config.json"


def discover_workspace(start: Path | None = None) -> Path:
    """Walk up from ``start`` to the first directory holding a workspace marker.

    Falls back to ``start`` itself when no ancestor has a marker.
    """
    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if any((candidate / marker).is_file() for marker in WORKSPACE_MARKERS):
            return candidate
    return origin


def resolve_workspace(workspace: Path | None) -> Path:
    """Explicit workspace if given (must exist), otherwise discovered."""
    if workspace is None:
        return discover_workspace()
    resolved = workspace.resolve()
    if not resolved.is_dir():
        raise WorkspaceNotFoundError(
            message=f"Workspace directory not found: {resolved}", code="workspace_not_found"
        )
    return resolved


def get_config_path(workspace: Path) -> Path:
    return workspace / CONFIG_DIR / CONFIG_FILE


def load_config(workspace: Path) -> BuildCheckConfig:
    """Load .buildcheck/config.json, or defaults when the file is absent.

    Raises:
        ConfigurationLoadError: If the file is not valid JSON or fails validation
    """
    path = get_config_path(workspace)
    if not path.exists():
        return BuildCheckConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationLoadError(
            message=f"Invalid JSON in {path}: {e}", code="config_invalid_json"
        ) from e

    try:
        return BuildCheckConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationLoadError(
            message=f"Invalid configuration in {path}: {e}", code="config_invalid"
        ) from e
