"""Infrastructure: workspace discovery, process execution, logging and retry."""

from .process import ProcessResult, ProcessRunner
from .workspace import WORKSPACE_MARKERS, discover_workspace, load_config

__all__ = [
    "ProcessResult",
    "ProcessRunner",
    "WORKSPACE_MARKERS",
    "discover_workspace",
    "load_config",
]
