"""Shared test helpers."""

from .certificates import write_certificate
from .cli_helpers import invoke_cli, invoke_json
from .fakes import FakeProcessRunner
from .workspace_builder import WorkspaceBuilder

__all__ = ["FakeProcessRunner", "WorkspaceBuilder", "invoke_cli", "invoke_json", "write_certificate"]
