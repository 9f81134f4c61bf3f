"""
Click-based CLI for BuildCheck.
"""

import json
import signal
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .application import DiagnoseService, HealthService, ValidateService
from .core.log import configure_logging
from .core.workspace import resolve_workspace
from .domain.errors import BuildCheckDomainError
from .domain.results import CommandResult
from .orchestrator import ValidationTarget
from .report import render_health, render_orchestration

console = Console()
error_console = Console(stderr=True)


class AliasedGroup(click.Group):
    """Group that also accepts the short command aliases."""

    aliases = {"all": "validate", "env": "environment", "tests": "test", "monitor": "monitoring"}

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        _, command, remaining = super().resolve_command(ctx, args)
        return (command.name if command else None), command, remaining


def workspace_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--workspace",
        "-w",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="Workspace root (default: nearest parent with Directory.Packages.props or global.json)",
    )(func)


def json_option(func: Callable[..., Any]) -> Callable[..., Any]:
    return click.option(
        "--json", "json_output", is_flag=True, help="Print a machine-readable result"
    )(func)


@click.group(cls=AliasedGroup, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="buildcheck")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """BuildCheck: build validation and error resolution for .NET workspaces"""
    configure_logging(verbose)


def _emit_json(result: CommandResult) -> None:
    click.echo(json.dumps(result.as_json_dict(), indent=2, default=str))


@contextmanager
def cancel_on_interrupt(event: threading.Event) -> Iterator[None]:
    """Turn the first Ctrl-C into a cancellation request; a second one interrupts.

    Cancellation lets running external processes be killed and the pipeline
    report what it has so far.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def request_cancel(signum: int, frame: Any) -> None:
        if event.is_set():
            raise KeyboardInterrupt
        event.set()
        error_console.print("[yellow]⚠ Cancelling... press Ctrl-C again to abort[/yellow]")

    previous = signal.signal(signal.SIGINT, request_cancel)
    try:
        yield
    finally:
        # None means the previous handler was not installed from Python.
        restored = previous if previous is not None else signal.default_int_handler
        signal.signal(signal.SIGINT, restored)


def _run_target(target: ValidationTarget, workspace: Path | None, json_output: bool) -> None:
    try:
        root = resolve_workspace(workspace)
        if not json_output:
            console.print(f"Validating workspace [cyan]{escape(str(root))}[/cyan]...")
        service = ValidateService()
        with cancel_on_interrupt(service.cancel_event):
            result = service.run(workspace=root, target=target)
    except BuildCheckDomainError as e:
        error_console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)
    except KeyboardInterrupt:
        error_console.print("[yellow]⚠ Validation cancelled[/yellow]")
        sys.exit(1)

    if json_output:
        _emit_json(result)
    else:
        render_orchestration(result.artifact, console)
    sys.exit(0 if result.success else 1)


@cli.command()
@workspace_option
@json_option
def validate(workspace: Path | None, json_output: bool) -> None:
    """Run the full validation pipeline (alias: all)"""
    _run_target(ValidationTarget.ALL, workspace, json_output)


@cli.command()
@workspace_option
@json_option
def build(workspace: Path | None, json_output: bool) -> None:
    """Validate dependencies, project references and compilation"""
    _run_target(ValidationTarget.BUILD, workspace, json_output)


@cli.command()
@workspace_option
@json_option
def docker(workspace: Path | None, json_output: bool) -> None:
    """Validate Dockerfiles, compose files and container builds"""
    _run_target(ValidationTarget.DOCKER, workspace, json_output)


@cli.command()
@workspace_option
@json_option
def environment(workspace: Path | None, json_output: bool) -> None:
    """Validate environment variables, certificates and config files (alias: env)"""
    _run_target(ValidationTarget.ENVIRONMENT, workspace, json_output)


@cli.command()
@workspace_option
@json_option
def test(workspace: Path | None, json_output: bool) -> None:
    """Run gated unit, integration and component tests (alias: tests)"""
    _run_target(ValidationTarget.TESTING, workspace, json_output)


@cli.command()
@workspace_option
@json_option
def monitoring(workspace: Path | None, json_output: bool) -> None:
    """Generate monitoring configuration (alias: monitor)"""
    _run_target(ValidationTarget.MONITORING, workspace, json_output)


@cli.command()
@workspace_option
@json_option
def health(workspace: Path | None, json_output: bool) -> None:
    """Check API, web client, database and certificate health"""
    try:
        root = resolve_workspace(workspace)
        result = HealthService().run(workspace=root)
    except BuildCheckDomainError as e:
        error_console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if json_output:
        _emit_json(result)
    else:
        render_health(result.artifact, console)
    sys.exit(0 if result.success else 1)


@cli.command()
@click.argument("logfile", type=click.Path(dir_okay=False, path_type=Path))
@workspace_option
@json_option
def diagnose(logfile: Path, workspace: Path | None, json_output: bool) -> None:
    """Classify and resolve the errors found in a build log"""
    try:
        root = resolve_workspace(workspace)
        service = DiagnoseService()
        with cancel_on_interrupt(service.cancel_event):
            result = service.run(workspace=root, log_file=logfile.resolve())
    except FileNotFoundError:
        error_console.print(f"[red]✗ Error:[/red] Log file not found: {escape(str(logfile))}")
        sys.exit(1)
    except BuildCheckDomainError as e:
        error_console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)

    if json_output:
        _emit_json(result)
    else:
        console.print(result.artifact.report, markup=False, highlight=False)
    sys.exit(0 if result.success else 1)


@cli.command("help")
@click.pass_context
def help_command(ctx: click.Context) -> None:
    """Show this message and exit"""
    click.echo(ctx.parent.get_help() if ctx.parent else ctx.get_help())


def main() -> None:
    """Entry point for the CLI"""
    cli()


if __name__ == "__main__":
    main()
