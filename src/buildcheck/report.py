"""
Console rendering of validation results with rich.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from buildcheck.domain.taxonomy import BuildError, ErrorSeverity, ValidationStatus
from buildcheck.environment import HealthState, SystemHealthStatus
from buildcheck.orchestrator import OrchestrationResult

STATUS_DISPLAY: dict[ValidationStatus, str] = {
    ValidationStatus.PASSED: "[green]✓ PASSED[/green]",
    ValidationStatus.FAILED: "[red]✗ FAILED[/red]",
    ValidationStatus.ERROR: "[yellow]⚠ ERROR[/yellow]",
    ValidationStatus.SKIPPED: "[dim]- SKIPPED[/dim]",
}

HEALTH_DISPLAY: dict[HealthState, str] = {
    HealthState.HEALTHY: "[green]✓ Healthy[/green]",
    HealthState.WARNING: "[yellow]⚠ Warning[/yellow]",
    HealthState.CRITICAL: "[red]✗ Critical[/red]",
}

SEVERITY_STYLE: dict[ErrorSeverity, str] = {
    ErrorSeverity.CRITICAL: "bold red",
    ErrorSeverity.HIGH: "red",
    ErrorSeverity.MEDIUM: "yellow",
    ErrorSeverity.LOW: "dim",
}


def _error_line(error: BuildError) -> str:
    style = SEVERITY_STYLE[error.severity]
    source = f" ({escape(error.source)})" if error.source else ""
    return (
        f"    [{style}]{error.severity.label}[/{style}] "
        f"{error.category}: {escape(error.message)}{source}"
    )


def render_orchestration(result: OrchestrationResult, console: Console) -> None:
    console.print(f"\n[bold]Validation target:[/bold] {result.target.value}")

    if result.build.phases:
        table = Table(title="Validation phases")
        table.add_column("Phase", style="cyan")
        table.add_column("Status")
        table.add_column("Errors", justify="right")
        table.add_column("Warnings", justify="right")
        table.add_column("Duration", justify="right")
        for phase in result.build.phases.values():
            table.add_row(
                escape(phase.phase_name),
                STATUS_DISPLAY[phase.status],
                str(len(phase.errors)),
                str(len(phase.warnings)),
                f"{phase.duration:.1f}s",
            )
        console.print(table)

        for phase in result.build.phases.values():
            if not phase.errors and not phase.warnings:
                continue
            console.print(f"\n[bold]{escape(phase.phase_name)}[/bold]")
            for error in phase.errors:
                console.print(_error_line(error))
            for warning in phase.warnings:
                console.print(f"    [yellow]⚠[/yellow] {escape(warning)}")

    for name, resolution in result.resolutions.items():
        console.print(
            f"\n[bold]Resolution ({escape(name)}):[/bold] "
            f"{len(resolution.resolved_errors)}/{resolution.total_errors} resolved "
            f"({resolution.success_rate:.0%})"
        )
        for action in resolution.actions:
            console.print(f"    [green]✓[/green] {escape(action)}")

    if result.testing is not None:
        console.print("\n[bold]Tests[/bold]")
        for tier_result in result.testing.tiers.values():
            console.print(f"  {tier_result.tier.value}: {STATUS_DISPLAY[tier_result.status]}")
            for project in tier_result.failed_projects:
                console.print(f"    [red]✗[/red] {escape(str(project))}")
            for scenario in tier_result.scenario_results:
                mark = "[green]✓[/green]" if scenario.handled_correctly else "[red]✗[/red]"
                detail = escape(f"{scenario.scenario.name}: {scenario.detail}")
                console.print(f"    {mark} {detail}")

    if result.monitoring is not None:
        console.print(
            f"\n[bold]Monitoring:[/bold] {result.monitoring.status.value} "
            f"({escape(str(result.monitoring.output_dir))})"
        )

    console.print(
        f"\n[bold]Overall status:[/bold] {STATUS_DISPLAY[result.status]} "
        f"in {result.duration:.1f}s"
    )


def render_health(status: SystemHealthStatus, console: Console) -> None:
    table = Table(title="System health")
    table.add_column("Component", style="cyan")
    table.add_column("State")
    table.add_column("Details")
    for component in status.components.values():
        table.add_row(
            escape(component.name), HEALTH_DISPLAY[component.state], escape(component.message)
        )
    console.print(table)
    console.print(f"\n[bold]Overall health:[/bold] {HEALTH_DISPLAY[status.overall]}")
