"""Typer CLI for CabinetWatch."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .aggregation import FLOW_FIELDS, POWER_FIELDS, assess_fleet
from .config import Config, MetricThreshold, generate_example_config, load_config
from .exceptions import CabinetWatchError
from .generator import SyntheticSource
from .models import EnclosureAssessment, FleetAssessment, MetricReading, Severity
from .severity import get_leak_icon, get_severity_color, get_severity_emoji, get_severity_label
from .snapshot import read_snapshot_file

app = typer.Typer(
    name="cabinetwatch",
    help="Liquid cooling monitor - classify and aggregate cabinet telemetry",
    add_completion=False,
)

config_app = typer.Typer(help="Configuration management commands")
app.add_typer(config_app, name="config")

console = Console()


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Liquid cooling monitor."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config_or_exit(config_path: Optional[Path]) -> Config:
    if config_path is None:
        return Config()
    try:
        return load_config(config_path)
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] Config file not found: {config_path}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to load config: {e}")
        raise typer.Exit(1)


def _format_reading(reading: MetricReading) -> str:
    color = get_severity_color(reading.severity)
    value = f"{reading.value:.2f} {reading.unit}".rstrip()
    return f"[{color}]{value}[/{color}]"


def _severity_text(severity: Severity) -> Text:
    text = Text()
    text.append(f"{get_severity_emoji(severity)} ")
    text.append(get_severity_label(severity).upper(), style=f"bold {get_severity_color(severity)}")
    return text


def print_enclosure(enclosure: EnclosureAssessment) -> None:
    """Print one assessed cabinet as a Rich panel."""
    table = Table(box=None, padding=(0, 2), expand=True)
    table.add_column("Group", width=14)
    table.add_column("Status", width=14)
    table.add_column("Readings")

    for group in enclosure.groups:
        readings = ", ".join(f"{r.name}={_format_reading(r)}" for r in group.readings)
        table.add_row(group.name, _severity_text(group.severity), readings)

    for reading in (enclosure.cabinet_temperature, enclosure.liquid_level):
        table.add_row(reading.name, _severity_text(reading.severity), _format_reading(reading))

    servers = Table(box=None, padding=(0, 2), expand=True)
    servers.add_column("Server", width=14)
    servers.add_column("Status", width=14)
    servers.add_column("Probes")
    for unit in enclosure.units:
        probes = ", ".join(f"{s.name}={_format_reading(s.reading)}" for s in unit.sensors)
        servers.add_row(unit.name, _severity_text(unit.severity), probes)

    header = Text()
    header.append(f"{enclosure.name} ({enclosure.id}) ", style="bold white")
    header.append_text(_severity_text(enclosure.severity))
    if enclosure.has_leak:
        header.append(f"  {get_leak_icon(True)} LEAK", style="bold red")

    border = "red" if enclosure.needs_attention else get_severity_color(enclosure.severity)
    console.print()
    console.print(Panel(table, title=header, border_style=border, padding=(1, 2)))
    console.print(servers)


def print_summary(assessment: FleetAssessment) -> None:
    """Print fleet-wide tallies."""
    summary = assessment.summary

    table = Table(title="Fleet Summary", expand=False)
    table.add_column("Severity")
    table.add_column("Cabinets", justify="right")
    table.add_column("Servers", justify="right")
    for level in reversed(list(Severity)):
        table.add_row(
            _severity_text(level),
            str(summary.enclosure_counts[level]),
            str(summary.unit_counts[level]),
        )

    console.print()
    console.print(table)
    console.print(
        f"[dim]{summary.total_enclosures} cabinets, {summary.total_units} servers, "
        f"updated {assessment.generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}[/dim]"
    )
    if summary.leak_count:
        console.print(f"[red bold]{get_leak_icon(True)} {summary.leak_count} cabinet(s) leaking[/red bold]")

    for issue in assessment.consistency_warnings:
        console.print(f"[yellow]Mismatch:[/yellow] {issue}")


def print_assessment(assessment: FleetAssessment, json_output: bool = False) -> None:
    """Print a fleet assessment to the console.

    Args:
        assessment: Assessment to display.
        json_output: If True, output as JSON.
    """
    if json_output:
        console.print_json(data=assessment.to_payload())
        return

    for enclosure in assessment.enclosures:
        print_enclosure(enclosure)
    print_summary(assessment)


def exit_code_for(assessment: FleetAssessment) -> int:
    """2 for critical or leaking cabinets, 1 for warnings, 0 otherwise."""
    if any(e.needs_attention for e in assessment.enclosures):
        return 2
    if any(e.severity == Severity.WARNING for e in assessment.enclosures):
        return 1
    return 0


@app.command("demo")
def demo_command(
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", "-s", help="Random seed for a reproducible snapshot"),
    ] = None,
    cabinets: Annotated[
        Optional[int],
        typer.Option("--cabinets", "-n", min=1, help="Number of cabinets to generate"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
) -> None:
    """Generate a synthetic snapshot and show its assessment."""
    config = _load_config_or_exit(config_path)
    if cabinets is not None:
        config = config.model_copy(
            update={"generator": config.generator.model_copy(update={"cabinets": cabinets})}
        )

    try:
        snapshot = SyntheticSource(config, seed).snapshot()
        assessment = assess_fleet(snapshot, config)
    except (CabinetWatchError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    print_assessment(assessment, json_output)


@app.command("assess")
def assess_command(
    file: Annotated[
        Path,
        typer.Argument(help="Snapshot file (JSON or YAML)"),
    ],
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output results as JSON"),
    ] = False,
) -> None:
    """Assess a snapshot read from a file."""
    config = _load_config_or_exit(config_path)

    try:
        snapshot = read_snapshot_file(file)
        assessment = assess_fleet(snapshot, config)
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] File not found: {file}")
        raise typer.Exit(1)
    except CabinetWatchError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    print_assessment(assessment, json_output)

    code = exit_code_for(assessment)
    if code:
        raise typer.Exit(code)


@app.command("serve")
def serve_command(
    host: Annotated[
        str,
        typer.Option("--host", "-h", help="Host to bind to"),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port to listen on"),
    ] = 8000,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", "-r", help="Enable auto-reload for development"),
    ] = False,
) -> None:
    """Start the web dashboard."""
    import os

    import uvicorn

    console.print("\n[bold green]🚀 Starting CabinetWatch dashboard[/bold green]")
    console.print(f"[dim]→ http://{host}:{port}[/dim]\n")

    # Set config path in environment for the server to pick up
    if config_path:
        os.environ["CABINETWATCH_CONFIG"] = str(config_path)

    uvicorn.run(
        "cabinetwatch.server:app",
        host=host,
        port=port,
        reload=reload,
    )


@config_app.command("init")
def config_init_command(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file path"),
    ] = Path("cabinetwatch.yaml"),
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing file"),
    ] = False,
) -> None:
    """Generate an example configuration file."""
    if output.exists() and not force:
        console.print(f"[red]Error:[/red] File already exists: {output}")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)

    with open(output, "w", encoding="utf-8") as f:
        f.write(generate_example_config())

    console.print(f"[green]✓[/green] Created configuration file: {output}")


def _threshold_cells(threshold: MetricThreshold) -> list[str]:
    sign = "-" if threshold.one_sided else "±"
    return [
        f"{threshold.baseline:g} {threshold.unit}".rstrip(),
        f"{sign}{threshold.caution:g}",
        f"{sign}{threshold.warning:g}",
        f"{sign}{threshold.critical:g}",
    ]


@config_app.command("validate")
def config_validate_command(
    config_file: Annotated[
        Path,
        typer.Argument(help="Configuration file to validate"),
    ],
) -> None:
    """Validate a configuration file."""
    if not config_file.exists():
        console.print(f"[red]Error:[/red] File not found: {config_file}")
        raise typer.Exit(1)

    try:
        config = load_config(config_file)
    except Exception as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1)

    console.print("[green]✓[/green] Configuration is valid")

    thresholds = config.thresholds
    table = Table(title="Thresholds", box=None, padding=(0, 2))
    table.add_column("Metric")
    table.add_column("Baseline", justify="right")
    table.add_column("Caution", justify="right")
    table.add_column("Warning", justify="right")
    table.add_column("Critical", justify="right")

    for group, names in (
        ("power", POWER_FIELDS),
        ("input_flow", FLOW_FIELDS),
        ("output_flow", FLOW_FIELDS),
    ):
        for name in names:
            table.add_row(f"{group}.{name}", *_threshold_cells(getattr(getattr(thresholds, group), name)))

    table.add_row("cabinet_temperature", *_threshold_cells(thresholds.cabinet_temperature))
    table.add_row("liquid_level", *_threshold_cells(thresholds.liquid_level))
    for position, threshold in enumerate(thresholds.sensor_points, start=1):
        table.add_row(f"probe {position}", *_threshold_cells(threshold))

    console.print()
    console.print(table)
    console.print()
    console.print(
        f"[bold]Generator:[/bold] {config.generator.cabinets} cabinets, "
        f"{config.generator.min_servers}-{config.generator.max_servers} servers each"
    )


@app.command("version")
def version_command() -> None:
    """Show version information."""
    console.print(f"[bold]CabinetWatch[/bold] v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
