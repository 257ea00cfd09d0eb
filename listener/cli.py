# File: listener/cli.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from listener.config import REPORT_DIR, ensure_directories, load_settings
from listener.core.changed_components import load_changed_components
from listener.core.errors import ListenerError
from listener.qa.report_generator import generate_markdown_report
from listener.qa.session_runner import EventFileError, ReplaySession
from listener.recording import find_recording

app = typer.Typer(help="Test activity report listener CLI")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_settings_or_exit(config: Optional[Path]):
    try:
        return load_settings(config)
    except ListenerError as exc:
        # includes MissingConfigurationError
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc


def format_summary(result: Dict[str, Any]) -> str:
    return (
        f"Session: {result.get('session_id')} | Status: {result.get('status', 'UNKNOWN')} | "
        f"Run id: {result.get('run_id') or 'N/A'}"
    )


@app.command("replay")
def replay_events(
    events: Path = typer.Option(..., "--events", help="Host event file (JSONL)."),
    session_id: str = typer.Option(..., "--session-id", help="Session identifier."),
    config: Optional[Path] = typer.Option(None, "--config", help="Listener YAML configuration."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug diagnostics."),
) -> None:
    _configure_logging(verbose)
    settings = _load_settings_or_exit(config)
    try:
        result = ReplaySession(settings).run(session_id=session_id, events_path=events)
    except EventFileError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(Panel(format_summary(result), title="Replay Summary", expand=False))

    overview = Table(title="Items", box=box.SIMPLE_HEAVY)
    overview.add_column("Opened")
    overview.add_column("Closed")
    overview.add_column("Synthesized suites")
    overview.add_column("Screenshots")
    overview.add_row(
        str(result["items_opened"]),
        str(result["items_closed"]),
        str(result["synthesized_suites"]),
        str(result["screenshots"]),
    )
    console.print(overview)

    problems = Table(title="Diagnostics", box=box.MINIMAL_HEAVY_HEAD)
    problems.add_column("Metric")
    problems.add_column("Value")
    problems.add_row("Dropped events", str(result["dropped_events"]))
    problems.add_row("Failed backend calls", str(result["failed_calls"]))
    problems.add_row("Discarded logs", str(result["discarded_logs"]))
    console.print(problems)

    if result.get("tree"):
        console.print(Panel(result["tree"], title="Reported Tree", expand=False))
    console.print(f"Recording saved to: {result['recording_path']}")

    if result["status"] != "PASS":
        raise typer.Exit(code=1)


@app.command("report")
def report_session(
    session_id: str = typer.Option(..., "--session-id", help="Session identifier."),
    config: Optional[Path] = typer.Option(None, "--config", help="Listener YAML configuration."),
) -> None:
    settings = _load_settings_or_exit(config)
    recording = find_recording(Path(settings.recordings_dir), session_id)
    if recording is None:
        console.print(f"No recording found for: {session_id}")
        raise typer.Exit(code=1)

    ensure_directories()
    report_path = REPORT_DIR / f"report_{session_id}.md"
    run = generate_markdown_report(recording, report_path)
    summary = run.get("summary") or {}

    table = Table(title=f"Run: {run.get('name') or session_id}", box=box.SIMPLE_HEAVY)
    table.add_column("Items")
    table.add_column("PASSED", style="green")
    table.add_column("FAILED", style="red")
    table.add_column("SKIPPED")
    table.add_column("STOPPED")
    table.add_row(
        str(summary.get("items", 0)),
        str(summary.get("PASSED", 0)),
        str(summary.get("FAILED", 0)),
        str(summary.get("SKIPPED", 0)),
        str(summary.get("STOPPED", 0)),
    )
    console.print(table)
    console.print(f"Report saved to: {report_path}")


@app.command("components")
def show_components(
    config: Optional[Path] = typer.Option(None, "--config", help="Listener YAML configuration."),
) -> None:
    settings = _load_settings_or_exit(config)
    components = load_changed_components(
        settings.changed_components_variable,
        settings.changed_components_path,
    )
    table = Table(title="Changed Components", box=box.MINIMAL_HEAVY_HEAD)
    table.add_column("Component")
    table.add_column("Version")
    for component in sorted(components, key=lambda c: (c.name, c.version or "")):
        table.add_row(component.name, component.version or "N/A")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
