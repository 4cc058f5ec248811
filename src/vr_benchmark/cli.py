"""
CLI interface for VR Benchmark.

Commands:
    vrb record     - Profile the app on the headset and save the run
    vrb analyze    - Analyze saved profiler / logcat captures
    vrb runs       - List saved runs
    vrb show       - Compare one run with the previous run and all runs
    vrb serve      - Start the query API
    vrb config     - Show or change settings
"""

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from typing import Optional
from pathlib import Path

from vr_benchmark import __version__
from vr_benchmark.config.settings import settings
from vr_benchmark.errors import ProfilerError, StoreError
from vr_benchmark.utils.formatting import (
    format_change,
    format_result,
    format_timestamp,
    format_value,
)
from vr_benchmark.utils.log import setup_logging


app = typer.Typer(
    name="vrb",
    help="VR Benchmark - frame timing and GPU counter profiler",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]VR Benchmark[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Show debug logging",
    ),
) -> None:
    """
    VR Benchmark - frame timing and GPU counter profiler.

    Profiles an app on a Quest headset and compares every run with the
    previous one and with the all-time average.
    """
    setup_logging("DEBUG" if verbose else settings.LOG_LEVEL)


def _print_averages(averages: dict[str, float], result: bool, target: float) -> None:
    """Print per-metric averages of a single run."""
    table = Table(title="Run Averages")
    table.add_column("Metric", style="cyan")
    table.add_column("Average", justify="right")

    for name, value in sorted(averages.items()):
        table.add_row(name, format_value(value))

    console.print(table)
    console.print(f"Frame time target ({target:g} ms): {format_result(result)}")


@app.command()
def record(
    description: Optional[str] = typer.Argument(
        None,
        help="What changed in this run (prompted for if omitted)",
    ),
) -> None:
    """
    Profile the app on the headset and save the run.

    Restarts the app, waits for it to get focus, records GPU counters and
    compositor frame timing, then stores the results.
    """
    from vr_benchmark.benchmark.runner import ProfileRunner

    if description is None:
        description = typer.prompt("What did you change?")

    runner = ProfileRunner(on_status=lambda msg: console.print(f"[dim]{msg}[/dim]"))

    try:
        capture, summary = runner.run(description)
    except ProfilerError as e:
        console.print(f"[bold red]Profiling failed ({e.kind}):[/bold red] {e}")
        if isinstance(e, StoreError):
            console.print("[yellow]The run may be partially saved.[/yellow]")
        else:
            console.print("[dim]Nothing was saved.[/dim]")
        raise typer.Exit(1)

    _print_averages(capture.averages, capture.result, runner.evaluator.target_ms)
    console.print(f"[green]Saved run {summary.id}[/green] [dim]({summary.description})[/dim]")


@app.command()
def analyze(
    gpu_log: Optional[Path] = typer.Option(
        None,
        "--gpu",
        "-g",
        help="Saved ovrgpuprofiler output",
        exists=True,
        dir_okay=False,
    ),
    frame_log: Optional[Path] = typer.Option(
        None,
        "--frame-timing",
        "-f",
        help="Saved 'logcat -s VrApi -v epoch' output",
        exists=True,
        dir_okay=False,
    ),
    start_ms: Optional[int] = typer.Option(
        None,
        "--start",
        help="Capture start of the GPU log in epoch ms (defaults to the file's mtime)",
    ),
) -> None:
    """
    Analyze saved captures without storing anything.
    """
    from vr_benchmark.analysis.derived import add_derived_metrics
    from vr_benchmark.analysis.frame_timing import parse_frame_timing
    from vr_benchmark.analysis.gpu_counters import parse_gpu_metrics
    from vr_benchmark.analysis.metrics import FrameTimeTargetEvaluator, compute_averages

    if gpu_log is None and frame_log is None:
        console.print("[red]Nothing to analyze. Pass --gpu and/or --frame-timing.[/red]")
        raise typer.Exit(1)

    metrics = {}
    try:
        if gpu_log is not None:
            start = start_ms if start_ms is not None else int(gpu_log.stat().st_mtime * 1000)
            metrics.update(parse_gpu_metrics(gpu_log.read_text(errors="replace"), start))
        if frame_log is not None:
            metrics.update(add_derived_metrics(parse_frame_timing(frame_log.read_text(errors="replace"))))
        averages = compute_averages(metrics)
    except ProfilerError as e:
        console.print(f"[bold red]Analysis failed ({e.kind}):[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title="Run Averages")
    table.add_column("Metric", style="cyan")
    table.add_column("Samples", justify="right")
    table.add_column("Average", justify="right")
    for name in sorted(averages):
        table.add_row(name, str(len(metrics[name])), format_value(averages[name]))
    console.print(table)

    if frame_log is not None:
        evaluator = FrameTimeTargetEvaluator(settings.TARGET_FRAME_TIME)
        try:
            result = evaluator.evaluate(averages)
        except ProfilerError as e:
            console.print(f"[yellow]{e}[/yellow]")
        else:
            console.print(f"Frame time target ({evaluator.target_ms:g} ms): {format_result(result)}")


@app.command()
def runs() -> None:
    """
    List saved runs, most recent first.
    """
    from vr_benchmark.api.client import ProfileAPIClient

    result = ProfileAPIClient().list_runs()
    if not result.success:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)

    if not result.data:
        console.print("[yellow]No runs recorded yet. Run 'vrb record' first.[/yellow]")
        raise typer.Exit(0)

    table = Table(title="Profile Runs")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Date", style="dim")
    table.add_column("Description", style="white")
    table.add_column("Result", justify="center")

    for summary in result.data:
        table.add_row(
            str(summary.id),
            format_timestamp(summary.timestamp),
            summary.description,
            format_result(summary.result),
        )

    console.print(table)


@app.command()
def show(
    run_id: int = typer.Argument(..., help="Run ID (see 'vrb runs')"),
) -> None:
    """
    Compare a run with the previous run and the all-time average.
    """
    from vr_benchmark.api.client import ProfileAPIClient

    result = ProfileAPIClient().get_run(run_id)
    if not result.success:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(1)

    detail = result.data
    console.print(Panel(
        f"{detail.description}\n[dim]{format_timestamp(detail.timestamp)}[/dim]  {format_result(detail.result)}",
        title=f"[bold]Run {run_id}[/bold]",
        border_style="blue",
    ))

    table = Table(show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Last", justify="right")
    table.add_column("vs Last", justify="right")
    table.add_column("Average", justify="right")
    table.add_column("vs Avg", justify="right")

    for metric in detail.metrics:
        table.add_row(
            metric.name,
            format_value(metric.value),
            format_value(metric.last_value),
            format_change(metric.value, metric.last_value),
            format_value(metric.average_value),
            format_change(metric.value, metric.average_value),
        )

    console.print(table)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port"),
) -> None:
    """
    Start the query API server.
    """
    import uvicorn
    from vr_benchmark.server.app import create_app

    uvicorn.run(
        create_app(),
        host=host or settings.SERVER_HOST,
        port=port or settings.SERVER_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


@app.command()
def config(
    name: Optional[str] = typer.Argument(None, help="Setting to change"),
    value: Optional[str] = typer.Argument(None, help="New value"),
) -> None:
    """
    Show settings, or change one persistently.
    """
    if name is None:
        table = Table(title="Settings", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        for key, current in settings.as_dict().items():
            table.add_row(key, "[dim]unset[/dim]" if current is None else str(current))
        console.print(table)
        console.print(f"[dim]Config file: {settings.CONFIG_FILE}[/dim]")
        return

    if value is None:
        console.print("[red]Usage: vrb config NAME VALUE[/red]")
        raise typer.Exit(1)

    try:
        settings.set(name, value)
    except (KeyError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ {name} = {settings.get(name)}[/green]")


if __name__ == "__main__":
    app()
