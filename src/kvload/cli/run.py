"""``kvload run`` — execute a timed load test and print the results."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from kvload._internal.config import DEFAULT_PORT, build_run_config
from kvload._internal.errors import ConfigError, KvLoadError
from kvload._internal.logging import setup_logging
from kvload.engine.runner import LoadTestRunner

if TYPE_CHECKING:
    from kvload._internal.config import RunConfig
    from kvload.metrics.models import AggregateReport

console = Console()
err_console = Console(stderr=True)


def _print_banner(config: RunConfig) -> None:
    console.print(
        Panel(
            f"[bold]Threads:[/bold]  {config.workers}\n"
            f"[bold]Duration:[/bold] {config.duration_seconds:g} seconds\n"
            f"[bold]Workload:[/bold] {config.workload.value}\n"
            f"[bold]Server:[/bold]   {config.host}:{config.port}",
            title="Load Generator Starting",
            border_style="cyan",
        )
    )


def _print_report(report: AggregateReport, seed_entropy: int | None) -> None:
    """Print the final results table.

    Args:
        report: Aggregate report of the run.
        seed_entropy: Entropy the worker RNGs were spawned from.
    """
    table = Table(
        title="Load Test Results",
        show_header=True,
        header_style="bold green",
        expand=True,
    )
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Total Requests", str(report.total_requests))
    if report.has_data:
        table.add_row("Throughput (req/sec)", str(report.throughput_per_sec))
        table.add_row("Average Latency", f"{report.average_latency_ms:.3f} ms")
        table.add_row("p50 Latency", f"{report.latency_p50_ms:.3f} ms")
        table.add_row("p95 Latency", f"{report.latency_p95_ms:.3f} ms")
        table.add_row("p99 Latency", f"{report.latency_p99_ms:.3f} ms")
        table.add_row("Max Latency", f"{report.latency_max_ms:.3f} ms")
    else:
        table.add_row("Throughput (req/sec)", "n/a")
        table.add_row("Average Latency", "n/a")
    table.add_row("Failed Requests", str(report.failed_requests))
    table.add_row("Success Rate", f"{report.success_rate * 100:.2f}%")
    table.add_row("Elapsed", f"{report.elapsed_seconds:.2f}s")
    for name, count in sorted(report.operation_counts.items()):
        table.add_row(f"{name.capitalize()} Attempts", str(count))
    if seed_entropy is not None:
        table.add_row("Seed", str(seed_entropy))

    console.print(table)

    if not report.has_data:
        console.print("[yellow]No successful requests.[/yellow]")


def run_cmd(
    threads: int = typer.Argument(..., help="Number of worker threads."),
    duration: float = typer.Argument(..., help="Run duration in seconds."),
    workload: str = typer.Argument(
        ...,
        help="Workload: putall, getall, popular (getpopular) or mixed.",
    ),
    host: str = typer.Argument(..., help="Target service host."),
    port: int = typer.Argument(DEFAULT_PORT, help="Target service port."),
    key_space: int | None = typer.Option(
        None,
        "--key-space",
        help="Number of distinct keys (default: $KVLOAD_KEY_SPACE or 500000).",
    ),
    hot_keys: int | None = typer.Option(
        None,
        "--hot-keys",
        help="Size of the popular-key set (default: $KVLOAD_HOT_KEYS or 5).",
    ),
    value_length: int | None = typer.Option(
        None,
        "--value-length",
        help="Length of generated values (default: $KVLOAD_VALUE_LENGTH or 12).",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds (default: $KVLOAD_TIMEOUT or 30).",
    ),
    seed: int | None = typer.Option(
        None,
        "--seed",
        help="Base seed for reproducible request streams.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose (DEBUG) logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Emit logs as one JSON object per line.",
    ),
) -> None:
    """Execute a timed load test with a fixed pool of worker threads."""
    log_level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=log_level, json_format=json_logs)

    try:
        config = build_run_config(
            workers=threads,
            duration_seconds=duration,
            workload=workload,
            host=host,
            port=port,
            key_space=key_space,
            hot_key_count=hot_keys,
            value_length=value_length,
            request_timeout=timeout,
            seed=seed,
        )
    except ConfigError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_banner(config)

    test_runner = LoadTestRunner(config, log_level=log_level)
    try:
        report = test_runner.run()
    except KvLoadError as exc:
        err_console.print(f"[red]Load test failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    _print_report(report, test_runner.seed_entropy)
