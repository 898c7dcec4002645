"""Main Typer application — entry point for the ``kvload`` CLI."""

from __future__ import annotations

import typer

from kvload import __version__
from kvload.cli.run import run_cmd

app = typer.Typer(
    name="kvload",
    help="Drive a key/value HTTP service with concurrent workers.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run", help="Run a timed load test against a key/value service.")(run_cmd)


def _version_callback(value: bool) -> None:
    """Print version and exit.

    Args:
        value: True if --version was passed.
    """
    if value:
        typer.echo(f"kvload {__version__}")
        raise typer.Exit


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """kvload — concurrent load generator for key/value HTTP services."""
