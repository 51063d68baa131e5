"""Cuehand CLI — Main Typer entry point.

Registers all subcommands and provides --version / --verbose global options.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from cuehand import __version__

TAGLINE = "Say what to click. Cuehand finds it."

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"cuehand v{__version__}", style="bold cyan")
        console.print(f"  {TAGLINE}", style="dim")
        raise typer.Exit()


app = typer.Typer(
    name="cuehand",
    help=TAGLINE,
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show Cuehand version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
) -> None:
    """Cuehand -- natural-language instructions for a live web page."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s  %(message)s")


# ── Register subcommands ──────────────────────────────────────────────────

from cuehand.cli.config_cmd import config_app  # noqa: E402
from cuehand.cli.tools import classify_cmd, narrow_cmd, sanitize_cmd  # noqa: E402

app.command(name="sanitize", help="Print the sanitized snapshot of an HTML file.")(sanitize_cmd)
app.command(name="narrow", help="Filter an HTML file down to elements mentioning a keyword.")(narrow_cmd)
app.command(name="classify", help="Show the tag family an extraction instruction selects.")(classify_cmd)
app.add_typer(config_app, name="config", help="View Cuehand configuration.")
