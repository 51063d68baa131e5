"""cuehand config — Inspect the resolved Cuehand configuration."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cuehand.config import CuehandConfig, CuehandConfigError
from cuehand.credentials import find_api_key, mask_key

console = Console()

config_app = typer.Typer(
    name="config",
    help="View Cuehand configuration.",
    no_args_is_help=True,
)


def _find_project_dir() -> Path:
    """Locate the .cuehand/ project directory by searching upward from cwd."""
    current = Path.cwd()
    for base in [current, *current.parents]:
        candidate = base / ".cuehand"
        if candidate.is_dir():
            return candidate
    return current / ".cuehand"


@config_app.command(name="show")
def config_show(
    dir: Path | None = typer.Option(
        None,
        "--dir",
        "-d",
        help="Path to .cuehand/ directory.",
    ),
) -> None:
    """Show the resolved Cuehand configuration.

    API keys are masked for safety.
    """
    project_dir = dir or _find_project_dir()
    config_path = project_dir / "config.yaml"

    try:
        config = CuehandConfig.load(project_dir)
    except CuehandConfigError as exc:
        console.print(Panel(f"[red]{exc}[/red]", title="[red]Config Error[/red]", border_style="red"))
        raise typer.Exit(code=2)

    api_key = find_api_key(config)
    if api_key is None:
        key_display = "[red]NOT SET[/red]"
        key_source = "-"
    else:
        key_display = mask_key(api_key.value)
        key_source = api_key.source

    table = Table(title="Cuehand Configuration", border_style="cyan")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_column("Source", style="dim")

    table.add_row("Project Dir", str(project_dir), "resolved")
    table.add_row("Config File", str(config_path), "exists" if config_path.is_file() else "missing")
    table.add_row("", "", "")
    table.add_row("API Key", key_display, key_source)
    table.add_row("Intent Model", config.model_intent, "config")
    table.add_row("Extraction Model", config.model_extraction, "config")
    table.add_row("Strategy", config.strategy, "config")
    table.add_row("On Not Found", config.on_not_found, "config")
    table.add_row("Settle", f"{config.settle_seconds}s", "config")
    table.add_row("Budget", f"${config.budget:.2f}", "config")
    table.add_row("Strip SVG", str(config.strip_svg), "config")
    table.add_row("Preserve Layout", str(config.preserve_layout), "config")

    console.print()
    console.print(table)
    console.print()
