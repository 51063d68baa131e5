"""cuehand sanitize / narrow / classify — offline views of the pipeline.

Each command reads a saved HTML file (or stdin with ``-``) and shows what the
oracle would be given, without a browser or an API key.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax

from cuehand.engine.extraction import classify_instruction
from cuehand.engine.keyword_filter import KEYWORD_SEPARATOR, filter_by_keyword
from cuehand.engine.sanitizer import DEFAULT_WRAPPER_TAGS, LAYOUT_PRESERVING_WRAPPER_TAGS, ContentSanitizer

console = Console(stderr=True)
output_console = Console()  # stdout for machine-readable output


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.is_file():
        console.print(
            Panel(
                f"[red]File not found:[/red] {source}",
                title="[red]Input Error[/red]",
                border_style="red",
            )
        )
        raise typer.Exit(code=2)
    return path.read_text(encoding="utf-8", errors="replace")


def sanitize_cmd(
    source: str = typer.Argument(..., help="HTML file to sanitize, or - for stdin."),
    keep_layout: bool = typer.Option(False, "--keep-layout", help="Keep div/span tags."),
    keep_svg: bool = typer.Option(False, "--keep-svg", help="Keep <svg> subtrees."),
) -> None:
    """Print the sanitized snapshot of an HTML document."""
    raw = _read_source(source)
    wrapper_tags = LAYOUT_PRESERVING_WRAPPER_TAGS if keep_layout else DEFAULT_WRAPPER_TAGS
    cleaned = ContentSanitizer(strip_svg=not keep_svg, wrapper_tags=wrapper_tags).sanitize(raw)
    output_console.print(cleaned, markup=False, highlight=False, soft_wrap=True)
    console.print(f"[dim]{len(raw)} -> {len(cleaned)} chars[/dim]")


def narrow_cmd(
    source: str = typer.Argument(..., help="HTML file to filter, or - for stdin."),
    keyword: str = typer.Argument(..., help="Keyword to look for (case-insensitive)."),
    tag: list[str] = typer.Option(..., "--tag", "-t", help="Candidate tag name (repeatable)."),
) -> None:
    """Print the elements of the given tags whose text or attributes mention KEYWORD."""
    narrowed = filter_by_keyword(_read_source(source), keyword, tag)
    if not narrowed:
        console.print(f"[yellow]No {', '.join(tag)} element mentions {keyword!r}[/yellow]")
        raise typer.Exit(code=1)
    output_console.print(Syntax(narrowed, "html", word_wrap=True))
    console.print(f"[dim]{narrowed.count(KEYWORD_SEPARATOR) + 1} element(s)[/dim]")


def classify_cmd(
    instruction: str = typer.Argument(..., help="Extraction instruction to classify."),
) -> None:
    """Show which tag family an extraction instruction narrows content to."""
    rule = classify_instruction(instruction)
    if rule is None:
        output_console.print("none (full page content)")
        return
    output_console.print(f"{rule.name}: {rule.selector}")
