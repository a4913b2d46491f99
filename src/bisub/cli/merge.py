"""bisub merge command: merge raw captions into readable subtitle groups."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.table import Table

from bisub.core.config import load_config
from bisub.subtitles.captions import load_raw_cues
from bisub.subtitles.converter import save_subtitles
from bisub.subtitles.merger import merge_with_config
from bisub.utils.console import console


def _format_ms(ms: int) -> str:
    minutes, rem = divmod(ms, 60_000)
    return f"{minutes:02d}:{rem / 1000:06.3f}"


def merge(
    caption_file: Annotated[
        Path,
        typer.Argument(help="Caption file: timedtext XML, JSON cues, SRT, VTT or ASS."),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Save merged groups to this file."),
    ] = None,
    fmt: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: vtt, srt, ass, txt, json."),
    ] = "vtt",
    max_gap: Annotated[
        Optional[int],
        typer.Option("--max-gap", help="Largest silence inside a group (ms)."),
    ] = None,
    max_duration: Annotated[
        Optional[int],
        typer.Option("--max-duration", help="Longest group duration (ms)."),
    ] = None,
    max_length: Annotated[
        Optional[int],
        typer.Option("--max-length", help="Longest group text (characters)."),
    ] = None,
) -> None:
    """Merge caption fragments into subtitle groups and show or save them."""
    if not caption_file.is_file():
        console.print(f"[red]File not found:[/red] {caption_file}")
        raise typer.Exit(1)

    config = load_config(
        **{
            "subtitles.max_gap_ms": max_gap,
            "subtitles.max_group_duration_ms": max_duration,
            "subtitles.max_text_length": max_length,
        }
    )

    raw_cues = load_raw_cues(caption_file)
    groups = merge_with_config(raw_cues, config.subtitles)
    console.print(f"[bold]Cues:[/bold] {len(raw_cues)}  [bold]Groups:[/bold] {len(groups)}")

    if output is not None:
        save_subtitles(groups, output, fmt=fmt)
        console.print(f"[green]Saved:[/green] {output}")
        return

    table = Table(title=f"Merged subtitles ({len(groups)})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Start", style="cyan")
    table.add_column("End", style="cyan")
    table.add_column("Text")
    for i, g in enumerate(groups, 1):
        table.add_row(str(i), _format_ms(g.start_ms), _format_ms(g.end_ms), g.text)
    console.print(table)
