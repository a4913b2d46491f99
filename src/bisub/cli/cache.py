"""Session cache CLI commands."""

from __future__ import annotations

import asyncio

import typer
from rich.table import Table

from bisub.core.config import load_config
from bisub.storage.backends import create_storage
from bisub.storage.cache import TranslationCache
from bisub.utils.console import console
from bisub.utils.paths import video_id_from

cache = typer.Typer(help="Inspect or clear cached translation sessions.", no_args_is_help=True)


def _cache() -> TranslationCache:
    config = load_config()
    return TranslationCache(
        create_storage(config.storage), key_prefix=config.storage.subtitle_prefix
    )


@cache.command("show")
def show(
    video: str = typer.Argument(..., help="Video id or URL."),
    limit: int = typer.Option(20, "--limit", "-n", help="Rows to show."),
) -> None:
    """Show the cached translations of a video."""
    video_id = video_id_from(video)
    mapping = asyncio.run(_cache().load_session(video_id))
    if not mapping:
        console.print(f"[dim]No cached session for {video_id}.[/dim]")
        return

    table = Table(title=f"{video_id}: {len(mapping)} cached translations")
    table.add_column("Original")
    table.add_column("Translation")
    table.add_column("Vocab", justify="right", style="dim")
    for text, record in list(mapping.items())[:limit]:
        table.add_row(text, record.translation, str(len(record.difficult_vocabulary)))
    console.print(table)


@cache.command("clear")
def clear(
    video: str = typer.Argument(..., help="Video id or URL."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete the cached session of a video."""
    video_id = video_id_from(video)
    if not yes:
        typer.confirm(f"Delete cached translations for {video_id}?", abort=True)
    asyncio.run(_cache().clear_session(video_id))
    console.print(f"[green]Cleared:[/green] {video_id}")
