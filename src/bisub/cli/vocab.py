"""Vocabulary notebook CLI commands."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.table import Table

from bisub.core.config import load_config
from bisub.storage.backends import create_storage
from bisub.utils.console import console
from bisub.vocab.notebook import NotebookEntry, VocabularyNotebook

vocab = typer.Typer(help="Manage the vocabulary notebook.", no_args_is_help=True)


def _notebook() -> VocabularyNotebook:
    config = load_config()
    return VocabularyNotebook(
        create_storage(config.storage), key_prefix=config.storage.vocab_chunk_prefix
    )


@vocab.command("list")
def list_words(
    all_words: bool = typer.Option(False, "--all", "-a", help="Include mastered words."),
) -> None:
    """Show collected words."""
    words = asyncio.run(_notebook().get_words())
    entries = [e for e in words.values() if all_words or not e.mastered]
    if not entries:
        console.print("[dim]The notebook is empty.[/dim]")
        return

    entries.sort(key=lambda e: e.timestamp, reverse=True)
    table = Table(title=f"Vocabulary ({len(entries)})")
    table.add_column("Word", style="bold")
    table.add_column("POS")
    table.add_column("Phonetic", style="dim")
    table.add_column("Meaning")
    table.add_column("Mastered", justify="center")
    for e in entries:
        table.add_row(e.word, e.part_of_speech, e.phonetic, e.meaning, "✓" if e.mastered else "")
    console.print(table)


@vocab.command("add")
def add_word(
    word: str = typer.Argument(..., help="Word or phrase to collect."),
    meaning: str = typer.Option("", "--meaning", "-m", help="Meaning in your language."),
    part_of_speech: str = typer.Option("", "--pos", help="Part of speech."),
    phonetic: str = typer.Option("", "--phonetic", help="Pronunciation."),
) -> None:
    """Add a word by hand."""
    entry = NotebookEntry(
        word=word, meaning=meaning, part_of_speech=part_of_speech, phonetic=phonetic
    )
    try:
        added = asyncio.run(_notebook().add_word(entry))
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    if added:
        console.print(f"[green]Added:[/green] {word}")
    else:
        console.print(f"[yellow]Already collected:[/yellow] {word}")


@vocab.command("remove")
def remove_word(word: str = typer.Argument(..., help="Word to remove.")) -> None:
    """Remove a word from the notebook."""
    if not asyncio.run(_notebook().remove_word(word)):
        console.print(f"[red]Not found:[/red] {word}")
        raise typer.Exit(1)
    console.print(f"[green]Removed:[/green] {word}")


@vocab.command("master")
def master_word(
    word: str = typer.Argument(..., help="Word to mark."),
    undo: bool = typer.Option(False, "--undo", help="Mark as not mastered."),
) -> None:
    """Mark a word as mastered."""
    entry = asyncio.run(_notebook().update_word(word, mastered=not undo))
    if entry is None:
        console.print(f"[red]Not found:[/red] {word}")
        raise typer.Exit(1)
    state = "not mastered" if undo else "mastered"
    console.print(f"[green]{entry.word}:[/green] {state}")


@vocab.command("export")
def export_words(
    output: Path = typer.Argument(Path("vocabulary.json"), help="Destination JSON file."),
) -> None:
    """Export the notebook as JSON."""
    path = asyncio.run(_notebook().export_json(output))
    console.print(f"[green]Saved:[/green] {path}")
