"""bisub analyze and report commands: on-demand translation and vocabulary reports."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.table import Table

from bisub.core.config import load_config
from bisub.core.errors import ResponseParseError, TranslationCallError
from bisub.core.models import TranslationRecord
from bisub.llm.analyzer import ReportKind, SubtitleAnalyzer, TextAnalyzer
from bisub.llm.client import create_client
from bisub.storage.backends import create_storage
from bisub.subtitles.captions import load_raw_cues
from bisub.subtitles.merger import merge_with_config
from bisub.utils.console import console
from bisub.utils.paths import video_id_from
from bisub.vocab.notebook import VocabularyNotebook


def analyze(
    text: Annotated[str, typer.Argument(help="English text to translate and explain.")],
    service: Annotated[
        Optional[str],
        typer.Option("--service", "-s", help="Translation service profile from config."),
    ] = None,
    save_vocab: Annotated[
        bool,
        typer.Option("--save-vocab", help="Add the difficult words to the notebook."),
    ] = False,
) -> None:
    """Translate a piece of text and list its difficult vocabulary."""
    config = load_config(**{"llm.service": service})
    try:
        client = create_client(config.llm)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    analyzer = TextAnalyzer(client, target_language=config.target_language)
    try:
        record = asyncio.run(analyzer.analyze(text))
    except (TranslationCallError, ResponseParseError) as e:
        console.print(f"[red]Analysis failed:[/red] {e}")
        raise typer.Exit(1)
    finally:
        client.close()

    if record is None:
        console.print("[yellow]Not English text, nothing to analyze.[/yellow]")
        return

    _display_record(record)

    if save_vocab and record.difficult_vocabulary:
        notebook = VocabularyNotebook(
            create_storage(config.storage), key_prefix=config.storage.vocab_chunk_prefix
        )
        added = asyncio.run(notebook.add_from_record(record))
        console.print(f"[green]Added {added} word(s) to the notebook.[/green]")


def report(
    caption_file: Annotated[
        Path,
        typer.Argument(help="Caption file: timedtext XML, JSON cues, SRT, VTT or ASS."),
    ],
    kind: Annotated[
        ReportKind,
        typer.Option("--type", "-t", help="Report type: words, phrases or summary."),
    ] = ReportKind.WORDS,
    video_id: Annotated[
        Optional[str],
        typer.Option("--video-id", "-v", help="Video id or URL used as the cache key."),
    ] = None,
    service: Annotated[
        Optional[str],
        typer.Option("--service", "-s", help="Translation service profile from config."),
    ] = None,
    limit: Annotated[int, typer.Option("--limit", help="Number of expressions.")] = 10,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Also write the report as JSON."),
    ] = None,
) -> None:
    """Build a whole-transcript vocabulary or summary report."""
    if not caption_file.is_file():
        console.print(f"[red]File not found:[/red] {caption_file}")
        raise typer.Exit(1)

    config = load_config(**{"llm.service": service})
    try:
        client = create_client(config.llm)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    groups = merge_with_config(load_raw_cues(caption_file), config.subtitles)
    if not groups:
        console.print("[red]No subtitles found.[/red]")
        raise typer.Exit(1)

    vid = video_id_from(video_id) if video_id else video_id_from(str(caption_file))
    analyzer = SubtitleAnalyzer(
        client,
        storage=create_storage(config.storage),
        target_language=config.target_language,
        key_prefix=config.storage.analysis_prefix,
    )
    try:
        result = asyncio.run(analyzer.analyze(groups, kind, video_id=vid, limit=limit))
    finally:
        client.close()

    if result is None:
        console.print("[red]No report could be generated.[/red]")
        raise typer.Exit(1)

    if isinstance(result, dict):
        _display_summary(result)
    else:
        _display_expressions(result, kind)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(result, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"[green]Saved:[/green] {output}")


def _display_record(record: TranslationRecord) -> None:
    console.print(f"[bold]Original:[/bold] {record.corrected_text}")
    console.print(f"[bold]Translation:[/bold] {record.translation}")
    if not record.difficult_vocabulary:
        return

    table = Table(title="Difficult vocabulary")
    table.add_column("Word", style="bold")
    table.add_column("Type")
    table.add_column("Phonetic", style="dim")
    table.add_column("Meaning")
    table.add_column("Example")
    for item in record.difficult_vocabulary:
        table.add_row(
            item.vocabulary,
            item.part_of_speech,
            item.phonetic,
            item.chinese_meaning,
            item.chinese_english_sentence,
        )
    console.print(table)


def _display_expressions(items: list, kind: ReportKind) -> None:
    table = Table(title=f"Top {len(items)} {kind.value}")
    table.add_column("Expression", style="bold")
    table.add_column("Level")
    table.add_column("Meaning")
    table.add_column("Context")
    for item in items:
        if not isinstance(item, dict):
            continue
        table.add_row(
            str(item.get("expression", "")),
            str(item.get("difficulty", "")),
            str(item.get("chinese_meaning", "")),
            str(item.get("source_sentence", "")),
        )
    console.print(table)


def _display_summary(summary: dict) -> None:
    console.print(f"[bold]Summary:[/bold] {summary.get('Summary', '')}")
    for point in summary.get("Viewpoints") or []:
        if isinstance(point, dict):
            console.print(f"[bold]• {point.get('Viewpoint', '')}[/bold]")
            for argument in point.get("Argument") or []:
                console.print(f"  [dim]{argument}[/dim]")
        else:
            console.print(f"• {point}")
