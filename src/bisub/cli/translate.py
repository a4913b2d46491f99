"""bisub translate command: translate a caption file into bilingual subtitles."""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn

from bisub.core.config import load_config
from bisub.core.events import PROCESSING_STATUS_UPDATED, EventBus
from bisub.core.models import ProcessingStatus
from bisub.core.pipeline import run_pipeline
from bisub.core.session import TranslationSession
from bisub.llm.client import create_client
from bisub.llm.translator import SchedulerState
from bisub.storage.backends import create_storage
from bisub.utils.console import console
from bisub.utils.paths import video_id_from


def translate(
    caption_file: Annotated[
        Path,
        typer.Argument(help="Caption file: timedtext XML, JSON cues, SRT, VTT or ASS."),
    ],
    video_id: Annotated[
        Optional[str],
        typer.Option("--video-id", "-v", help="Video id or URL used as the cache key."),
    ] = None,
    service: Annotated[
        Optional[str],
        typer.Option("--service", "-s", help="Translation service profile from config."),
    ] = None,
    output_dir: Annotated[
        Optional[Path],
        typer.Option("--output-dir", "-o", help="Directory for output files."),
    ] = None,
    batch_size: Annotated[
        Optional[int],
        typer.Option("--batch-size", help="Subtitle groups per request."),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Use an in-memory session cache only."),
    ] = False,
) -> None:
    """Merge captions and translate them in batches with live progress.

    Press Ctrl+C to stop after the current batch; partial results are written
    to the output files but not to the session cache.
    """
    if not caption_file.is_file():
        console.print(f"[red]File not found:[/red] {caption_file}")
        raise typer.Exit(1)

    config = load_config(
        **{
            "llm.service": service,
            "scheduler.batch_size": batch_size,
            "storage.backend": "memory" if no_cache else None,
        }
    )
    try:
        client = create_client(config.llm)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    vid = video_id_from(video_id) if video_id else video_id_from(str(caption_file))
    session = TranslationSession(config, client, create_storage(config.storage))
    console.print(f"[bold]Video:[/bold] {vid}  [bold]Service:[/bold] {config.llm.service}")

    result = asyncio.run(_run(session, caption_file, vid, output_dir))
    client.close()

    console.print(
        f"[bold]Translated:[/bold] {result.translated}/{result.groups} subtitle groups "
        f"({result.state.value})"
    )
    if result.error is not None:
        console.print(f"[red]Translation failed:[/red] {result.error}")
        raise typer.Exit(1)
    if result.state is SchedulerState.ABORTED:
        raise typer.Exit(130)


async def _run(session: TranslationSession, caption_file: Path, video_id: str, output_dir):
    bus = EventBus()
    loop = asyncio.get_running_loop()

    def _abort() -> None:
        if session.context is not None:
            console.print("[yellow]Stopping after the current batch...[/yellow]")
            session.abort()

    try:
        loop.add_signal_handler(signal.SIGINT, _abort)
    except (NotImplementedError, RuntimeError):
        pass  # Signal handlers are unavailable on some platforms (Windows)

    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeRemainingColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Translating", total=None)

        def _on_status(status: ProcessingStatus) -> None:
            description = "Paused" if status.is_paused else "Translating"
            progress.update(
                task, total=status.total, completed=status.processed, description=description
            )

        bus.on(PROCESSING_STATUS_UPDATED, _on_status)
        try:
            return await run_pipeline(
                session, caption_file, video_id, bus=bus, output_dir=output_dir
            )
        finally:
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except (NotImplementedError, RuntimeError):
                pass
