"""Pipeline orchestrator: load captions, merge, translate, save."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bisub.core.errors import BatchFailedError
from bisub.core.events import PROCESSING_STATUS_UPDATED, EventBus
from bisub.core.session import SessionContext, TranslationSession
from bisub.llm.translator import SchedulerState
from bisub.subtitles.captions import load_raw_cues
from bisub.subtitles.converter import (
    save_bilingual_vtt,
    save_subtitles,
    save_translations_json,
    translated_groups,
)
from bisub.utils.console import console
from bisub.utils.paths import output_paths


@dataclass
class PipelineResult:
    state: SchedulerState
    groups: int
    translated: int
    outputs: dict[str, Path] = field(default_factory=dict)
    error: BaseException | None = None


def resume_when_scheduled(context: SessionContext) -> None:
    """Resume the context's run as soon as it is scheduled (one-shot)."""

    def _on_status(_status: object) -> None:
        if context.scheduler.state is SchedulerState.SCHEDULED:
            unsubscribe()
            context.scheduler.resume()

    unsubscribe = context.bus.on(PROCESSING_STATUS_UPDATED, _on_status)


def save_outputs(context: SessionContext, output_dir: Path) -> dict[str, Path]:
    """Write the merged VTT and, once anything is translated, the bilingual
    VTT, the translated VTT and the records JSON for a session."""
    if not context.groups:
        return {}

    paths = output_paths(output_dir, context.video_id)
    outputs = {"merged_vtt": save_subtitles(context.groups, paths["merged_vtt"])}
    if len(context.cache):
        outputs["bilingual_vtt"] = save_bilingual_vtt(
            context.groups, context.cache, paths["bilingual_vtt"]
        )
        outputs["translation_vtt"] = save_subtitles(
            translated_groups(context.groups, context.cache), paths["translation_vtt"]
        )
        outputs["translations_json"] = save_translations_json(
            context.groups, context.cache, paths["translations_json"]
        )
    for path in outputs.values():
        console.print(f"[green]Saved:[/green] {path}")
    return outputs


async def run_pipeline(
    session: TranslationSession,
    caption_file: Path,
    video_id: str,
    bus: EventBus | None = None,
    output_dir: Path | None = None,
    auto_resume: bool = True,
) -> PipelineResult:
    """Translate one caption file end to end.

    Args:
        session: Orchestrator holding config, client and storage. Its
            ``pause``/``resume``/``abort`` stay usable while this runs.
        caption_file: Timedtext XML, JSON cues or a subtitle file.
        video_id: Stable per-video identifier (session cache key).
        bus: Event bus to publish on; subscribe before calling.
        output_dir: Where to write outputs (default: next to the input).
        auto_resume: Resume the run once scheduled instead of waiting for an
            external ``resume()``.

    Returns:
        A PipelineResult describing the final state and written files.
        Translations gathered before an abort or failure are still saved
        to the output files, but never to the session cache.
    """
    raw_cues = load_raw_cues(caption_file)
    context = session.load_video(video_id, raw_cues, bus=bus)
    console.print(f"[bold]Subtitle groups:[/bold] {len(context.groups)}")

    if auto_resume:
        resume_when_scheduled(context)

    error: BaseException | None = None
    try:
        state = await session.translate()
    except BatchFailedError as e:
        state = context.scheduler.state
        error = e

    outputs = save_outputs(context, Path(output_dir or caption_file.parent))
    translated = sum(1 for g in context.groups if g.text in context.cache)
    session.close()
    return PipelineResult(
        state=state,
        groups=len(context.groups),
        translated=translated,
        outputs=outputs,
        error=error,
    )
