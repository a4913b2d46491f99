"""Per-video session state.

A ``SessionContext`` holds everything that belongs to one loaded video:
its merged subtitle groups, the translation cache, the event bus and the
batch scheduler. It is created when a video loads and closed on navigation
by the ``TranslationSession`` orchestrator, so no state leaks across videos.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from bisub.core.config import BisubConfig
from bisub.core.events import SUBTITLES_UPDATED, EventBus
from bisub.core.models import SubtitleGroup, TranslationRecord
from bisub.llm.client import TranslationClient
from bisub.llm.translator import BatchScheduler, SchedulerState
from bisub.storage.backends import Storage
from bisub.storage.cache import TranslationCache
from bisub.subtitles.merger import RawCue, merge_with_config
from bisub.subtitles.timeline import groups_at


@dataclass
class SessionContext:
    video_id: str
    groups: list[SubtitleGroup]
    cache: TranslationCache
    bus: EventBus
    scheduler: BatchScheduler
    max_visible: int = 5
    closed: bool = field(default=False)

    def record_for(self, group: SubtitleGroup) -> TranslationRecord | None:
        return self.cache.get(group.text)

    def visible_at(self, time_ms: float) -> list[tuple[SubtitleGroup, TranslationRecord | None]]:
        """Groups on screen at ``time_ms`` paired with their translations, if any."""
        return [(g, self.record_for(g)) for g in groups_at(self.groups, time_ms, self.max_visible)]

    def close(self) -> None:
        """Abort any active run and drop all subscribers."""
        if self.closed:
            return
        self.scheduler.abort()
        self.bus.clear()
        self.closed = True


def create_session(
    video_id: str,
    raw_cues: Iterable[RawCue | Mapping],
    config: BisubConfig,
    client: TranslationClient,
    storage: Storage | None = None,
    bus: EventBus | None = None,
) -> SessionContext:
    """Merge cues and wire up a fresh cache and scheduler for one video."""
    bus = bus or EventBus()
    groups = merge_with_config(raw_cues, config.subtitles)
    cache = TranslationCache(storage, key_prefix=config.storage.subtitle_prefix)
    scheduler = BatchScheduler(
        client,
        cache,
        bus,
        config=config.scheduler,
        target_language=config.target_language,
    )
    context = SessionContext(
        video_id=video_id,
        groups=groups,
        cache=cache,
        bus=bus,
        scheduler=scheduler,
        max_visible=config.subtitles.max_visible,
    )
    bus.emit(SUBTITLES_UPDATED, list(groups))
    return context


class TranslationSession:
    """Top-level orchestrator owning at most one live ``SessionContext``."""

    def __init__(
        self,
        config: BisubConfig,
        client: TranslationClient,
        storage: Storage | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.storage = storage
        self.context: SessionContext | None = None

    def load_video(
        self,
        video_id: str,
        raw_cues: Iterable[RawCue | Mapping],
        bus: EventBus | None = None,
    ) -> SessionContext:
        """Close the previous video's session and open one for ``video_id``."""
        self.close()
        self.context = create_session(
            video_id, raw_cues, self.config, self.client, self.storage, bus=bus
        )
        return self.context

    def _require_context(self) -> SessionContext:
        if self.context is None or self.context.closed:
            raise RuntimeError("No video loaded")
        return self.context

    async def translate(self) -> SchedulerState:
        context = self._require_context()
        return await context.scheduler.start(context.groups, context.video_id)

    def pause(self) -> None:
        self._require_context().scheduler.pause()

    def resume(self) -> None:
        self._require_context().scheduler.resume()

    def abort(self) -> None:
        self._require_context().scheduler.abort()

    def close(self) -> None:
        if self.context is not None:
            self.context.close()
            self.context = None
