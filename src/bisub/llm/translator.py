"""Serial batch translation of subtitle groups with pause/resume/abort.

Groups are split into fixed-size batches and sent to the translation client
one batch at a time, so ``translation_completed`` events always follow
subtitle order and only one writer ever touches the cache. A run starts
paused and issues no requests until ``resume()`` is called.

Pausing and aborting are cooperative: they take effect at batch boundaries,
during backoff waits and between batches, never in the middle of a call.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from enum import Enum

from bisub.core.config import SchedulerConfig
from bisub.core.errors import BatchFailedError, ResponseParseError, TranslationCallError
from bisub.core.events import (
    PROCESSING_STATUS_UPDATED,
    TRANSLATION_COMPLETED,
    TRANSLATION_FAILED,
    EventBus,
    TranslationCompleted,
)
from bisub.core.models import ProcessingStatus, SubtitleGroup, TranslationRecord
from bisub.llm.client import TranslationClient
from bisub.llm.prompts import build_batch_prompt, extract_json_array
from bisub.storage.cache import TranslationCache
from bisub.utils.console import console

DEFAULT_TARGET_LANGUAGE = "Simplified Chinese"


class SchedulerState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"  # batches prepared, waiting for the first resume
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABORTED = "aborted"


_ACTIVE_STATES = {SchedulerState.SCHEDULED, SchedulerState.RUNNING, SchedulerState.PAUSED}


def chunk_groups(groups: list[SubtitleGroup], size: int) -> list[list[SubtitleGroup]]:
    """Split groups into consecutive batches of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    return [groups[i : i + size] for i in range(0, len(groups), size)]


def parse_batch_response(response: str, batch: list[SubtitleGroup]) -> list[TranslationRecord]:
    """Turn a backend response into one record per group, by position.

    Raises:
        ResponseParseError: If the response holds no JSON array, the item
            count differs from the batch size, or an item lacks a translation.
    """
    items = extract_json_array(response)
    if len(items) != len(batch):
        raise ResponseParseError(f"expected {len(batch)} items, got {len(items)}")

    records = []
    for position, (group, item) in enumerate(zip(batch, items)):
        if not isinstance(item, dict):
            raise ResponseParseError(f"item {position} is not an object")
        try:
            records.append(TranslationRecord.from_dict(item, fallback_text=group.text))
        except ValueError as e:
            raise ResponseParseError(f"item {position}: {e}") from e
    return records


class BatchScheduler:
    """Drive subtitle groups through a translation client in ordered batches.

    Args:
        client: Backend used for every batch.
        cache: Shared translation cache; written only by this scheduler.
        bus: Event bus receiving status and translation events.
        config: Batch size, intervals and retry bounds.
        target_language: Language name embedded in the prompt.
    """

    def __init__(
        self,
        client: TranslationClient,
        cache: TranslationCache,
        bus: EventBus | None = None,
        config: SchedulerConfig | None = None,
        target_language: str = DEFAULT_TARGET_LANGUAGE,
    ) -> None:
        self.client = client
        self.cache = cache
        self.bus = bus or EventBus()
        self.config = config or SchedulerConfig()
        self.target_language = target_language
        self.last_error: BaseException | None = None
        self._status = ProcessingStatus()
        self._state = SchedulerState.IDLE
        self._resumed = asyncio.Event()
        self._aborted = False

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def status(self) -> ProcessingStatus:
        """A snapshot of the current progress."""
        return replace(self._status)

    @property
    def is_active(self) -> bool:
        return self._state in _ACTIVE_STATES

    def _emit_status(self) -> None:
        self.bus.emit(PROCESSING_STATUS_UPDATED, self.status)

    def pause(self) -> None:
        """Stop issuing new batches once the in-flight one settles."""
        if not self.is_active or self._status.is_paused:
            return
        self._status.is_paused = True
        self._resumed.clear()
        self._state = SchedulerState.PAUSED
        self._emit_status()

    def resume(self) -> None:
        if not self.is_active or not self._status.is_paused:
            return
        self._status.is_paused = False
        self._resumed.set()
        self._state = SchedulerState.RUNNING
        self._emit_status()

    def abort(self) -> None:
        """Cancel the run at the next suspension point."""
        if not self.is_active:
            return
        self._aborted = True
        # Wake a paused run so it can observe the flag
        self._resumed.set()

    async def _wait_until_resumed(self) -> bool:
        """Block while paused. Returns False if the run was aborted."""
        while self._status.is_paused and not self._aborted:
            await self._resumed.wait()
            if self._status.is_paused and not self._aborted:
                self._resumed.clear()
        return not self._aborted

    def _finish_aborted(self) -> SchedulerState:
        self._state = SchedulerState.ABORTED
        self._status.is_processing = False
        self._emit_status()
        console.print(
            f"[yellow]Translation stopped:[/yellow] "
            f"{self._status.processed}/{self._status.total} subtitles processed"
        )
        return self._state

    async def _restore_session(self, groups: list[SubtitleGroup], session_id: str) -> bool:
        cached = await self.cache.load_session(session_id)
        if not cached:
            return False

        console.print(f"[dim]Using cached translations for {session_id}.[/dim]")
        for text, record in cached.items():
            self.cache.set(text, record)
            self.bus.emit(TRANSLATION_COMPLETED, TranslationCompleted(text, record))

        total = len(groups) or len(cached)
        self._status = ProcessingStatus(total=total, processed=total)
        self._state = SchedulerState.COMPLETED
        self._emit_status()
        return True

    async def _translate_batch(
        self, batch: list[SubtitleGroup], attempt: int
    ) -> list[TranslationRecord]:
        note_attempt = attempt if self.config.annotate_retries else 0
        prompt = build_batch_prompt(batch, self.target_language, attempt=note_attempt)
        try:
            response = await self.client.translate(prompt)
        except Exception as e:
            raise TranslationCallError(f"translation call failed: {e}") from e
        if not response:
            raise TranslationCallError("translation backend returned no response")
        return parse_batch_response(response, batch)

    async def _run_batch(self, batch: list[SubtitleGroup], index: int, total: int) -> bool:
        """Translate one batch with retries.

        Returns False if the run was aborted during a backoff wait.

        Raises:
            BatchFailedError: After ``max_batch_retries`` failed attempts.
        """
        last_error: Exception | None = None
        for attempt in range(self.config.max_batch_retries):
            if attempt > 0:
                delay_ms = self.config.retry_base_delay_ms * attempt
                console.print(
                    f"[yellow]Batch {index + 1}/{total} failed, "
                    f"retrying in {delay_ms / 1000:.1f}s...[/yellow]"
                )
                await asyncio.sleep(delay_ms / 1000)
                if self._aborted:
                    return False

            try:
                records = await self._translate_batch(batch, attempt)
            except (TranslationCallError, ResponseParseError) as e:
                console.print(f"[yellow]Batch {index + 1}/{total} error:[/yellow] {e}")
                last_error = e
                continue

            # Last successful response wins for repeated texts
            for group, record in zip(batch, records):
                self.cache.set(group.text, record)
                self.bus.emit(TRANSLATION_COMPLETED, TranslationCompleted(group.text, record))
            return True

        raise BatchFailedError(index, self.config.max_batch_retries, last_error) from last_error

    async def start(self, groups: list[SubtitleGroup], session_id: str) -> SchedulerState:
        """Run the whole translation session to completion or abort.

        A persisted session short-circuits the run without network calls.
        Otherwise the run starts paused (unless ``start_paused`` is off) and
        saves the session only if every batch succeeded.

        Returns:
            The final state, COMPLETED or ABORTED.

        Raises:
            BatchFailedError: If a batch exhausted its retries; the state is
                ABORTED and ``last_error`` holds the error.
            RuntimeError: If a run is already active.
            asyncio.CancelledError: If the task is cancelled; the state is
                ABORTED first, so the scheduler can be started again.
        """
        if self.is_active:
            raise RuntimeError("A translation run is already active")
        self._aborted = False
        self.last_error = None

        if await self._restore_session(groups, session_id):
            return self._state

        batches = chunk_groups(groups, self.config.batch_size)
        paused = self.config.start_paused
        self._status = ProcessingStatus(
            total=len(groups), processed=0, is_processing=True, is_paused=paused
        )
        if paused:
            self._resumed.clear()
            self._state = SchedulerState.SCHEDULED
        else:
            self._resumed.set()
            self._state = SchedulerState.RUNNING
        self._emit_status()
        console.print(
            f"[bold]Translating {len(groups)} subtitles in {len(batches)} batches[/bold]"
            + (" [dim](paused)[/dim]" if paused else "")
        )

        try:
            return await self._run_batches(groups, batches, session_id)
        except asyncio.CancelledError:
            self._finish_aborted()
            raise

    async def _run_batches(
        self, groups: list[SubtitleGroup], batches: list[list[SubtitleGroup]], session_id: str
    ) -> SchedulerState:
        for index, batch in enumerate(batches):
            if not await self._wait_until_resumed() or self._aborted:
                return self._finish_aborted()

            try:
                completed = await self._run_batch(batch, index, len(batches))
            except BatchFailedError as e:
                self.last_error = e
                self._finish_aborted()
                self.bus.emit(TRANSLATION_FAILED, e)
                console.print(f"[red]{e}[/red]")
                raise
            if not completed:
                return self._finish_aborted()

            self._status.processed += len(batch)
            self._emit_status()

            if index < len(batches) - 1:
                await asyncio.sleep(self.config.batch_interval_ms / 1000)

        if self._aborted:
            return self._finish_aborted()

        await self.cache.save_session(session_id)
        self._status.is_processing = False
        self._status.is_paused = False
        self._state = SchedulerState.COMPLETED
        self._emit_status()
        console.print(f"[green]Translation complete:[/green] {len(groups)} subtitles")
        return self._state
