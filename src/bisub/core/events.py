"""Event bus for streaming translation progress to external consumers.

The scheduler publishes through a lightweight name-keyed callback registry.
Consumers (CLI progress bars, renderers, tests) subscribe to the events they
need without touching pipeline logic.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable

from bisub.core.models import TranslationRecord

SUBTITLES_UPDATED = "subtitles_updated"
PROCESSING_STATUS_UPDATED = "processing_status_updated"
TRANSLATION_COMPLETED = "translation_completed"
TRANSLATION_FAILED = "translation_failed"


@dataclass(frozen=True)
class TranslationCompleted:
    """Payload of a ``translation_completed`` event.

    Attributes:
        original_text: Exact source text of the group (the cache key).
        record: The translation written to the cache for that text.
    """

    original_text: str
    record: TranslationRecord


EventCallback = Callable[[Any], None]


class EventBus:
    """Minimal synchronous publish/subscribe registry."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventCallback]] = defaultdict(list)

    def on(self, event: str, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to an event. Returns a function that unsubscribes."""
        self._handlers[event].append(callback)
        return lambda: self.off(event, callback)

    def off(self, event: str, callback: EventCallback) -> None:
        handlers = self._handlers.get(event)
        if handlers and callback in handlers:
            handlers.remove(callback)

    def emit(self, event: str, payload: Any = None) -> None:
        # Copy so handlers may unsubscribe while being called
        for callback in list(self._handlers.get(event, ())):
            callback(payload)

    def clear(self) -> None:
        self._handlers.clear()
