"""Content-addressed translation cache with per-video session persistence.

Records are keyed by the exact source text of a subtitle group, so
duplicate groups share one record. The in-memory map is written by the
batch scheduler only; the durable session copy is written once, after a run
completes, and never for partial runs.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from bisub.core.errors import StorageError
from bisub.core.models import TranslationRecord
from bisub.storage.backends import Storage
from bisub.utils.console import console

SESSION_KEY_PREFIX = "yt-subtitles-"


class TranslationCache:
    def __init__(self, storage: Storage | None = None, key_prefix: str = SESSION_KEY_PREFIX):
        self.storage = storage
        self.key_prefix = key_prefix
        self._records: dict[str, TranslationRecord] = {}

    def get(self, key: str) -> TranslationRecord | None:
        return self._records.get(key)

    def set(self, key: str, record: TranslationRecord) -> None:
        self._records[key] = record

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def items(self) -> Iterator[tuple[str, TranslationRecord]]:
        return iter(list(self._records.items()))

    def clear(self) -> None:
        self._records.clear()

    def to_dict(self) -> dict[str, dict]:
        """Wire form: original text -> camelCase record dict."""
        return {text: record.to_dict() for text, record in self._records.items()}

    def session_key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def load_session(self, session_id: str) -> dict[str, TranslationRecord] | None:
        """Load a persisted session mapping.

        Storage errors and malformed payloads are logged and treated as a
        miss. Individual malformed records are dropped.
        """
        if self.storage is None:
            return None
        key = self.session_key(session_id)
        try:
            data = await self.storage.get(key)
        except StorageError as e:
            console.print(f"[yellow]Session cache unavailable, ignoring:[/yellow] {e}")
            return None
        if not data:
            return None
        if not isinstance(data, Mapping):
            console.print(f"[yellow]Ignoring malformed session cache:[/yellow] {key}")
            return None

        mapping = {}
        for text, raw in data.items():
            if not isinstance(raw, Mapping):
                continue
            try:
                mapping[text] = TranslationRecord.from_dict(dict(raw), fallback_text=text)
            except ValueError:
                continue
        return mapping or None

    async def save_session(
        self, session_id: str, mapping: Mapping[str, TranslationRecord] | None = None
    ) -> None:
        """Persist a session mapping (defaults to the whole in-memory cache).

        Storage errors are logged and swallowed; the run itself succeeded.
        """
        if self.storage is None:
            return
        records = self._records if mapping is None else mapping
        payload = {text: record.to_dict() for text, record in records.items()}
        try:
            await self.storage.set(self.session_key(session_id), payload)
        except StorageError as e:
            console.print(f"[yellow]Could not persist session cache:[/yellow] {e}")

    async def clear_session(self, session_id: str) -> None:
        """Drop the durable copy of a session and the in-memory records."""
        self.clear()
        if self.storage is None:
            return
        try:
            await self.storage.delete(self.session_key(session_id))
        except StorageError as e:
            console.print(f"[yellow]Could not clear session cache:[/yellow] {e}")
