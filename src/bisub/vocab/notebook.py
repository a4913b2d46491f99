"""Vocabulary notebook: words the learner collected from translations.

Entries are stored in fixed-size chunks (``vocab_chunk_0``, ``vocab_chunk_1``,
...) so no single storage value grows without bound. New words go to the
last chunk; a full last chunk starts a new one.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path

from bisub.core.models import TranslationRecord, VocabItem
from bisub.storage.backends import Storage

CHUNK_SIZE = 100
CHUNK_KEY_PREFIX = "vocab_chunk_"


@dataclass
class NotebookEntry:
    word: str
    meaning: str = ""
    part_of_speech: str = ""
    phonetic: str = ""
    example_sentence: str = ""
    memory_method: str = ""
    mastered: bool = False
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    @classmethod
    def from_vocab(cls, item: VocabItem) -> NotebookEntry:
        return cls(
            word=item.vocabulary,
            meaning=item.chinese_meaning,
            part_of_speech=item.part_of_speech,
            phonetic=item.phonetic,
            example_sentence=item.chinese_english_sentence,
        )

    @classmethod
    def from_dict(cls, data: dict) -> NotebookEntry:
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


class VocabularyNotebook:
    def __init__(
        self,
        storage: Storage,
        chunk_size: int = CHUNK_SIZE,
        key_prefix: str = CHUNK_KEY_PREFIX,
    ) -> None:
        self.storage = storage
        self.chunk_size = chunk_size
        self.key_prefix = key_prefix

    def _key(self, index: int) -> str:
        return f"{self.key_prefix}{index}"

    async def _chunks(self) -> list[dict[str, dict]]:
        chunks = []
        index = 0
        while True:
            chunk = await self.storage.get(self._key(index))
            if chunk is None:
                break
            chunks.append(chunk if isinstance(chunk, dict) else {})
            index += 1
        return chunks

    async def get_words(self) -> dict[str, NotebookEntry]:
        """All entries keyed by lower-cased word."""
        words: dict[str, NotebookEntry] = {}
        for chunk in await self._chunks():
            for key, data in chunk.items():
                if isinstance(data, dict):
                    words[key] = NotebookEntry.from_dict(data)
        return words

    async def add_word(self, entry: NotebookEntry) -> bool:
        """Store an entry. Returns False if the word was already collected."""
        key = entry.word.strip().lower()
        if not key:
            raise ValueError("word must not be empty")

        chunks = await self._chunks()
        if any(key in chunk for chunk in chunks):
            return False

        if not chunks or len(chunks[-1]) >= self.chunk_size:
            chunks.append({})
        index = len(chunks) - 1
        chunks[index][key] = asdict(entry)
        await self.storage.set(self._key(index), chunks[index])
        return True

    async def add_from_record(self, record: TranslationRecord) -> int:
        """Collect every difficult word of a record. Returns how many were new."""
        added = 0
        for item in record.difficult_vocabulary:
            if item.vocabulary.strip() and await self.add_word(NotebookEntry.from_vocab(item)):
                added += 1
        return added

    async def remove_word(self, word: str) -> bool:
        key = word.strip().lower()
        for index, chunk in enumerate(await self._chunks()):
            if key in chunk:
                del chunk[key]
                await self.storage.set(self._key(index), chunk)
                return True
        return False

    async def update_word(self, word: str, **updates: object) -> NotebookEntry | None:
        key = word.strip().lower()
        for index, chunk in enumerate(await self._chunks()):
            if key in chunk:
                entry = NotebookEntry.from_dict({**chunk[key], **updates})
                chunk[key] = asdict(entry)
                await self.storage.set(self._key(index), chunk)
                return entry
        return None

    async def export_json(self, path: Path) -> Path:
        words = await self.get_words()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps({k: asdict(v) for k, v in words.items()}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        return path
