"""On-demand text translation and whole-subtitle vocabulary reports."""

from __future__ import annotations

import re
from enum import Enum

from bisub.core.errors import ResponseParseError, StorageError, TranslationCallError
from bisub.core.models import SubtitleGroup, TranslationRecord
from bisub.llm.client import TranslationClient
from bisub.llm.prompts import (
    PHRASES_REPORT_PROMPT,
    SUMMARY_REPORT_PROMPT,
    TEXT_ANALYSIS_PROMPT,
    WORDS_REPORT_PROMPT,
    extract_json_array,
    extract_json_object,
)
from bisub.storage.backends import Storage
from bisub.utils.console import console

_CJK_RE = re.compile(r"[\u4e00-\u9fa5]")
# At least three English words joined by ordinary separators
_ENGLISH_RE = re.compile(
    r"[a-zA-Z]+(?:['’-][a-zA-Z]+)*(?:[\s,.;!?()'\":]+[a-zA-Z]+(?:['’-][a-zA-Z]+)*){2,}"
)

REPORT_LIMIT = 10


def contains_english(text: str) -> bool:
    """True for English prose: no Chinese characters and 3+ English words."""
    if _CJK_RE.search(text):
        return False
    return bool(_ENGLISH_RE.search(text))


class TextAnalyzer:
    """Translate arbitrary text and extract its difficult vocabulary.

    Results are cached in memory by exact text for the analyzer's lifetime.
    """

    def __init__(self, client: TranslationClient, target_language: str = "Simplified Chinese"):
        self.client = client
        self.target_language = target_language
        self._cache: dict[str, TranslationRecord] = {}

    async def analyze(self, text: str) -> TranslationRecord | None:
        """Return the translation record, or None for text that is not English.

        Raises:
            TranslationCallError: If the backend returns nothing.
            ResponseParseError: If the response holds no usable JSON object.
        """
        text = text.strip()
        if not text or not contains_english(text):
            return None
        if text in self._cache:
            return self._cache[text]

        prompt = TEXT_ANALYSIS_PROMPT.format(target_language=self.target_language, text=text)
        response = await self.client.translate(prompt)
        if not response:
            raise TranslationCallError("translation backend returned no response")

        data = extract_json_object(response)
        try:
            record = TranslationRecord.from_dict(data, fallback_text=text)
        except ValueError as e:
            raise ResponseParseError(str(e)) from e
        self._cache[text] = record
        return record


class ReportKind(str, Enum):
    WORDS = "words"
    PHRASES = "phrases"
    SUMMARY = "summary"


_REPORT_PROMPTS = {
    ReportKind.WORDS: WORDS_REPORT_PROMPT,
    ReportKind.PHRASES: PHRASES_REPORT_PROMPT,
    ReportKind.SUMMARY: SUMMARY_REPORT_PROMPT,
}


class SubtitleAnalyzer:
    """Analyse a whole transcript for hard expressions or a summary.

    Reports are persisted per video and kind, so each is requested once.
    """

    def __init__(
        self,
        client: TranslationClient,
        storage: Storage | None = None,
        target_language: str = "Simplified Chinese",
        key_prefix: str = "yt-subtitle-analysis-",
    ) -> None:
        self.client = client
        self.storage = storage
        self.target_language = target_language
        self.key_prefix = key_prefix

    def cache_key(self, video_id: str, kind: ReportKind) -> str:
        return f"{self.key_prefix}{video_id}-{kind.value}"

    async def _cached(self, key: str) -> list | dict | None:
        if self.storage is None:
            return None
        try:
            return await self.storage.get(key)
        except StorageError as e:
            console.print(f"[yellow]Analysis cache unavailable:[/yellow] {e}")
            return None

    async def _store(self, key: str, value: list | dict) -> None:
        if self.storage is None:
            return
        try:
            await self.storage.set(key, value)
        except StorageError as e:
            console.print(f"[yellow]Could not cache analysis:[/yellow] {e}")

    async def analyze(
        self,
        groups: list[SubtitleGroup],
        kind: ReportKind = ReportKind.WORDS,
        video_id: str = "",
        limit: int = REPORT_LIMIT,
    ) -> list | dict | None:
        """Build (or load) a report.

        Returns:
            A list of expression dicts for WORDS/PHRASES, a dict with
            ``Summary``/``Viewpoints`` for SUMMARY, or None if the backend
            failed or answered with something unusable.
        """
        key = self.cache_key(video_id, kind)
        cached = await self._cached(key) if video_id else None
        if cached:
            console.print("[dim]Loading analysis from cache.[/dim]")
            return cached

        subtitles = "\n".join(g.text for g in groups)
        prompt = _REPORT_PROMPTS[kind].format(
            target_language=self.target_language, limit=limit, subtitles=subtitles
        )

        response = await self.client.translate(prompt)
        if not response:
            console.print("[yellow]Subtitle analysis failed:[/yellow] no response")
            return None
        try:
            if kind is ReportKind.SUMMARY:
                result: list | dict = extract_json_object(response)
            else:
                result = extract_json_array(response)
        except ResponseParseError as e:
            console.print(f"[yellow]Subtitle analysis failed:[/yellow] {e}")
            return None

        if video_id:
            await self._store(key, result)
        return result
