"""Shared data models for bisub.

Times are integer milliseconds throughout. Records serialise to the
camelCase wire format used by the translation prompt and the session store.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Cue:
    """A single recognised utterance from the caption source."""

    start_ms: int
    end_ms: int
    text: str


@dataclass
class SubtitleGroup:
    """One or more consecutive cues merged for on-screen display."""

    start_ms: int
    end_ms: int
    text: str

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def to_dict(self) -> dict:
        return {"startTime": self.start_ms, "endTime": self.end_ms, "text": self.text}


@dataclass(frozen=True)
class VocabItem:
    """A difficult word or phrase extracted alongside a translation."""

    vocabulary: str
    type: str = ""
    part_of_speech: str = ""
    phonetic: str = ""
    chinese_meaning: str = ""
    chinese_english_sentence: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> VocabItem:
        return cls(
            vocabulary=str(data.get("vocabulary", "")),
            type=str(data.get("type", "")),
            part_of_speech=str(data.get("part_of_speech", "")),
            phonetic=str(data.get("phonetic", "")),
            chinese_meaning=str(data.get("chinese_meaning", "")),
            chinese_english_sentence=str(data.get("chinese_english_sentence", "")),
        )

    def to_dict(self) -> dict:
        return {
            "vocabulary": self.vocabulary,
            "type": self.type,
            "part_of_speech": self.part_of_speech,
            "phonetic": self.phonetic,
            "chinese_meaning": self.chinese_meaning,
            "chinese_english_sentence": self.chinese_english_sentence,
        }


@dataclass(frozen=True)
class TranslationRecord:
    """Corrected source text, its translation and any difficult vocabulary."""

    corrected_text: str
    translation: str
    difficult_vocabulary: tuple[VocabItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict, fallback_text: str = "") -> TranslationRecord:
        """Build a record from wire data.

        Raises:
            ValueError: If ``translation`` is missing or not a string.
        """
        translation = data.get("translation")
        if not isinstance(translation, str):
            raise ValueError("record has no 'translation' string")
        corrected = data.get("correctedText")
        if not isinstance(corrected, str) or not corrected.strip():
            corrected = fallback_text
        vocab = data.get("difficultVocabulary") or []
        items = tuple(VocabItem.from_dict(v) for v in vocab if isinstance(v, dict))
        return cls(corrected_text=corrected, translation=translation, difficult_vocabulary=items)

    def to_dict(self) -> dict:
        return {
            "correctedText": self.corrected_text,
            "translation": self.translation,
            "difficultVocabulary": [v.to_dict() for v in self.difficult_vocabulary],
        }


@dataclass
class ProcessingStatus:
    """Live progress of a batch translation run."""

    total: int = 0
    processed: int = 0
    is_processing: bool = False
    is_paused: bool = False

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.processed / self.total * 100)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "processed": self.processed,
            "isProcessing": self.is_processing,
            "isPaused": self.is_paused,
        }
