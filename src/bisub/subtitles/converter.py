"""Subtitle file output for merged groups and their translations.

Handles:
- Saving merged groups (or their translations) as SRT/VTT/ASS/TXT/JSON
- Writing a bilingual VTT with the original at the bottom and the
  translation at the top
"""

from __future__ import annotations

import json
from pathlib import Path

import pysubs2

from bisub.core.models import SubtitleGroup, TranslationRecord
from bisub.storage.cache import TranslationCache


def translated_groups(
    groups: list[SubtitleGroup], cache: TranslationCache
) -> list[SubtitleGroup]:
    """Copy groups with their text replaced by the cached translation.

    Groups without a translation keep their original text.
    """
    result = []
    for group in groups:
        record = cache.get(group.text)
        text = record.translation if record and record.translation.strip() else group.text
        result.append(SubtitleGroup(start_ms=group.start_ms, end_ms=group.end_ms, text=text))
    return result


def save_subtitles(groups: list[SubtitleGroup], path: Path, fmt: str = "vtt") -> Path:
    """Save subtitle groups to a file.

    Args:
        groups: Groups to write.
        path: Output file path.
        fmt: Format: "srt", "vtt", "ass", "txt" or "json".

    Returns:
        The path the file was written to.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "txt":
        text = "\n".join(g.text for g in groups if g.text.strip())
        path.write_text(text, encoding="utf-8")
    elif fmt == "json":
        path.write_text(
            json.dumps([g.to_dict() for g in groups], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
    else:
        subs = pysubs2.SSAFile()
        for g in groups:
            subs.events.append(pysubs2.SSAEvent(start=g.start_ms, end=g.end_ms, text=g.text))
        subs.save(str(path), format_=fmt)

    return path


def save_translations_json(
    groups: list[SubtitleGroup], cache: TranslationCache, path: Path
) -> Path:
    """Write groups with their full translation records (null when missing)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    rows = []
    for g in groups:
        record: TranslationRecord | None = cache.get(g.text)
        rows.append({**g.to_dict(), "record": record.to_dict() if record else None})
    path.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def save_bilingual_vtt(
    groups: list[SubtitleGroup],
    cache: TranslationCache,
    path: Path,
) -> Path:
    """Save bilingual subtitles as a single VTT with positioning.

    Original (corrected when available) at bottom (line:85%), translation at
    top (line:5%). Untranslated groups get only the original cue.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = ["WEBVTT", ""]
    cue_id = 0
    for g in groups:
        start = _format_vtt_time(g.start_ms)
        end = _format_vtt_time(g.end_ms)
        record = cache.get(g.text)

        cue_id += 1
        lines.append(str(cue_id))
        lines.append(f"{start} --> {end} line:85%")
        lines.append(record.corrected_text if record else g.text)
        lines.append("")

        if record and record.translation.strip():
            cue_id += 1
            lines.append(str(cue_id))
            lines.append(f"{start} --> {end} line:5%")
            lines.append(record.translation)
            lines.append("")

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def _format_vtt_time(ms: int) -> str:
    """Format milliseconds as VTT timestamp (HH:MM:SS.mmm)."""
    h, rem = divmod(int(ms), 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, milli = divmod(rem, 1000)
    return f"{h:02d}:{m:02d}:{s:02d}.{milli:03d}"
