"""Caption sources: turn caption files into raw ``{start, duration, text}`` cues.

Supported inputs:
- YouTube timedtext XML (``<text start="1.2" dur="3.4">...</text>``, seconds)
- JSON arrays of ``{"start", "duration", "text"}`` objects (milliseconds)
- SRT, VTT and ASS files via pysubs2

Any failure to read or parse a source yields an empty list, which the
merger turns into an empty subtitle list.
"""

from __future__ import annotations

import html
import json
import re
import xml.etree.ElementTree as ET
from pathlib import Path

import pysubs2

from bisub.subtitles.merger import RawCue
from bisub.utils.console import console

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_caption_text(text: str) -> str:
    """Decode HTML entities and collapse whitespace (incl. line breaks)."""
    return _WHITESPACE_RE.sub(" ", html.unescape(text)).strip()


def parse_timedtext_xml(xml_text: str) -> list[RawCue]:
    """Parse a YouTube timedtext document into raw cues.

    Nodes without a usable ``start`` or ``dur`` are skipped, the same as
    malformed dict cues in the merger.
    """
    root = ET.fromstring(xml_text)
    cues = []
    for node in root.iter("text"):
        try:
            start = float(node.get("start", ""))
            duration = float(node.get("dur", ""))
        except ValueError:
            continue
        text = normalize_caption_text("".join(node.itertext()))
        cues.append(RawCue(start_ms=start * 1000, duration_ms=duration * 1000, text=text))
    return cues


def parse_json_cues(data: object) -> list[dict]:
    """Accept a JSON list of cue objects, or ``{"cues": [...]}``."""
    if isinstance(data, dict):
        data = data.get("cues", [])
    if not isinstance(data, list):
        raise ValueError("expected a JSON array of cues")
    return [item for item in data if isinstance(item, dict)]


def _load_subtitle_file(path: Path) -> list[RawCue]:
    subs = pysubs2.load(str(path))
    return [
        RawCue(
            start_ms=event.start,
            duration_ms=max(event.end - event.start, 0),
            text=normalize_caption_text(event.plaintext),
        )
        for event in subs.events
        if not event.is_comment
    ]


def load_raw_cues(path: Path) -> list[RawCue | dict]:
    """Load raw cues from a caption file, returning [] on any failure."""
    path = Path(path)
    if not path.is_file():
        console.print(f"[yellow]Caption file not found:[/yellow] {path}")
        return []

    try:
        suffix = path.suffix.lower()
        if suffix == ".xml":
            return parse_timedtext_xml(path.read_text(encoding="utf-8"))
        if suffix == ".json":
            return parse_json_cues(json.loads(path.read_text(encoding="utf-8")))
        return _load_subtitle_file(path)
    except (OSError, ValueError, ET.ParseError, pysubs2.Pysubs2Error) as e:
        console.print(f"[yellow]Could not read captions from {path}:[/yellow] {e}")
        return []
