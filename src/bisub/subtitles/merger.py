"""Merge raw caption cues into readable subtitle groups.

Automatic caption tracks arrive as many short, overlapping fragments. Groups
are built greedily: a cue joins the current group while the silence before
it, the resulting group duration and the resulting text length all stay
within their limits.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from bisub.core.errors import MergeInputError
from bisub.core.models import Cue, SubtitleGroup
from bisub.utils.console import console

MAX_GAP_MS = 8000
MAX_GROUP_DURATION_MS = 15000
MAX_TEXT_LENGTH = 150


@dataclass(frozen=True)
class RawCue:
    """A caption fragment as handed over by the caption source."""

    start_ms: float
    duration_ms: float
    text: str


def _as_number(value: object, name: str) -> float:
    if isinstance(value, bool) or value is None:
        raise MergeInputError(f"cue is missing '{name}'")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MergeInputError(f"cue has non-numeric '{name}': {value!r}")
    if not math.isfinite(number):
        raise MergeInputError(f"cue has non-finite '{name}': {value!r}")
    return number


def _validate(raw: RawCue | Mapping) -> RawCue:
    """Coerce one raw cue, raising MergeInputError if it is unusable."""
    if isinstance(raw, RawCue):
        start, duration, text = raw.start_ms, raw.duration_ms, raw.text
    elif isinstance(raw, Mapping):
        start = raw.get("start")
        duration = raw.get("duration", raw.get("dur"))
        text = raw.get("text", "")
    else:
        raise MergeInputError(f"unsupported cue type: {type(raw).__name__}")

    start = _as_number(start, "start")
    duration = _as_number(duration, "duration")
    if start < 0 or duration < 0:
        raise MergeInputError(f"cue has negative timing: start={start}, duration={duration}")
    return RawCue(start_ms=start, duration_ms=duration, text=str(text or "").strip())


def to_cues(raw_cues: Iterable[RawCue | Mapping]) -> list[Cue]:
    """Validate raw cues and clip each end time to the next cue's start.

    Malformed cues are skipped with a warning. Empty-text cues are dropped.
    """
    valid: list[RawCue] = []
    for index, raw in enumerate(raw_cues):
        try:
            cue = _validate(raw)
        except MergeInputError as e:
            console.print(f"[yellow]Skipping cue {index}:[/yellow] {e}")
            continue
        if cue.text:
            valid.append(cue)

    valid.sort(key=lambda c: c.start_ms)

    cues = []
    for i, cue in enumerate(valid):
        end = cue.start_ms + cue.duration_ms
        if i + 1 < len(valid):
            end = min(end, valid[i + 1].start_ms)
        cues.append(Cue(start_ms=round(cue.start_ms), end_ms=round(end), text=cue.text))
    return cues


def merge_cues(
    raw_cues: Iterable[RawCue | Mapping],
    *,
    max_gap_ms: int = MAX_GAP_MS,
    max_group_duration_ms: int = MAX_GROUP_DURATION_MS,
    max_text_length: int = MAX_TEXT_LENGTH,
) -> list[SubtitleGroup]:
    """Merge raw caption cues into subtitle groups.

    Args:
        raw_cues: ``RawCue`` objects or mappings with ``start``, ``duration``
            (or ``dur``) and ``text``, times in milliseconds.
        max_gap_ms: Largest silence allowed inside one group.
        max_group_duration_ms: Longest a merged group may last.
        max_text_length: Longest a merged group's text may be.

    Returns:
        Groups ordered by start time, never overlapping.
    """
    groups: list[SubtitleGroup] = []
    current: SubtitleGroup | None = None

    for cue in to_cues(raw_cues):
        if current is None:
            current = SubtitleGroup(start_ms=cue.start_ms, end_ms=cue.end_ms, text=cue.text)
            continue

        gap = cue.start_ms - current.end_ms
        would_be_duration = cue.end_ms - current.start_ms
        would_be_text = f"{current.text} {cue.text}"

        if (
            gap <= max_gap_ms
            and would_be_duration <= max_group_duration_ms
            and len(would_be_text) <= max_text_length
        ):
            current.end_ms = cue.end_ms
            current.text = would_be_text
        else:
            groups.append(current)
            current = SubtitleGroup(start_ms=cue.start_ms, end_ms=cue.end_ms, text=cue.text)

    if current is not None:
        groups.append(current)

    return groups


def merge_with_config(raw_cues: Iterable[RawCue | Mapping], config) -> list[SubtitleGroup]:
    """Merge using the thresholds from a ``SubtitleConfig``."""
    return merge_cues(
        raw_cues,
        max_gap_ms=config.max_gap_ms,
        max_group_duration_ms=config.max_group_duration_ms,
        max_text_length=config.max_text_length,
    )
