"""Playback-time lookups over merged subtitle groups.

Used by renderers to pick the groups to display at the current playback
position, to jump to the previous/next sentence and to loop one sentence.
"""

from __future__ import annotations

import bisect

from bisub.core.models import SubtitleGroup

MAX_VISIBLE = 5


def group_index_at(groups: list[SubtitleGroup], time_ms: float) -> int:
    """Index of the group active at ``time_ms`` (start inclusive, end exclusive), or -1."""
    starts = [g.start_ms for g in groups]
    i = bisect.bisect_right(starts, time_ms) - 1
    if i >= 0 and groups[i].start_ms <= time_ms < groups[i].end_ms:
        return i
    return -1


def groups_at(
    groups: list[SubtitleGroup], time_ms: float, limit: int = MAX_VISIBLE
) -> list[SubtitleGroup]:
    """All groups active at ``time_ms``, keeping at most the last ``limit``."""
    active = [g for g in groups if g.start_ms <= time_ms < g.end_ms]
    return active[-limit:] if limit > 0 else []


def previous_group(groups: list[SubtitleGroup], time_ms: float) -> SubtitleGroup | None:
    """Group before the active one, or None at the start / between groups."""
    i = group_index_at(groups, time_ms)
    return groups[i - 1] if i > 0 else None


def next_group(groups: list[SubtitleGroup], time_ms: float) -> SubtitleGroup | None:
    """Group after the active one, or None at the end / between groups."""
    i = group_index_at(groups, time_ms)
    if i == -1 or i >= len(groups) - 1:
        return None
    return groups[i + 1]


def loop_target(group: SubtitleGroup, time_ms: float) -> int | None:
    """Seek position that keeps playback looping inside ``group``.

    Returns the group start when playback has left the group, else None.
    """
    if time_ms >= group.end_ms or time_ms < group.start_ms:
        return group.start_ms
    return None
