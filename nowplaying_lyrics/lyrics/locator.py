"""
Line locator: maps a playback position to the active lyric line

The active line is the last line whose timestamp is at or before the playback
position. Lookup is a binary search over the already sorted lines, so it is
cheap enough to run on every poll, keeps no cursor between calls and returns
the correct line after seeks in either direction.
"""

from bisect import bisect_right
from operator import attrgetter
from typing import Optional, Sequence

from .models import LyricLine


_time_of = attrgetter('time_ms')


def locate_index(lines: Sequence[LyricLine], position_ms: float) -> int:
    """
    Find the index of the active line

    Args:
        lines: Lines sorted ascending by timestamp
        position_ms: Playback position in milliseconds

    Returns:
        Index of the active line, or -1 if the position precedes the first
        line or there are no lines
    """
    return bisect_right(lines, position_ms, key=_time_of) - 1


def locate(lines: Sequence[LyricLine], position_ms: float) -> Optional[LyricLine]:
    """
    Find the active line for a playback position

    Args:
        lines: Lines sorted ascending by timestamp
        position_ms: Playback position in milliseconds

    Returns:
        Line ``L[i]`` with ``L[i].time_ms <= position_ms < L[i+1].time_ms``
        (or the last line once its timestamp is reached), None otherwise
    """
    index = locate_index(lines, position_ms)
    return lines[index] if index >= 0 else None
