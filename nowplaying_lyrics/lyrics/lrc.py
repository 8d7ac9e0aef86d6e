"""
LRC (line-synchronized lyrics) parsing and formatting

LRC is the line-oriented tagged-timestamp text format returned by most lyric
providers:

    [ar:Artist]
    [00:12.00]First line
    [00:17.20][01:02.50]Line sung twice

Parsing rules:
- Each leading ``[mm:ss.xx]`` tag yields one line at
  ``(minutes * 60 + seconds) * 1000`` milliseconds.
- Lines whose text is empty after trimming are discarded.
- Lines without a parseable timestamp (metadata tags, garbage) are silently
  dropped; they are never an error.
"""

import html
import re
from typing import Iterable, List

from .models import LyricLine
from ..utils.helpers import format_timestamp_ms


# One or more timestamp tags at the start of a line, then the text
_LINE_PATTERN = re.compile(r'^\s*((?:\[\d+:\d+(?:\.\d+)?\]\s*)+)(.*)$')
_TAG_PATTERN = re.compile(r'\[(\d+):(\d+(?:\.\d+)?)\]')


def parse_timestamp(minutes: str, seconds: str) -> int:
    """
    Convert the two halves of an LRC tag to milliseconds

    Args:
        minutes: Minutes part, e.g. "01"
        seconds: Seconds part with optional fraction, e.g. "02.50"

    Returns:
        Milliseconds from track start
    """
    return int(round((int(minutes) * 60 + float(seconds)) * 1000))


def parse_lrc(content: str, unescape: bool = False) -> List[LyricLine]:
    """
    Parse LRC text into lyric lines

    Args:
        content: Raw LRC payload
        unescape: Decode HTML entities in line text (QQ Music payloads)

    Returns:
        Lines in source order; one entry per timestamp tag
    """
    if not content:
        return []

    lines = []
    for raw_line in content.splitlines():
        match = _LINE_PATTERN.match(raw_line)
        if not match:
            continue

        tags, text = match.groups()
        if unescape:
            text = html.unescape(text)
        text = text.strip()
        if not text:
            continue

        for minutes, seconds in _TAG_PATTERN.findall(tags):
            lines.append(LyricLine(time_ms=parse_timestamp(minutes, seconds), text=text))

    return lines


def format_lrc(lines: Iterable[LyricLine]) -> str:
    """
    Render lyric lines back to LRC text

    Args:
        lines: Lines to render

    Returns:
        LRC text, one tagged line per entry
    """
    return '\n'.join(f"[{format_timestamp_ms(line.time_ms)}]{line.text}" for line in lines)
