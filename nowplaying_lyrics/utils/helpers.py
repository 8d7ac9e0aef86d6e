"""
Utility functions for nowplaying-lyrics
Common helpers for text normalization, transcript cleaning, formatting and retries
"""

import asyncio
import functools
import re
import unicodedata
from typing import Iterable, Tuple, Type, Union


# Unicode categories removed from track fields: control (Cc) and format (Cf).
# Player bridges occasionally leak these (bidi marks, zero-width joiners, NULs).
_STRIPPED_CATEGORIES = {'Cc', 'Cf'}


def normalize_track_field(value: str) -> str:
    """
    Normalize an artist or title reported by a media player

    Strips control and format characters and trims surrounding whitespace.
    Internal whitespace runs are collapsed to a single space.

    Args:
        value: Raw field value

    Returns:
        Normalized field value (empty string for None)
    """
    if not value:
        return ""

    cleaned = ''.join(
        ' ' if ch in '\t\n\r' else ch
        for ch in str(value)
        if ch in '\t\n\r' or unicodedata.category(ch) not in _STRIPPED_CATEGORIES
    )
    return re.sub(r'\s+', ' ', cleaned).strip()


def strip_credit_lines(text: str, markers: Iterable[str]) -> str:
    """
    Remove credit and metadata lines from a lyrics transcript

    A line is dropped when it contains any marker, compared case-insensitively.
    Line breaks of the remaining lines are preserved.

    Args:
        text: Full transcript
        markers: Marker substrings such as "composer" or "作曲"

    Returns:
        Transcript without credit lines
    """
    if not text:
        return ""

    lowered_markers = [marker.lower() for marker in markers if marker]
    kept = [
        line for line in text.split('\n')
        if not any(marker in line.lower() for marker in lowered_markers)
    ]
    return '\n'.join(kept)


def format_duration(seconds: Union[int, float]) -> str:
    """
    Format duration in seconds to human readable format

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "3:45" or "1:02:05")
    """
    if seconds is None or seconds < 0:
        return "0:00"

    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_timestamp_ms(time_ms: int) -> str:
    """
    Format a lyric timestamp as an LRC tag body

    Args:
        time_ms: Timestamp in milliseconds

    Returns:
        String like "01:02.50"
    """
    time_ms = max(0, int(time_ms))
    minutes, remainder = divmod(time_ms, 60_000)
    seconds, millis = divmod(remainder, 1000)
    return f"{minutes:02d}:{seconds:02d}.{millis // 10:02d}"


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate string to maximum length with suffix

    Args:
        text: Original text
        max_length: Maximum length including suffix
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    truncate_length = max_length - len(suffix)
    if truncate_length <= 0:
        return suffix[:max_length]

    return text[:truncate_length] + suffix


def retry_on_failure(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,)
):
    """
    Decorator for retrying coroutine functions on failure

    Only the listed exception types are retried; anything else propagates
    immediately. The last failure is re-raised once attempts run out.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between attempts in seconds
        backoff: Delay multiplier for exponential backoff
        exceptions: Exception types that trigger a retry
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 1
            current_delay = delay

            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions:
                    if attempt >= max_attempts:
                        raise

                    await asyncio.sleep(current_delay)
                    current_delay *= backoff
                    attempt += 1

        return wrapper
    return decorator
