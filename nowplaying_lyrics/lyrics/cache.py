"""
Process-lifetime lyric cache with time-based expiry

Entries are keyed by track identity key and considered expired once their age
reaches the TTL (24 hours by default). Expired entries are not removed on read;
they simply stop being returned until a fresh ``put`` overwrites them. Nothing
is evicted otherwise, so the cache grows with the number of distinct tracks
played during the process lifetime.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .models import SyncedLyricSet
from ..utils.logger import get_logger


DEFAULT_TTL_MS = 24 * 60 * 60 * 1000


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class CacheEntry:
    """
    Cached lyric set with its fetch time

    Attributes:
        key: Track identity key
        value: Resolved lyric set
        fetched_at_ms: Clock reading when the entry was stored
    """
    key: str
    value: SyncedLyricSet
    fetched_at_ms: float


class LyricCache:
    """Keyed store of resolved lyric sets with lazy TTL invalidation"""

    def __init__(self, ttl_ms: int = DEFAULT_TTL_MS, clock: Optional[Callable[[], float]] = None):
        """
        Initialize an empty cache

        Args:
            ttl_ms: Entry lifetime in milliseconds
            clock: Millisecond clock; defaults to a monotonic clock
        """
        self.ttl_ms = ttl_ms
        self._clock = clock or _monotonic_ms
        self._entries: Dict[str, CacheEntry] = {}
        self.logger = get_logger(__name__)

    def get(self, key: str) -> Optional[SyncedLyricSet]:
        """
        Look up a lyric set

        Args:
            key: Track identity key

        Returns:
            Cached lyric set, or None if absent or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() - entry.fetched_at_ms >= self.ttl_ms:
            self.logger.debug(f"Cache entry expired for {key!r}")
            return None

        return entry.value

    def put(self, key: str, value: SyncedLyricSet) -> None:
        """
        Store a lyric set, replacing any previous entry for the key

        Args:
            key: Track identity key
            value: Resolved lyric set
        """
        self._entries[key] = CacheEntry(key=key, value=value, fetched_at_ms=self._clock())

    def clear(self) -> None:
        """Drop all entries"""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
