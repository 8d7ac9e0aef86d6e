# nowplaying_lyrics/lyrics/__init__.py
"""
Lyrics acquisition package: provider adapters, fallback resolution, caching
and line lookup

Every provider adapter normalizes its upstream response into the same
immutable ``SyncedLyricSet``. The resolver tries adapters in priority order
and returns the first usable set; the cache keeps resolved sets for the
lifetime of the process; the locator maps a playback position to the active
line.

Usage:
    resolver = LyricResolver.from_settings()
    lyric_set = await resolver.resolve("Artist", "Title")
    line = locate(lyric_set.lines, position_ms)
    await resolver.close()
"""

# Data model shared by every component
from .models import TrackIdentity, LyricLine, SyncedLyricSet, LyricsCandidate, IDENTITY_SEPARATOR

# LRC text format and line lookup
from .lrc import parse_lrc, format_lrc
from .locator import locate, locate_index

# Time-limited cache of resolved lyric sets
from .cache import LyricCache, CacheEntry, DEFAULT_TTL_MS

# Provider adapters and their shared HTTP client
from .http import LyricsHttpClient
from .lrclib import LrclibLyricsProvider
from .netease import NeteaseLyricsProvider
from .qqmusic import QQMusicLyricsProvider
from .ranking import rank_candidates

# Ordered fallback over the adapters
from .resolver import (
    LyricResolver,
    LyricSource,
    SOURCE_REGISTRY,
    build_sources,
)

__all__ = [
    # Models
    'TrackIdentity',           # Normalized artist/title pair and identity key
    'LyricLine',               # One time-tagged line
    'SyncedLyricSet',          # Sorted lines plus full transcript
    'LyricsCandidate',         # Search hit from a multi-result provider
    'IDENTITY_SEPARATOR',

    # Format and lookup
    'parse_lrc',
    'format_lrc',
    'locate',                  # Active line for a playback position
    'locate_index',

    # Cache
    'LyricCache',
    'CacheEntry',
    'DEFAULT_TTL_MS',

    # Providers
    'LyricsHttpClient',
    'LrclibLyricsProvider',
    'NeteaseLyricsProvider',
    'QQMusicLyricsProvider',
    'rank_candidates',

    # Resolution
    'LyricResolver',           # Fallback resolver over provider adapters
    'LyricSource',             # Adapter protocol
    'SOURCE_REGISTRY',
    'build_sources',
]
