"""
nowplaying-lyrics: synchronized lyrics for the track your media player is playing

The application polls a local media player, resolves time-tagged lyrics for
the current track from public lyric providers and shows the line that is being
sung right now, along with the full transcript.

## Core Architecture

**Configuration Management (`nowplaying_lyrics/config/`)**
- Dataclass settings loaded from YAML with environment variable overrides

**Now-Playing Backends (`nowplaying_lyrics/player/`)**
- AppleScript bridge for Spotify and Apple Music on macOS
- playerctl bridge for MPRIS players on Linux

**Lyrics Acquisition (`nowplaying_lyrics/lyrics/`)**
- Provider adapters for LRCLIB, Netease Cloud Music and QQ Music
- Ordered fallback resolver and a 24 hour in-memory cache
- LRC parsing and binary-search line lookup

**Synchronization (`nowplaying_lyrics/sync/`)**
- Playback tracker reconciling player state with loaded lyrics
- Display states published to presenters on change

**Utilities (`nowplaying_lyrics/utils/`)**
- Colored console and rotating file logging
- Text normalization, transcript cleaning and retry helpers

## Quick Start

```bash
pip install -e .
nowplaying-lyrics watch
nowplaying-lyrics fetch "Daft Punk" "One More Time" --synced
```
"""

__version__ = "1.0.0"
__author__ = "nowplaying-lyrics contributors"
__license__ = "MIT"
