# nowplaying_lyrics/player/__init__.py
"""
Now-playing backends

A backend exposes a ``current()`` coroutine returning a ``NowPlaying`` record,
or None when nothing is playing, and raises ``NowPlayingError`` when the
player cannot be queried.

Backends:
- AppleScriptNowPlaying: Spotify and Apple Music on macOS (osascript)
- PlayerctlNowPlaying: any MPRIS player on Linux (playerctl)
"""

import sys
from typing import Optional, Protocol, runtime_checkable

from .models import NowPlaying, PlaybackSnapshot
from .applescript import AppleScriptNowPlaying
from .playerctl import PlayerctlNowPlaying
from ..config.settings import Settings, get_settings, VALID_BACKENDS
from ..exceptions import ConfigError


@runtime_checkable
class NowPlayingProvider(Protocol):
    """Contract every now-playing backend satisfies"""

    name: str

    async def current(self) -> Optional[NowPlaying]:
        ...


def get_now_playing_provider(backend: Optional[str] = None, settings: Optional[Settings] = None) -> NowPlayingProvider:
    """
    Create the now-playing backend

    Args:
        backend: Backend name; defaults to ``player.backend``. "auto" picks
                 AppleScript on macOS and playerctl elsewhere.
        settings: Settings instance, defaults to the global one

    Returns:
        Backend instance

    Raises:
        ConfigError: If the backend name is unknown
    """
    settings = settings or get_settings()
    backend = (backend or settings.player.backend or "auto").lower()

    if backend not in VALID_BACKENDS:
        raise ConfigError(f"Unknown player backend: {backend}", details={'available': VALID_BACKENDS})

    if backend == "auto":
        backend = "applescript" if sys.platform == "darwin" else "playerctl"

    if backend == "applescript":
        return AppleScriptNowPlaying()
    return PlayerctlNowPlaying(player=settings.player.playerctl_player or None)


__all__ = [
    'NowPlaying',                  # Raw record reported by a backend
    'PlaybackSnapshot',            # Normalized per-poll view
    'NowPlayingProvider',          # Backend protocol
    'AppleScriptNowPlaying',
    'PlayerctlNowPlaying',
    'get_now_playing_provider',    # Factory honoring the configured backend
]
