"""
Now-playing data models

``NowPlaying`` is what a player backend reports; ``PlaybackSnapshot`` is the
normalized view the playback tracker works with for one poll cycle.
"""

from dataclasses import dataclass
from typing import Optional

from ..lyrics.models import TrackIdentity


@dataclass
class NowPlaying:
    """
    Raw now-playing record reported by a player backend

    Attributes:
        app: Player application name (e.g. "Spotify", "Music", "spotify")
        artist: Artist as reported by the player
        title: Title as reported by the player
        position_seconds: Playback position in seconds
        duration_seconds: Track duration in seconds, if known
        is_playing: False when the player is paused
    """
    app: str
    artist: str
    title: str
    position_seconds: float = 0.0
    duration_seconds: Optional[float] = None
    is_playing: bool = True


@dataclass(frozen=True)
class PlaybackSnapshot:
    """
    Playback state for one poll cycle

    Attributes:
        identity: Normalized track identity
        position_ms: Playback position in milliseconds (>= 0)
        is_playing: False when paused
        app: Player application name
        duration_ms: Track duration in milliseconds, if known
    """
    identity: TrackIdentity
    position_ms: int
    is_playing: bool
    app: str = ""
    duration_ms: Optional[int] = None

    @classmethod
    def from_now_playing(cls, now_playing: NowPlaying) -> 'PlaybackSnapshot':
        """
        Normalize a backend record

        Args:
            now_playing: Record reported by the backend

        Returns:
            New PlaybackSnapshot
        """
        duration = now_playing.duration_seconds
        return cls(
            identity=TrackIdentity(now_playing.artist, now_playing.title),
            position_ms=int(max(0.0, float(now_playing.position_seconds or 0.0)) * 1000),
            is_playing=bool(now_playing.is_playing),
            app=now_playing.app or "",
            duration_ms=int(float(duration) * 1000) if duration else None,
        )

    @property
    def key(self) -> str:
        return self.identity.key
