"""
Lyrics data models for track identity and synchronized lyric sets

These models are the single internal representation every provider adapter
normalizes into. They are immutable so a lyric set can be shared between the
cache and the playback tracker without defensive copies.

Model Overview:

- **TrackIdentity**: normalized artist/title pair and the identity key derived
  from it. The key drives track-change detection and keys the lyric cache.
- **LyricLine**: one time-tagged line (millisecond timestamp plus text).
- **SyncedLyricSet**: ordered lines plus the full plain-text transcript.

Ordering Invariant:

Lines inside a SyncedLyricSet are always sorted ascending by timestamp. The
sort is stable, so lines sharing a timestamp keep the order the provider
returned them in.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from ..utils.helpers import normalize_track_field, strip_credit_lines


# Joins artist and title into the identity key. Control characters are stripped
# from both fields, so the separator can never occur inside either of them.
IDENTITY_SEPARATOR = "\x1f"


@dataclass(frozen=True)
class TrackIdentity:
    """
    Normalized artist/title pair identifying a track

    Both fields are normalized on construction (trimmed, control and format
    characters removed), so two polls of the same unchanged track always
    produce equal identities and equal keys.

    Attributes:
        artist: Normalized artist name
        title: Normalized track title
    """
    artist: str
    title: str

    def __post_init__(self):
        object.__setattr__(self, 'artist', normalize_track_field(self.artist))
        object.__setattr__(self, 'title', normalize_track_field(self.title))

    @property
    def key(self) -> str:
        """Identity key used for change detection and caching"""
        return f"{self.artist}{IDENTITY_SEPARATOR}{self.title}"

    @property
    def is_empty(self) -> bool:
        """True when the player reported neither artist nor title"""
        return not self.artist and not self.title

    def __str__(self) -> str:
        return f"{self.artist} - {self.title}"


@dataclass(frozen=True)
class LyricLine:
    """
    Single synchronized lyric line

    Attributes:
        time_ms: Start of the line in milliseconds from the track start (>= 0)
        text: Line text, non-empty after trimming
    """
    time_ms: int
    text: str

    def __post_init__(self):
        if self.time_ms < 0:
            raise ValueError(f"Lyric line timestamp must be >= 0: {self.time_ms}")
        text = (self.text or "").strip()
        if not text:
            raise ValueError("Lyric line text must not be empty")
        object.__setattr__(self, 'time_ms', int(self.time_ms))
        object.__setattr__(self, 'text', text)


@dataclass(frozen=True)
class SyncedLyricSet:
    """
    Synchronized lyrics for one track

    Attributes:
        lines: Lines sorted ascending by timestamp
        plain_text: Full transcript; the provider's own unsynced lyrics or,
                    when absent, the line texts joined with newlines
        source: Name of the provider the set came from
    """
    lines: Tuple[LyricLine, ...] = ()
    plain_text: str = ""
    source: str = ""

    def __post_init__(self):
        ordered = tuple(sorted(self.lines, key=lambda line: line.time_ms))
        object.__setattr__(self, 'lines', ordered)
        if not self.plain_text:
            object.__setattr__(self, 'plain_text', '\n'.join(line.text for line in ordered))

    @classmethod
    def from_lines(
        cls,
        lines: Iterable[LyricLine],
        plain_text: Optional[str] = None,
        source: str = ""
    ) -> 'SyncedLyricSet':
        """
        Build a lyric set from parsed lines

        Args:
            lines: Parsed lines in source order
            plain_text: Provider transcript, if it supplies one
            source: Provider name

        Returns:
            New SyncedLyricSet
        """
        return cls(lines=tuple(lines), plain_text=(plain_text or "").strip(), source=source)

    @property
    def is_empty(self) -> bool:
        """True when there are no usable synchronized lines"""
        return not self.lines

    def without_credits(self, markers: Iterable[str]) -> 'SyncedLyricSet':
        """
        Return a copy whose transcript has credit lines removed

        Synchronized lines are left untouched.

        Args:
            markers: Credit marker substrings

        Returns:
            New SyncedLyricSet with a cleaned transcript
        """
        return replace(self, plain_text=strip_credit_lines(self.plain_text, markers))


@dataclass
class LyricsCandidate:
    """
    Search hit from a provider that can return several matches

    Attributes:
        id: Upstream record identifier used for the lyric-retrieval step
        artist: Artist name as stored upstream
        title: Track title as stored upstream
        synced: Whether the upstream flags the record as having synced lyrics
    """
    id: int
    artist: str
    title: str
    synced: bool = False
