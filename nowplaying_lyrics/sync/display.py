"""
Display state published by the playback tracker

The tracker never talks to a UI toolkit. It publishes immutable
``DisplayState`` values to subscribed listeners, only when the state actually
changes, and sends ``Notification`` values through a separate channel for
messages that need the user's attention.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class DisplayStatus(Enum):
    """What the short display line currently represents"""
    IDLE = "idle"                            # nothing playing
    PAUSED = "paused"
    FETCHING = "fetching"                    # lyrics pending for the active track
    LINE = "line"                            # an active lyric line is shown
    PLACEHOLDER = "placeholder"              # lyrics loaded, no line active yet
    NOT_FOUND = "not_found"
    PERMISSION_NEEDED = "permission_needed"


@dataclass(frozen=True)
class DisplayState:
    """
    Snapshot of everything a presenter shows

    Attributes:
        status: Display status
        text: Short current-line text
        tooltip: Summary such as "Now Playing: title - artist"
        transcript: Full lyrics for the expanded view
        title: Title of the active track
        artist: Artist of the active track
        line_index: Index of the active line, -1 when none
    """
    status: DisplayStatus
    text: str
    tooltip: str = ""
    transcript: str = ""
    title: str = ""
    artist: str = ""
    line_index: int = -1


class NotificationKind(Enum):
    PERMISSION = "permission"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """
    User-facing message emitted at most once per cooldown window per kind

    Attributes:
        kind: Error class the notification belongs to
        message: Text to show the user
        detail: Underlying error message, if any
    """
    kind: NotificationKind
    message: str
    detail: Optional[str] = None
