# nowplaying_lyrics/sync/__init__.py
"""
Synchronization package: keeps the displayed lyric line in step with playback

Architecture Overview:

1. **Playback Tracker (tracker.py)**:
   - Polls the now-playing backend at a fixed interval
   - Detects track changes through the normalized identity key
   - Drives lyric resolution in a single-flight background task and
     discards results that arrive after the track changed
   - Maps the playback position to the active line

2. **Display Model (display.py)**:
   - Immutable display states published to listeners on change
   - Notifications for conditions the user must act on

Usage:
    tracker = PlaybackTracker(get_now_playing_provider(), LyricResolver.from_settings())
    tracker.subscribe(lambda state: print(state.text))
    await tracker.run(stop_event)
"""

from .display import DisplayState, DisplayStatus, Notification, NotificationKind
from .tracker import PlaybackTracker, LyricsState, PERMISSION_HELP

__all__ = [
    # Reconciliation loop
    'PlaybackTracker',     # Owns active track, lyrics and cache
    'LyricsState',         # PENDING / READY / UNAVAILABLE sub-state
    'PERMISSION_HELP',

    # Presentation contract
    'DisplayState',        # What presenters render
    'DisplayStatus',
    'Notification',        # User-facing message with cooldown
    'NotificationKind',
]
