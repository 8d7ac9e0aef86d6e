"""
macOS now-playing backend using AppleScript

Queries Spotify first, then Apple Music, through ``osascript``. The first
application that has a playing or paused track wins. Neither application is
launched by the query: each is only addressed when already running.

The first query triggers the macOS automation permission prompt. Until the
user grants it, osascript fails with "Not authorized to send Apple events"
which the tracker classifies as a permission error.
"""

from typing import Optional

from .models import NowPlaying
from .process import parse_number, run_command
from ..exceptions import NowPlayingError
from ..utils.logger import get_logger


NO_TRACK_MARKER = "none"

# Fields: app, artist, title, position (s), duration, playing flag; tab separated
NOW_PLAYING_SCRIPT = '''
if application "Spotify" is running then
    tell application "Spotify"
        set playerState to player state
        if playerState is playing or playerState is paused then
            return "Spotify" & tab & (artist of current track) & tab & (name of current track) & tab & (player position as text) & tab & ((duration of current track) as text) & tab & ((playerState is playing) as text)
        end if
    end tell
end if
if application "Music" is running then
    tell application "Music"
        set playerState to player state
        if playerState is playing or playerState is paused then
            return "Music" & tab & (artist of current track) & tab & (name of current track) & tab & (player position as text) & tab & ((duration of current track) as text) & tab & ((playerState is playing) as text)
        end if
    end tell
end if
return "none"
'''


class AppleScriptNowPlaying:
    """Now-playing backend for Spotify and Apple Music on macOS"""

    name = "applescript"

    def __init__(self, executable: str = "osascript"):
        self.executable = executable
        self.logger = get_logger(__name__)

    async def current(self) -> Optional[NowPlaying]:
        """
        Query the currently playing track

        Returns:
            NowPlaying record, or None when no supported app has a current track

        Raises:
            NowPlayingError: If osascript fails (including permission denials)
        """
        returncode, stdout, stderr = await run_command(
            [self.executable, '-e', NOW_PLAYING_SCRIPT], backend=self.name
        )
        if returncode != 0:
            message = stderr.strip() or f"osascript exited with status {returncode}"
            raise NowPlayingError(message, details={'backend': self.name, 'returncode': returncode})

        return self.parse_output(stdout)

    def parse_output(self, output: str) -> Optional[NowPlaying]:
        """
        Parse the script output

        Args:
            output: osascript stdout

        Returns:
            NowPlaying record, or None for the no-track marker

        Raises:
            NowPlayingError: If the output has an unexpected shape
        """
        output = output.strip('\r\n')
        if not output.strip() or output.strip() == NO_TRACK_MARKER:
            return None

        fields = output.split('\t')
        if len(fields) != 6:
            raise NowPlayingError(
                f"Unexpected osascript output: {output!r}",
                details={'backend': self.name}
            )

        app, artist, title, position, duration, playing = fields
        duration_value = parse_number(duration)
        # Spotify reports duration in milliseconds, Music in seconds
        if app == "Spotify":
            duration_value /= 1000

        return NowPlaying(
            app=app,
            artist=artist,
            title=title,
            position_seconds=parse_number(position),
            duration_seconds=duration_value or None,
            is_playing=playing.strip().lower() == "true",
        )
