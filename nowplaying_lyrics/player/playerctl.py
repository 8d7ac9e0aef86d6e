"""
Linux now-playing backend using playerctl (MPRIS)

Any MPRIS-capable player is supported; ``playerctl_player`` restricts the
query to one player name.
"""

from typing import List, Optional

from .models import NowPlaying
from .process import parse_number, run_command
from ..exceptions import NowPlayingError
from ..utils.logger import get_logger


NO_PLAYERS_MARKER = "No players found"

METADATA_FORMAT = "\t".join([
    "{{playerName}}",
    "{{artist}}",
    "{{title}}",
    "{{position}}",
    "{{status}}",
    "{{mpris:length}}",
])


class PlayerctlNowPlaying:
    """Now-playing backend for MPRIS players via playerctl"""

    name = "playerctl"

    def __init__(self, player: Optional[str] = None, executable: str = "playerctl"):
        """
        Initialize backend

        Args:
            player: Restrict to this player name (e.g. "spotify")
            executable: playerctl executable
        """
        self.player = player or None
        self.executable = executable
        self.logger = get_logger(__name__)

    def _command(self) -> List[str]:
        command = [self.executable]
        if self.player:
            command.append(f"--player={self.player}")
        command.extend(['metadata', '--format', METADATA_FORMAT])
        return command

    async def current(self) -> Optional[NowPlaying]:
        """
        Query the currently playing track

        Returns:
            NowPlaying record, or None when no player is active or playback is stopped

        Raises:
            NowPlayingError: If playerctl fails for another reason
        """
        returncode, stdout, stderr = await run_command(self._command(), backend=self.name)

        if NO_PLAYERS_MARKER in stdout or NO_PLAYERS_MARKER in stderr:
            return None
        if returncode != 0:
            message = stderr.strip() or f"playerctl exited with status {returncode}"
            raise NowPlayingError(message, details={'backend': self.name, 'returncode': returncode})

        return self.parse_output(stdout)

    def parse_output(self, output: str) -> Optional[NowPlaying]:
        """
        Parse the metadata line

        Args:
            output: playerctl stdout

        Returns:
            NowPlaying record, or None when stopped or empty

        Raises:
            NowPlayingError: If the output has an unexpected shape
        """
        output = output.strip('\r\n')
        if not output.strip():
            return None

        fields = output.split('\t')
        if len(fields) != 6:
            raise NowPlayingError(
                f"Unexpected playerctl output: {output!r}",
                details={'backend': self.name}
            )

        player_name, artist, title, position, status, length = fields
        status = status.strip().lower()
        if status == "stopped" or not (artist.strip() or title.strip()):
            return None

        # MPRIS positions and lengths are microseconds
        duration = parse_number(length) / 1_000_000
        return NowPlaying(
            app=player_name,
            artist=artist,
            title=title,
            position_seconds=parse_number(position) / 1_000_000,
            duration_seconds=duration or None,
            is_playing=status == "playing",
        )
