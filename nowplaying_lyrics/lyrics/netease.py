"""
Netease Cloud Music lyrics provider
Secondary source, reached through a community-hosted API proxy
"""

from typing import Any, Dict, Optional

from asyncio_throttle import Throttler

from .http import LyricsHttpClient, dig
from .lrc import parse_lrc
from .models import SyncedLyricSet
from ..config.settings import get_settings
from ..exceptions import NotFoundError
from ..utils.logger import get_logger


class NeteaseLyricsProvider:
    """Netease Cloud Music lyrics provider"""

    name = "netease"

    def __init__(self, http: LyricsHttpClient, base_url: Optional[str] = None):
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.http = http
        self.base_url = (base_url or self.settings.network.netease_url).rstrip('/')
        self.throttler = Throttler(rate_limit=int(self.settings.network.rate_limit), period=1.0)

    async def _request(self, path: str, params: Dict[str, Any]) -> Any:
        async with self.throttler:
            return await self.http.get_json(f"{self.base_url}{path}", params=params)

    async def fetch(self, artist: str, title: str) -> SyncedLyricSet:
        """
        Fetch synchronized lyrics for a track

        Searches songs by "artist title", takes the first hit and requests
        its LRC lyrics.

        Args:
            artist: Artist name
            title: Track title

        Returns:
            Lyric set (may be empty if the song has no timed lines)

        Raises:
            NotFoundError: If no song matches or the song carries no lyrics
            UpstreamError: If a request fails
        """
        search = await self._request('/search', {'keywords': f"{artist} {title}".strip(), 'type': 1})
        song_id = dig(search, 'result', 'songs', 0, 'id')
        if song_id is None:
            raise NotFoundError(f"Song not found on Netease: {artist} - {title}", source=self.name)

        self.logger.debug(f"Netease song id {song_id} for {artist} - {title}")

        data = await self._request('/lyric', {'id': song_id})
        lyric = dig(data, 'lrc', 'lyric')
        if not lyric:
            raise NotFoundError(f"No lyrics on Netease for song {song_id}", source=self.name)

        return SyncedLyricSet.from_lines(parse_lrc(lyric), source=self.name)
