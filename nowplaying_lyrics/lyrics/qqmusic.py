"""
QQ Music lyrics provider
Tertiary source; the lyric endpoint requires a y.qq.com referer and returns
LRC text with HTML-escaped characters.
"""

from typing import Any, Dict, Optional

from asyncio_throttle import Throttler

from .http import LyricsHttpClient, dig
from .lrc import parse_lrc
from .models import SyncedLyricSet
from ..config.settings import get_settings
from ..exceptions import NotFoundError
from ..utils.logger import get_logger


LYRIC_REFERER = "https://y.qq.com"


class QQMusicLyricsProvider:
    """QQ Music lyrics provider"""

    name = "qqmusic"

    def __init__(self, http: LyricsHttpClient, base_url: Optional[str] = None):
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.http = http
        self.base_url = (base_url or self.settings.network.qqmusic_url).rstrip('/')
        self.throttler = Throttler(rate_limit=int(self.settings.network.rate_limit), period=1.0)

    async def _request(self, path: str, params: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> Any:
        async with self.throttler:
            return await self.http.get_json(f"{self.base_url}{path}", params=params, headers=headers)

    async def fetch(self, artist: str, title: str) -> SyncedLyricSet:
        """
        Fetch synchronized lyrics for a track

        Args:
            artist: Artist name
            title: Track title

        Returns:
            Lyric set (may be empty if the song has no timed lines)

        Raises:
            NotFoundError: If no song matches or the song carries no lyrics
            UpstreamError: If a request fails
        """
        search = await self._request('/soso/fcgi-bin/client_search_cp', {
            'w': f"{artist} {title}".strip(),
            'format': 'json',
            'p': 1,
            'n': 1,
        })
        song_mid = dig(search, 'data', 'song', 'list', 0, 'songmid')
        if not song_mid:
            raise NotFoundError(f"Song not found on QQ Music: {artist} - {title}", source=self.name)

        data = await self._request(
            '/lyric/fcgi-bin/fcg_query_lyric_new.fcg',
            {'songmid': song_mid, 'format': 'json', 'nobase64': 1},
            headers={'Referer': LYRIC_REFERER}
        )
        lyric = dig(data, 'lyric')
        if not lyric or not isinstance(lyric, str):
            raise NotFoundError(f"No lyrics on QQ Music for song {song_mid}", source=self.name)

        return SyncedLyricSet.from_lines(parse_lrc(lyric, unescape=True), source=self.name)
