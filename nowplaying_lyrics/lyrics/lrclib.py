"""
LRCLIB lyrics provider
Primary source: open database of line-synchronized lyrics with a public JSON API

Retrieval is two-step: a search by track and artist name returns candidate
records, which are ranked and then fetched one by one until a record with
usable synchronized lines is found.
"""

from typing import Any, Dict, List, Optional

from asyncio_throttle import Throttler

from .http import LyricsHttpClient
from .lrc import parse_lrc
from .models import LyricLine, LyricsCandidate, SyncedLyricSet
from .ranking import rank_candidates
from ..config.settings import get_settings
from ..exceptions import NotFoundError, UpstreamError
from ..utils.logger import get_logger


class LrclibLyricsProvider:
    """LRCLIB API lyrics provider"""

    name = "lrclib"

    def __init__(self, http: LyricsHttpClient, base_url: Optional[str] = None):
        """
        Initialize LRCLIB provider

        Args:
            http: Shared HTTP client
            base_url: API root, defaults to the configured endpoint
        """
        self.settings = get_settings()
        self.logger = get_logger(__name__)
        self.http = http
        self.base_url = (base_url or self.settings.network.lrclib_url).rstrip('/')
        self.throttler = Throttler(rate_limit=int(self.settings.network.rate_limit), period=1.0)

    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        async with self.throttler:
            return await self.http.get_json(f"{self.base_url}{path}", params=params)

    async def fetch(self, artist: str, title: str) -> SyncedLyricSet:
        """
        Fetch synchronized lyrics for a track

        Args:
            artist: Artist name
            title: Track title

        Returns:
            Lyric set from the best candidate with synchronized lines

        Raises:
            NotFoundError: If the search has no hits or no hit has synced lyrics
            UpstreamError: If the search request fails
        """
        results = await self._request('/search', {'track_name': title, 'artist_name': artist})
        if not isinstance(results, list) or not results:
            raise NotFoundError(f"No lyrics found on lrclib for {artist} - {title}", source=self.name)

        candidates = rank_candidates(
            [c for c in (self._to_candidate(r) for r in results) if c is not None],
            artist,
            title
        )
        self.logger.debug(f"lrclib returned {len(candidates)} candidates for {artist} - {title}")

        for candidate in candidates:
            try:
                record = await self._request(f'/get/{candidate.id}')
            except UpstreamError as e:
                self.logger.debug(f"lrclib record {candidate.id} failed: {e}")
                continue

            lyric_set = self.parse_record(record)
            if not lyric_set.is_empty:
                self.logger.debug(
                    f"lrclib matched record {candidate.id} "
                    f"({candidate.artist} - {candidate.title}, {len(lyric_set.lines)} lines)"
                )
                return lyric_set

        raise NotFoundError(f"No synchronized lyrics on lrclib for {artist} - {title}", source=self.name)

    def _to_candidate(self, result: Any) -> Optional[LyricsCandidate]:
        """Convert one search hit to a candidate, skipping malformed hits"""
        if not isinstance(result, dict) or result.get('id') is None:
            return None

        synced = bool(result.get('syncedFlag')) or bool(result.get('syncedLyrics'))
        return LyricsCandidate(
            id=result['id'],
            artist=str(result.get('artistName') or ''),
            title=str(result.get('trackName') or result.get('name') or ''),
            synced=synced,
        )

    def parse_record(self, record: Any) -> SyncedLyricSet:
        """
        Normalize a full LRCLIB record

        ``syncedLyrics`` is accepted both as a list of ``{time, text}`` objects
        (time in milliseconds) and as an LRC string.

        Args:
            record: Decoded record

        Returns:
            Lyric set, empty if the record has no usable synced lines
        """
        if not isinstance(record, dict):
            return SyncedLyricSet(source=self.name)

        synced = record.get('syncedLyrics')
        if isinstance(synced, str):
            lines = parse_lrc(synced)
        elif isinstance(synced, list):
            lines = self._parse_line_objects(synced)
        else:
            lines = []

        plain_text = record.get('plainLyrics')
        return SyncedLyricSet.from_lines(
            lines,
            plain_text=plain_text if isinstance(plain_text, str) else None,
            source=self.name
        )

    def _parse_line_objects(self, items: List[Any]) -> List[LyricLine]:
        lines = []
        for item in items:
            if not isinstance(item, dict):
                continue
            text = str(item.get('text') or '').strip()
            try:
                time_ms = int(item.get('time'))
            except (TypeError, ValueError, OverflowError):
                continue
            if text and time_ms >= 0:
                lines.append(LyricLine(time_ms=time_ms, text=text))
        return lines
