"""
Multi-source lyric resolution with ordered fallback

The resolver holds an ordered collection of provider adapters and returns the
first usable result. Sources are tried strictly in priority order; as soon as
one yields at least one synchronized line the remaining sources are not
queried.

Failure handling:

- ``NotFoundError`` and ``UpstreamError`` from an adapter are logged, recorded
  as the last error and the next source is tried.
- An empty lyric set counts as a failure of that source but does not replace
  the last recorded error.
- When every source has been tried, ``NoLyricsFoundError`` is raised carrying
  the last recorded error. Adapter errors never escape the resolver; any other
  exception from an adapter is recorded as an ``UpstreamError`` for that source.

Per-source statistics (attempts, hits, failures) are kept for the ``sources``
CLI command and for troubleshooting.
"""

from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from .http import LyricsHttpClient
from .lrclib import LrclibLyricsProvider
from .models import SyncedLyricSet
from .netease import NeteaseLyricsProvider
from .qqmusic import QQMusicLyricsProvider
from ..config.settings import Settings, get_settings
from ..exceptions import ConfigError, LyricsError, NoLyricsFoundError, UpstreamError
from ..utils.logger import get_logger, log_performance


@runtime_checkable
class LyricSource(Protocol):
    """Contract every provider adapter satisfies"""

    name: str

    async def fetch(self, artist: str, title: str) -> SyncedLyricSet:
        ...


# Source name -> adapter class, in default priority order
SOURCE_REGISTRY = {
    'lrclib': LrclibLyricsProvider,
    'netease': NeteaseLyricsProvider,
    'qqmusic': QQMusicLyricsProvider,
}


def build_sources(
    http: LyricsHttpClient,
    names: Optional[Iterable[str]] = None,
    settings: Optional[Settings] = None
) -> List[LyricSource]:
    """
    Instantiate adapters for the configured source names

    Args:
        http: Shared HTTP client handed to every adapter
        names: Source names in priority order, defaults to ``lyrics.sources``
        settings: Settings to read the default order from

    Returns:
        Adapters in priority order

    Raises:
        ConfigError: If a name is not a known source
    """
    settings = settings or get_settings()
    names = list(names if names is not None else settings.lyrics.sources)

    sources = []
    for name in names:
        provider_class = SOURCE_REGISTRY.get(name)
        if provider_class is None:
            raise ConfigError(
                f"Unknown lyrics source: {name}",
                details={'available': list(SOURCE_REGISTRY)}
            )
        sources.append(provider_class(http))
    return sources


class LyricResolver:
    """Ordered fallback over lyric provider adapters"""

    def __init__(self, sources: Sequence[LyricSource], http: Optional[LyricsHttpClient] = None):
        """
        Initialize the resolver

        Args:
            sources: Adapters in priority order
            http: HTTP client owned by this resolver, closed by ``close()``
        """
        self.logger = get_logger(__name__)
        self.sources = list(sources)
        self.http = http

        self.stats = {
            'total_resolutions': 0,
            'successful_resolutions': 0,
            'failed_resolutions': 0,
            'sources': {source.name: {'attempts': 0, 'hits': 0, 'failures': 0} for source in self.sources}
        }

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, names: Optional[Iterable[str]] = None) -> 'LyricResolver':
        """
        Build a resolver with its own HTTP client from configuration

        Args:
            settings: Settings instance, defaults to the global one
            names: Override of the configured source order

        Returns:
            New LyricResolver
        """
        settings = settings or get_settings()
        http = LyricsHttpClient(settings.network.user_agent, settings.network.request_timeout)
        return cls(build_sources(http, names, settings), http=http)

    @property
    def source_names(self) -> List[str]:
        return [source.name for source in self.sources]

    @log_performance
    async def resolve(self, artist: str, title: str) -> SyncedLyricSet:
        """
        Resolve synchronized lyrics for a track

        Args:
            artist: Artist name
            title: Track title

        Returns:
            First non-empty lyric set in source priority order

        Raises:
            NoLyricsFoundError: If every source failed or returned no lines
        """
        self.stats['total_resolutions'] += 1
        last_error: Optional[LyricsError] = None

        for source in self.sources:
            source_stats = self.stats['sources'].setdefault(
                source.name, {'attempts': 0, 'hits': 0, 'failures': 0}
            )
            source_stats['attempts'] += 1

            try:
                self.logger.debug(f"Trying {source.name} for {artist} - {title}")
                lyric_set = await source.fetch(artist, title)
            except LyricsError as e:
                source_stats['failures'] += 1
                if e.source is None:
                    e.source = source.name
                last_error = e
                self.logger.debug(f"{source.name} failed: {e}")
                continue
            except Exception as e:
                source_stats['failures'] += 1
                last_error = UpstreamError(
                    f"{source.name} failed unexpectedly: {e}",
                    details={'original_error': e},
                    source=source.name
                )
                self.logger.warning(f"Unexpected {type(e).__name__} from {source.name}: {e}")
                continue

            if lyric_set.is_empty:
                source_stats['failures'] += 1
                self.logger.debug(f"{source.name} returned no synchronized lines")
                continue

            source_stats['hits'] += 1
            self.stats['successful_resolutions'] += 1
            self.logger.info(f"Lyrics for {artist} - {title} found via {source.name} ({len(lyric_set.lines)} lines)")
            return lyric_set

        self.stats['failed_resolutions'] += 1
        message = str(last_error) if last_error else "No lyrics found"
        raise NoLyricsFoundError(
            message,
            last_error=last_error,
            details={'artist': artist, 'title': title, 'sources': self.source_names}
        )

    def get_stats(self) -> Dict[str, Any]:
        """
        Get resolution statistics

        Returns:
            Totals, success rate and per-source counters
        """
        total = self.stats['total_resolutions']
        success_rate = (self.stats['successful_resolutions'] / total * 100) if total > 0 else 0
        return {
            'total_resolutions': total,
            'successful_resolutions': self.stats['successful_resolutions'],
            'failed_resolutions': self.stats['failed_resolutions'],
            'success_rate': f"{success_rate:.1f}%",
            'sources': {name: dict(counts) for name, counts in self.stats['sources'].items()},
        }

    async def close(self) -> None:
        """Release the HTTP session owned by this resolver"""
        if self.http is not None:
            await self.http.close()
