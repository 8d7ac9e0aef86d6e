"""Test multi-source lyric resolution"""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from nowplaying_lyrics.exceptions import ConfigError, NoLyricsFoundError, NotFoundError, UpstreamError
from nowplaying_lyrics.lyrics.http import LyricsHttpClient
from nowplaying_lyrics.lyrics.lrclib import LrclibLyricsProvider
from nowplaying_lyrics.lyrics.models import LyricsCandidate, SyncedLyricSet
from nowplaying_lyrics.lyrics.netease import NeteaseLyricsProvider
from nowplaying_lyrics.lyrics.qqmusic import QQMusicLyricsProvider
from nowplaying_lyrics.lyrics.ranking import rank_candidates
from nowplaying_lyrics.lyrics.resolver import LyricResolver, LyricSource, build_sources


def make_source(name, result=None, error=None):
    """Stub adapter returning a result or raising an error"""
    source = Mock()
    source.name = name
    source.fetch = AsyncMock(return_value=result, side_effect=error)
    return source


class TestLyricResolver:
    """Test fallback order and failure reporting"""

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self, make_lyric_set):
        found = make_lyric_set([(1000, "hello")], source="first")
        first = make_source("first", result=found)
        second = make_source("second", result=make_lyric_set([(0, "other")]))

        resolver = LyricResolver([first, second])
        result = await resolver.resolve("Artist", "Title")

        assert result is found
        first.fetch.assert_awaited_once_with("Artist", "Title")
        second.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_falls_back_after_errors_and_empty_results(self, make_lyric_set):
        found = make_lyric_set([(0, "third time lucky")])
        sources = [
            make_source("a", error=NotFoundError("no song")),
            make_source("b", result=SyncedLyricSet()),
            make_source("c", error=UpstreamError("HTTP 500")),
            make_source("d", result=found),
        ]

        resolver = LyricResolver(sources)
        assert await resolver.resolve("Artist", "Title") is found

        stats = resolver.get_stats()
        assert stats['sources']['a'] == {'attempts': 1, 'hits': 0, 'failures': 1}
        assert stats['sources']['b']['failures'] == 1
        assert stats['sources']['d']['hits'] == 1
        assert stats['successful_resolutions'] == 1

    @pytest.mark.asyncio
    async def test_exhaustion_reports_last_error(self):
        last = UpstreamError("timeout on c")
        resolver = LyricResolver([
            make_source("a", error=NotFoundError("no song")),
            make_source("b", result=SyncedLyricSet()),
            make_source("c", error=last),
        ])

        with pytest.raises(NoLyricsFoundError) as exc_info:
            await resolver.resolve("Artist", "Title")

        assert exc_info.value.last_error is last
        assert exc_info.value.last_error.source == "c"
        assert str(exc_info.value) == "timeout on c"
        assert resolver.get_stats()['failed_resolutions'] == 1

    @pytest.mark.asyncio
    async def test_exhaustion_without_errors_is_generic(self):
        resolver = LyricResolver([make_source("a", result=SyncedLyricSet())])

        with pytest.raises(NoLyricsFoundError, match="No lyrics found") as exc_info:
            await resolver.resolve("Artist", "Title")
        assert exc_info.value.last_error is None

    @pytest.mark.asyncio
    async def test_undecodable_body_falls_through_to_next_source(self, test_settings, make_lyric_set):
        test_settings.network.rate_limit = 1000
        http = LyricsHttpClient(user_agent="test", timeout=1)
        found = make_lyric_set([(0, "from the backup")], source="backup")
        backup = make_source("backup", result=found)
        resolver = LyricResolver([NeteaseLyricsProvider(http), backup], http=http)

        body = AsyncMock(return_value=(b'{"result": "\xff\xfe"}', 'utf-8'))
        with patch.object(http, '_get_body', body):
            assert await resolver.resolve("Artist", "Title") is found

        backup.fetch.assert_awaited_once_with("Artist", "Title")
        assert resolver.get_stats()['sources']['netease']['failures'] == 1
        await resolver.close()

    @pytest.mark.asyncio
    async def test_unexpected_adapter_exception_is_recorded(self, make_lyric_set):
        resolver = LyricResolver([make_source("broken", error=KeyError("lyric"))])

        with pytest.raises(NoLyricsFoundError) as exc_info:
            await resolver.resolve("Artist", "Title")

        last_error = exc_info.value.last_error
        assert isinstance(last_error, UpstreamError)
        assert last_error.source == "broken"
        assert isinstance(last_error.details['original_error'], KeyError)

        found = make_lyric_set([(0, "ok")])
        resolver = LyricResolver([make_source("broken", error=KeyError("lyric")), make_source("good", result=found)])
        assert await resolver.resolve("Artist", "Title") is found

    @pytest.mark.asyncio
    async def test_no_sources(self):
        with pytest.raises(NoLyricsFoundError):
            await LyricResolver([]).resolve("Artist", "Title")

    @pytest.mark.asyncio
    async def test_from_settings_uses_configured_order(self, test_settings):
        test_settings.lyrics.sources = ["qqmusic", "lrclib"]
        resolver = LyricResolver.from_settings(test_settings)

        assert resolver.source_names == ["qqmusic", "lrclib"]
        assert all(isinstance(source, LyricSource) for source in resolver.sources)
        await resolver.close()


class TestBuildSources:
    """Test adapter construction from source names"""

    def test_default_order(self):
        sources = build_sources(Mock())
        assert [type(source) for source in sources] == [
            LrclibLyricsProvider, NeteaseLyricsProvider, QQMusicLyricsProvider
        ]

    def test_unknown_source(self):
        with pytest.raises(ConfigError, match="genius"):
            build_sources(Mock(), names=["lrclib", "genius"])


class TestRankCandidates:
    """Test deterministic candidate ranking"""

    def test_synced_preferred_regardless_of_order(self):
        unsynced = LyricsCandidate(id=1, artist="Foo", title="Song", synced=False)
        synced = LyricsCandidate(id=2, artist="foo", title="Song", synced=True)

        assert rank_candidates([unsynced, synced], "Foo", "Song")[0] is synced
        assert rank_candidates([synced, unsynced], "Foo", "Song")[0] is synced

    def test_artist_then_title_match(self):
        other_artist = LyricsCandidate(id=1, artist="Cover Band", title="Song", synced=True)
        wrong_title = LyricsCandidate(id=2, artist="FOO", title="Song (Live)", synced=True)
        exact = LyricsCandidate(id=3, artist="foo", title="song", synced=True)

        ranked = rank_candidates([other_artist, wrong_title, exact], "Foo", "Song")
        assert [c.id for c in ranked] == [3, 2, 1]

    def test_ties_keep_upstream_order(self):
        candidates = [LyricsCandidate(id=i, artist="x", title="y", synced=True) for i in range(5)]
        assert [c.id for c in rank_candidates(candidates, "Foo", "Song")] == [0, 1, 2, 3, 4]
