"""CLI integration tests with network and player boundaries mocked"""

import pytest
from click.testing import CliRunner
from unittest.mock import AsyncMock, Mock, patch

from nowplaying_lyrics.exceptions import NoLyricsFoundError
from nowplaying_lyrics.player.models import NowPlaying


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli():
    from nowplaying_lyrics.main import cli
    return cli


@pytest.fixture
def stub_resolver(make_lyric_set):
    resolver = Mock()
    resolver.resolve = AsyncMock(return_value=make_lyric_set(
        [(1500, "First"), (62500, "Second")],
        plain_text="作词 : Someone\nFirst\nSecond",
        source="lrclib"
    ))
    resolver.close = AsyncMock()
    with patch('nowplaying_lyrics.main.LyricResolver') as resolver_class:
        resolver_class.from_settings.return_value = resolver
        yield resolver_class, resolver


class TestCli:
    """Test command wiring and output"""

    def test_version(self, runner, cli):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert "nowplaying-lyrics v" in result.output

    def test_fetch_prints_clean_transcript(self, runner, cli, stub_resolver):
        resolver_class, resolver = stub_resolver

        result = runner.invoke(cli, ['fetch', 'Artist', 'Title'])

        assert result.exit_code == 0
        assert "First\nSecond" in result.output
        assert "作词" not in result.output
        resolver.resolve.assert_awaited_once_with('Artist', 'Title')
        resolver.close.assert_awaited_once()
        assert resolver_class.from_settings.call_args.kwargs['names'] is None

    def test_fetch_synced_from_one_source(self, runner, cli, stub_resolver):
        resolver_class, _ = stub_resolver

        result = runner.invoke(cli, ['fetch', 'Artist', 'Title', '--synced', '--source', 'netease'])

        assert result.exit_code == 0
        assert "[00:01.50]First" in result.output
        assert "[01:02.50]Second" in result.output
        assert resolver_class.from_settings.call_args.kwargs['names'] == ['netease']

    def test_fetch_not_found(self, runner, cli, stub_resolver):
        _, resolver = stub_resolver
        resolver.resolve.side_effect = NoLyricsFoundError("No lyrics found")

        result = runner.invoke(cli, ['fetch', 'Artist', 'Title'])

        assert result.exit_code == 1
        assert "No lyrics found" in result.output
        resolver.close.assert_awaited_once()

    def test_now(self, runner, cli):
        provider = Mock()
        provider.current = AsyncMock(return_value=NowPlaying(
            app="Spotify", artist="Artist", title="Title",
            position_seconds=75, duration_seconds=200, is_playing=True
        ))

        with patch('nowplaying_lyrics.main.get_now_playing_provider', return_value=provider):
            result = runner.invoke(cli, ['now'])

        assert result.exit_code == 0
        assert "Playing in Spotify" in result.output
        assert "1:15 / 3:20" in result.output

    def test_now_idle(self, runner, cli):
        provider = Mock()
        provider.current = AsyncMock(return_value=None)

        with patch('nowplaying_lyrics.main.get_now_playing_provider', return_value=provider):
            result = runner.invoke(cli, ['now'])

        assert result.exit_code == 0
        assert "No music playing" in result.output

    def test_sources(self, runner, cli, test_settings):
        test_settings.lyrics.sources = ["qqmusic", "lrclib"]

        result = runner.invoke(cli, ['sources'])

        assert result.exit_code == 0
        assert result.output.index("qqmusic") < result.output.index("lrclib")

    def test_config_set_persists(self, runner, cli, test_settings):
        result = runner.invoke(cli, ['config', 'set', '--interval', '0.5', '--sources', 'netease,lrclib'])

        assert result.exit_code == 0
        assert test_settings.player.poll_interval == 0.5
        assert test_settings.lyrics.sources == ["netease", "lrclib"]
        assert (test_settings.get_config_directory() / "config.yaml").exists()

    def test_config_set_rejects_unknown_source(self, runner, cli):
        result = runner.invoke(cli, ['config', 'set', '--sources', 'lrclib,genius'])
        assert result.exit_code == 1
        assert "genius" in result.output

    def test_config_show(self, runner, cli):
        result = runner.invoke(cli, ['config', 'show'])
        assert result.exit_code == 0
        assert "Sources: lrclib, netease, qqmusic" in result.output

    def test_watch_refuses_invalid_configuration(self, runner, cli, test_settings):
        test_settings.network.rate_limit = 0
        test_settings.player.poll_interval = 0

        with patch('nowplaying_lyrics.main.PlaybackTracker') as tracker_class:
            result = runner.invoke(cli, ['watch', '--backend', 'playerctl'])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert "Rate limit" in result.output
        assert "Poll interval" in result.output
        tracker_class.assert_not_called()

    def test_fetch_refuses_invalid_configuration(self, runner, cli, test_settings, stub_resolver):
        resolver_class, _ = stub_resolver
        test_settings.network.rate_limit = 0

        result = runner.invoke(cli, ['fetch', 'Artist', 'Title'])

        assert result.exit_code == 1
        assert "Rate limit" in result.output
        resolver_class.from_settings.assert_not_called()
