"""Test configuration and fixtures"""

import pytest
import tempfile
import yaml
from pathlib import Path
from typing import Optional

from nowplaying_lyrics.config import settings as settings_module
from nowplaying_lyrics.config.settings import Settings
from nowplaying_lyrics.exceptions import NowPlayingError
from nowplaying_lyrics.lyrics.models import LyricLine, SyncedLyricSet
from nowplaying_lyrics.player.models import NowPlaying


ENV_VARS = (
    'NOWPLAYING_LYRICS_BACKEND',
    'NOWPLAYING_LYRICS_POLL_INTERVAL',
    'NOWPLAYING_LYRICS_LOG_LEVEL',
    'NOWPLAYING_LYRICS_SOURCES',
)


class FakePlayer:
    """Now-playing backend whose answer is set by the test"""

    name = "fake"

    def __init__(self):
        self.now_playing: Optional[NowPlaying] = None
        self.error: Optional[Exception] = None
        self.calls = 0

    def play(self, artist: str, title: str, position: float = 0.0, playing: bool = True) -> None:
        self.error = None
        self.now_playing = NowPlaying(
            app="FakeMusic",
            artist=artist,
            title=title,
            position_seconds=position,
            duration_seconds=200.0,
            is_playing=playing
        )

    def stop(self) -> None:
        self.error = None
        self.now_playing = None

    def fail(self, message: str) -> None:
        self.error = NowPlayingError(message)

    async def current(self) -> Optional[NowPlaying]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.now_playing


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture(autouse=True)
def test_settings(temp_dir, monkeypatch):
    """Isolated settings installed as the global instance"""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)

    config_file = temp_dir / "config.yaml"
    config_file.write_text(yaml.safe_dump({
        'security': {'config_directory': str(temp_dir / 'home')},
        'logging': {'console_output': False},
    }), encoding='utf-8')

    settings = Settings(str(config_file))
    monkeypatch.setattr(settings_module, '_settings', settings)
    return settings


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def make_lyric_set():
    """Factory building a lyric set from (time_ms, text) pairs"""
    def _make(pairs, source="test", plain_text=None):
        lines = [LyricLine(time_ms=time_ms, text=text) for time_ms, text in pairs]
        return SyncedLyricSet.from_lines(lines, plain_text=plain_text, source=source)
    return _make


@pytest.fixture
def sample_lrc():
    """LRC payload with metadata tags, a repeated line and a credit line"""
    return (
        "[ar:Test Artist]\n"
        "[ti:Test Song]\n"
        "[00:00.50]作词 : Someone\n"
        "[00:12.00]First line\n"
        "[00:17.20][01:02.50]Chorus line\n"
        "[00:30.00]   \n"
        "[00:45.10]Last verse\n"
    )
