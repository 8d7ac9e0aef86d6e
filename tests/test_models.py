"""Test lyrics and playback data models"""

import pytest

from nowplaying_lyrics.lyrics.models import IDENTITY_SEPARATOR, LyricLine, SyncedLyricSet, TrackIdentity
from nowplaying_lyrics.player.models import NowPlaying, PlaybackSnapshot


class TestTrackIdentity:
    """Test identity normalization and keys"""

    def test_key_is_stable(self):
        first = TrackIdentity("  Daft Punk ", "One More Time")
        second = TrackIdentity("Daft Punk", "One More Time\u200b")
        assert first == second
        assert first.key == second.key == f"Daft Punk{IDENTITY_SEPARATOR}One More Time"

    def test_key_changes_with_either_field(self):
        base = TrackIdentity("Artist", "Title")
        assert base.key != TrackIdentity("Artist", "Other").key
        assert base.key != TrackIdentity("Other", "Title").key

    def test_no_key_collisions(self):
        assert TrackIdentity("a", "b c").key != TrackIdentity("a b", "c").key
        assert TrackIdentity("a-b", "c").key != TrackIdentity("a", "b-c").key

    def test_separator_cannot_be_injected(self):
        identity = TrackIdentity(f"a{IDENTITY_SEPARATOR}b", "c")
        assert identity.artist == "ab"
        assert identity.key.count(IDENTITY_SEPARATOR) == 1

    def test_is_empty(self):
        assert TrackIdentity("", "  ").is_empty
        assert not TrackIdentity("", "Title").is_empty
        assert str(TrackIdentity("Artist", "Title")) == "Artist - Title"


class TestLyricLine:
    """Test line validation"""

    def test_text_is_trimmed(self):
        assert LyricLine(time_ms=10, text="  hi  ").text == "hi"

    def test_negative_time_rejected(self):
        with pytest.raises(ValueError):
            LyricLine(time_ms=-1, text="x")

    def test_empty_text_rejected(self):
        with pytest.raises(ValueError):
            LyricLine(time_ms=0, text="   ")


class TestSyncedLyricSet:
    """Test ordering and transcript defaults"""

    def test_stable_sort(self, make_lyric_set):
        lyric_set = make_lyric_set([(5000, "x"), (1000, "first"), (1000, "second")])
        assert [line.text for line in lyric_set.lines] == ["first", "second", "x"]

    def test_plain_text_defaults_to_lines(self, make_lyric_set):
        lyric_set = make_lyric_set([(2000, "b"), (1000, "a")])
        assert lyric_set.plain_text == "a\nb"

    def test_provider_transcript_kept(self, make_lyric_set):
        lyric_set = make_lyric_set([(1000, "a")], plain_text="  Full text\nwith more  ")
        assert lyric_set.plain_text == "Full text\nwith more"

    def test_empty_set(self):
        assert SyncedLyricSet().is_empty
        assert SyncedLyricSet.from_lines([]).plain_text == ""

    def test_without_credits(self, make_lyric_set):
        lyric_set = make_lyric_set([(0, "作曲 : X"), (1000, "Hello")])
        cleaned = lyric_set.without_credits(["作曲"])
        assert cleaned.plain_text == "Hello"
        assert len(cleaned.lines) == 2
        assert lyric_set.plain_text == "作曲 : X\nHello"


class TestPlaybackSnapshot:
    """Test now-playing normalization"""

    def test_from_now_playing(self):
        snapshot = PlaybackSnapshot.from_now_playing(NowPlaying(
            app="Music",
            artist=" Artist ",
            title="Title",
            position_seconds=62.5,
            duration_seconds=180.0,
            is_playing=False
        ))
        assert snapshot.identity == TrackIdentity("Artist", "Title")
        assert snapshot.position_ms == 62500
        assert snapshot.duration_ms == 180000
        assert snapshot.is_playing is False
        assert snapshot.key == snapshot.identity.key

    def test_negative_position_clamped(self):
        snapshot = PlaybackSnapshot.from_now_playing(NowPlaying("x", "a", "t", position_seconds=-3))
        assert snapshot.position_ms == 0
        assert snapshot.duration_ms is None
