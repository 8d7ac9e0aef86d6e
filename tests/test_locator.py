"""Test active line lookup"""

import pytest

from nowplaying_lyrics.lyrics.locator import locate, locate_index


@pytest.fixture
def lines(make_lyric_set):
    return make_lyric_set([(1000, "a"), (5000, "b"), (9000, "c")]).lines


class TestLocate:
    """Test locate boundary semantics"""

    def test_before_first_line(self, lines):
        assert locate(lines, 0) is None
        assert locate(lines, 999) is None
        assert locate_index(lines, 999) == -1

    def test_exact_timestamp_selects_line(self, lines):
        assert locate(lines, 1000).text == "a"
        assert locate(lines, 5000).text == "b"

    def test_within_interval(self, lines):
        assert locate(lines, 4999).text == "a"
        assert locate(lines, 5001).text == "b"
        assert locate_index(lines, 8999) == 1

    def test_after_last_line(self, lines):
        assert locate(lines, 9000).text == "c"
        assert locate(lines, 10_000_000).text == "c"

    def test_empty_lines(self):
        assert locate((), 1234) is None
        assert locate_index([], 0) == -1

    def test_rewind_and_repeat(self, lines):
        """Test lookups are stateless and order independent"""
        positions = [9500, 1200, 9500, 5000, 5000, 0]
        results = [locate(lines, position) for position in positions]
        assert [line.text if line else None for line in results] == ["c", "a", "c", "b", "b", None]

    def test_shared_timestamp_selects_last(self, make_lyric_set):
        lines = make_lyric_set([(1000, "first"), (1000, "second"), (2000, "next")]).lines
        assert locate(lines, 1500).text == "second"
