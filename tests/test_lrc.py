"""Test LRC parsing and formatting"""

from nowplaying_lyrics.lyrics.lrc import parse_lrc, parse_timestamp, format_lrc
from nowplaying_lyrics.lyrics.models import LyricLine


class TestParseLrc:
    """Test LRC parsing rules"""

    def test_single_line(self):
        assert parse_lrc("[01:02.50]Hello") == [LyricLine(time_ms=62500, text="Hello")]

    def test_unparseable_line_is_dropped(self):
        assert parse_lrc("[bad]text") == []
        assert parse_lrc("no tag at all\n[ar:Someone]") == []

    def test_full_payload(self, sample_lrc):
        """Test metadata tags and blank lines are skipped, repeated tags expand"""
        lines = parse_lrc(sample_lrc)

        assert [(line.time_ms, line.text) for line in lines] == [
            (500, "作词 : Someone"),
            (12000, "First line"),
            (17200, "Chorus line"),
            (62500, "Chorus line"),
            (45100, "Last verse"),
        ]

    def test_fraction_precision(self):
        assert parse_timestamp("00", "01.5") == 1500
        assert parse_timestamp("00", "01.005") == 1005
        assert parse_timestamp("2", "03") == 123000

    def test_html_unescape(self):
        lines = parse_lrc("[00:01.00]Don&apos;t stop &amp; go", unescape=True)
        assert lines[0].text == "Don't stop & go"

        raw = parse_lrc("[00:01.00]Don&apos;t")
        assert raw[0].text == "Don&apos;t"

    def test_empty_input(self):
        assert parse_lrc("") == []
        assert parse_lrc(None) == []

    def test_windows_line_endings(self):
        lines = parse_lrc("[00:01.00]One\r\n[00:02.00]Two\r\n")
        assert [line.text for line in lines] == ["One", "Two"]


class TestFormatLrc:
    """Test LRC rendering"""

    def test_format_lines(self):
        lines = [LyricLine(time_ms=1500, text="One"), LyricLine(time_ms=62500, text="Two")]
        assert format_lrc(lines) == "[00:01.50]One\n[01:02.50]Two"

    def test_format_parses_back(self, sample_lrc):
        lines = parse_lrc(sample_lrc)
        assert parse_lrc(format_lrc(lines)) == lines
