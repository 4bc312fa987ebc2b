"""Tests for the SRT and WebVTT formatters.

WHY: Exported files are the deliverable. Players are strict about
timestamp syntax, and a cue placed or resized in the editor must carry
its geometry into WebVTT settings.

HOW: Each formatter renders a small hand-built cue list and the output is
compared against the exact expected text.
"""

import pytest

from subtitle_editor.core.ir import Cue
from subtitle_editor.formatters import FORMATTERS
from subtitle_editor.formatters.base import BaseFormatter, format_timestamp, parse_timestamp
from subtitle_editor.formatters.srt import SRTFormatter
from subtitle_editor.formatters.vtt import VTTFormatter


@pytest.fixture
def cues():
    return [
        Cue(id=4, start=0.0, end=1.25, text="Hello world"),
        Cue(id=2, start=61.5, end=3725.007, text="again", line=80.4, width=65.0),
    ]


class TestTimestamp:

    def test_basic(self):
        assert format_timestamp(3725.007) == "01:02:05.007"

    def test_srt_separator(self):
        assert format_timestamp(1.5, ",") == "00:00:01,500"

    def test_rounding_carries_into_seconds(self):
        assert format_timestamp(1.9996) == "00:00:02.000"

    def test_negative_clamped(self):
        assert format_timestamp(-0.2) == "00:00:00.000"


class TestParseTimestamp:

    @pytest.mark.parametrize("text, expected", [
        ("01:02:05.007", 3725.007),
        ("00:00:01,500", 1.5),
        ("02:03.5", 123.5),
        ("7", 7.0),
        ("  00:00:02.250 ", 2.25),
        ("90.1", 90.1),
    ])
    def test_valid(self, text, expected):
        assert parse_timestamp(text) == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["", "abc", "-1.0", "1:2:3:4", "00:75:00.000", "00:00:61", "1.2345"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_timestamp(text)

    def test_reads_back_rendered_value(self):
        assert parse_timestamp(format_timestamp(3725.007)) == pytest.approx(3725.007)


class TestSRTFormatter:

    def test_output(self, cues):
        outputs = SRTFormatter().format(cues)
        assert len(outputs) == 1
        assert outputs[0].content == (
            "1\n00:00:00,000 --> 00:00:01,250\nHello world\n\n"
            "2\n00:01:01,500 --> 01:02:05,007\nagain\n\n"
        )

    def test_suffix_and_media_type(self, cues):
        output = SRTFormatter().format(cues)[0]
        assert output.suffix == ".srt"
        assert output.media_type == "application/x-subrip"

    def test_empty(self):
        assert SRTFormatter().format([])[0].content == ""


class TestVTTFormatter:

    def test_output_with_settings(self, cues):
        content = VTTFormatter().format(cues)[0].content
        assert content == (
            "WEBVTT\n\n"
            "1\n00:00:00.000 --> 00:00:01.250\nHello world\n\n"
            "2\n00:01:01.500 --> 01:02:05.007 line:80% size:65% position:50% align:middle\nagain\n\n"
        )

    def test_line_only(self):
        content = VTTFormatter().format([Cue(0, 0.0, 1.0, "x", line=12.6)])[0].content
        assert "--> 00:00:01.000 line:13%\n" in content
        assert "size:" not in content

    def test_suffix_and_media_type(self, cues):
        output = VTTFormatter().format(cues)[0]
        assert output.suffix == ".vtt"
        assert output.media_type == "text/vtt"

    def test_empty_has_header(self):
        assert VTTFormatter().format([])[0].content == "WEBVTT\n\n"


class TestRegistry:

    def test_keys(self):
        assert set(FORMATTERS) == {"srt", "vtt"}

    def test_all_subclass_base(self):
        for formatter_cls in FORMATTERS.values():
            formatter = formatter_cls()
            assert isinstance(formatter, BaseFormatter)
            assert formatter.name
