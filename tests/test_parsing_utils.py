"""Tests for URL parsing and formatting helpers."""

import pytest

from cloudglue_mcp.operations.common import analysis_flags
from cloudglue_mcp.parsing import (
    extract_channel_id,
    extract_file_id,
    extract_playlist_id,
    file_url,
    is_cloudglue_url,
    is_youtube_url,
    youtube_watch_url,
)
from cloudglue_mcp.utils import format_clock, format_duration, format_file_size


class TestUrlClassification:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://m.youtube.com/watch?v=x",
        ],
    )
    def test_youtube(self, url):
        assert is_youtube_url(url)
        assert not is_cloudglue_url(url)

    def test_cloudglue(self):
        assert is_cloudglue_url("cloudglue://files/abc")
        assert not is_youtube_url("cloudglue://files/abc")

    def test_file_id_round_trip(self):
        assert extract_file_id(file_url("abc-123")) == "abc-123"
        assert extract_file_id("https://example.com/abc") is None

    def test_playlist_id(self):
        assert extract_playlist_id("https://www.youtube.com/playlist?list=PLx1&index=2") == "PLx1"
        assert extract_playlist_id("https://www.youtube.com/watch?v=x") is None

    def test_channel_id(self):
        assert extract_channel_id("https://www.youtube.com/channel/UC42/videos") == "UC42"
        assert extract_channel_id("https://www.youtube.com/@handle") is None

    def test_watch_url(self):
        assert youtube_watch_url("abc") == "https://www.youtube.com/watch?v=abc"


class TestAnalysisFlags:
    def test_youtube(self):
        assert analysis_flags("https://youtu.be/x") == {
            "enable_summary": True,
            "enable_speech": True,
            "enable_scene_text": False,
            "enable_visual_scene_description": False,
        }

    def test_uploaded_file(self):
        flags = analysis_flags("cloudglue://files/f1")
        assert flags["enable_summary"] is False
        assert flags["enable_scene_text"] is True
        assert flags["enable_visual_scene_description"] is True

    def test_http(self):
        flags = analysis_flags("https://cdn.test/v.mp4")
        assert flags["enable_speech"] is True
        assert not any(flags[k] for k in ("enable_summary", "enable_scene_text"))


class TestFormatting:
    def test_clock(self):
        assert format_clock(0) == "00:00"
        assert format_clock(90) == "01:30"
        assert format_clock(3930) == "01:05:30"

    def test_duration(self):
        assert format_duration(None) is None
        assert format_duration(59.6) == "1:00"
        assert format_duration(3930) == "1:05:30"

    def test_file_size(self):
        assert format_file_size(512) == "512.00 B"
        assert format_file_size(1536) == "1.50 KB"
        assert format_file_size(5 * 1024 ** 3) == "5.00 GB"
