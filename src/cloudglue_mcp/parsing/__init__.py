"""
URL parsing helpers.
"""

from cloudglue_mcp.parsing.utils import (
    extract_channel_id,
    extract_file_id,
    extract_playlist_id,
    file_url,
    is_cloudglue_url,
    is_youtube_url,
    youtube_watch_url,
)

__all__ = [
    "extract_channel_id",
    "extract_file_id",
    "extract_playlist_id",
    "file_url",
    "is_cloudglue_url",
    "is_youtube_url",
    "youtube_watch_url",
]
