"""
URL classification and ID extraction utilities.
"""

from __future__ import annotations

import re

CLOUDGLUE_FILE_PREFIX = "cloudglue://files/"

_FILE_ID_RE = re.compile(r"cloudglue://files/(.+)")
_PLAYLIST_ID_RE = re.compile(r"[?&]list=([^&]+)")
_CHANNEL_ID_RE = re.compile(r"/channel/([^/?]+)")


def is_youtube_url(url: str) -> bool:
    """True for youtube.com and youtu.be URLs."""
    return "youtube.com" in url or "youtu.be" in url


def is_cloudglue_url(url: str) -> bool:
    return url.startswith("cloudglue://")


def extract_file_id(url: str) -> str | None:
    """Extract the file ID from a cloudglue://files/<id> URL.

    Args:
        url: Video URL

    Returns:
        File ID or None if the URL is not a Cloudglue file URL
    """
    match = _FILE_ID_RE.match(url)
    return match.group(1) if match else None


def file_url(file_id: str) -> str:
    """Build the cloudglue://files/<id> URL for a file ID."""
    return f"{CLOUDGLUE_FILE_PREFIX}{file_id}"


def extract_playlist_id(url: str) -> str | None:
    """Extract YouTube playlist ID from URL (list= parameter).

    Args:
        url: Playlist URL

    Returns:
        Playlist ID or None if not found
    """
    match = _PLAYLIST_ID_RE.search(url)
    return match.group(1) if match else None


def extract_channel_id(url: str) -> str | None:
    """Extract a channel ID from a /channel/<id> URL.

    Handle (@name), /c/ and /user/ URLs carry no ID and return None.
    """
    match = _CHANNEL_ID_RE.search(url)
    return match.group(1) if match else None


def youtube_watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"
