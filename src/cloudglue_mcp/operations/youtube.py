"""
Bulk-add YouTube videos to a collection.

Sources are a list of video URLs, a playlist or a channel. Playlists and
channels are expanded through YouTube's public RSS feed, which lists at
most the 15 most recent videos. Channel handles (@name, /c/, /user/) are
resolved to a channel ID by reading the channel page.

Adding runs in two phases through the batch runner, 5 URLs at a time:
submit every add, then wait for the successful submissions to finish
processing. Failures in either phase are recorded per URL.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

import httpx

from cloudglue_mcp.config.defaults import (
    COLLECTION_VIDEO_SCAN_LIMIT,
    REQUEST_TIMEOUT,
    YOUTUBE_BATCH_SIZE,
    YOUTUBE_RSS_MAX_VIDEOS,
)
from cloudglue_mcp.exceptions import SourceExtractionError, error_message
from cloudglue_mcp.operations.batch import run_batch
from cloudglue_mcp.operations.common import error_payload
from cloudglue_mcp.operations.files import collection_video_details
from cloudglue_mcp.operations.polling import is_completed
from cloudglue_mcp.parsing.utils import extract_channel_id, extract_playlist_id, youtube_watch_url

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)

RSS_FEED_URL = "https://www.youtube.com/feeds/videos.xml"

_VIDEO_ID_RE = re.compile(r"<yt:videoId>([^<]+)</yt:videoId>")

# Places a channel page exposes its ID, most reliable first
_CHANNEL_PAGE_PATTERNS = [
    re.compile(r'<link rel="canonical" href="https://www\.youtube\.com/channel/([^"]+)"'),
    re.compile(r'<meta property="og:url" content="https://www\.youtube\.com/channel/([^"]+)"'),
    re.compile(r'"channelId":"([^"]+)"'),
    re.compile(r'"externalId":"([^"]+)"'),
]


def parse_feed_video_ids(xml_text: str, limit: int) -> list[str]:
    return _VIDEO_ID_RE.findall(xml_text)[:limit]


async def resolve_channel_id(http: httpx.AsyncClient, url: str) -> str:
    """Channel ID for any channel URL form.

    Raises:
        SourceExtractionError: If the page cannot be fetched or has no ID.
    """
    channel_id = extract_channel_id(url)
    if channel_id:
        return channel_id

    try:
        response = await http.get(url)
    except httpx.HTTPError as e:
        raise SourceExtractionError(f"Failed to resolve channel ID: {e}") from e
    if response.is_error:
        raise SourceExtractionError(
            f"Failed to resolve channel ID: Failed to fetch channel page: {response.status_code}"
        )

    for pattern in _CHANNEL_PAGE_PATTERNS:
        match = pattern.search(response.text)
        if match:
            return match.group(1)
    raise SourceExtractionError(
        "Failed to resolve channel ID: Could not find channel ID in page source"
    )


async def extract_videos_from_source(
    http: httpx.AsyncClient,
    source_url: str,
    limit: int,
    source_type: str,
) -> list[str]:
    """Watch URLs of the most recent videos of a playlist or channel.

    Raises:
        SourceExtractionError: On an invalid source URL, a failed feed
            fetch, or an empty/private feed.
    """
    if source_type == "playlist":
        playlist_id = extract_playlist_id(source_url)
        if not playlist_id:
            raise SourceExtractionError("Invalid YouTube playlist URL")
        params = {"playlist_id": playlist_id}
    else:
        params = {"channel_id": await resolve_channel_id(http, source_url)}

    try:
        response = await http.get(RSS_FEED_URL, params=params)
    except httpx.HTTPError as e:
        raise SourceExtractionError(str(e)) from e
    if response.is_error:
        raise SourceExtractionError(
            f"Failed to fetch {source_type}: {response.status_code} {response.reason_phrase}"
        )

    video_ids = parse_feed_video_ids(response.text, limit)
    if not video_ids:
        raise SourceExtractionError(
            f"No videos found in {source_type} or {source_type} is private"
        )
    logger.info(f"Found {len(video_ids)} videos in {source_type} {source_url}")
    return [youtube_watch_url(video_id) for video_id in video_ids]


async def _collection_video_details(
    client: CloudglueClient,
    collection_id: str,
) -> list[dict[str, Any]]:
    listing = await client.list_videos(collection_id, limit=COLLECTION_VIDEO_SCAN_LIMIT)
    completed = [v for v in listing.get("data") or [] if v.get("status") == "completed"]
    return await collection_video_details(client, completed, collection_id)


async def add_youtube(
    client: CloudglueClient,
    collection_id: str,
    youtube_urls: list[str] | None = None,
    playlist_url: str | None = None,
    channel_url: str | None = None,
    limit: int = YOUTUBE_RSS_MAX_VIDEOS,
    http: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Add YouTube videos to a collection and wait for them to process.

    Exactly one of youtube_urls, playlist_url and channel_url must be given.

    Args:
        client: Cloudglue API client.
        collection_id: Target collection.
        youtube_urls: Video URLs (at most 50).
        playlist_url: Playlist to take recent videos from.
        channel_url: Channel to take recent videos from.
        limit: Videos to take from a playlist or channel (1-15).
        http: Client used for the YouTube feed and channel pages.

    Returns:
        Summary with per-URL addition and processing results and the
        collection's completed videos.
    """
    sources = [s for s in (youtube_urls, playlist_url, channel_url) if s]
    if not sources:
        return error_payload(
            "Must provide either youtube_urls, playlist_url, or channel_url",
            collection_id=collection_id,
            provided_youtube_urls=bool(youtube_urls),
            provided_playlist_url=bool(playlist_url),
            provided_channel_url=bool(channel_url),
        )
    if len(sources) > 1:
        return error_payload(
            "Cannot provide multiple source types - choose one: "
            "youtube_urls, playlist_url, or channel_url",
            collection_id=collection_id,
            youtube_urls_count=len(youtube_urls or []),
            playlist_url=playlist_url,
            channel_url=channel_url,
        )

    uses_feed = bool(playlist_url or channel_url)
    extraction_info = None
    if youtube_urls:
        urls = list(youtube_urls)
    else:
        source_type, source_url = ("playlist", playlist_url) if playlist_url else ("channel", channel_url)
        try:
            if http is None:
                async with httpx.AsyncClient(
                    follow_redirects=True, timeout=REQUEST_TIMEOUT
                ) as own_http:
                    urls = await extract_videos_from_source(own_http, source_url, limit, source_type)
            else:
                urls = await extract_videos_from_source(http, source_url, limit, source_type)
        except SourceExtractionError as e:
            return error_payload(
                f"Failed to extract videos from {source_type}: {e}",
                **{f"{source_type}_url": source_url},
                limit=limit,
                collection_id=collection_id,
            )
        extraction_info = {
            "source_type": source_type,
            "source_url": source_url,
            "limit": limit,
            "videos_extracted": len(urls),
            "extraction_successful": True,
        }

    try:
        # Phase 1: submit every add
        async def submit(url: str) -> dict[str, Any]:
            return await client.add_video_by_url(collection_id, url)

        additions = await run_batch(urls, submit, YOUTUBE_BATCH_SIZE)

        # Phase 2: wait for the successful submissions only
        async def wait(item) -> dict[str, Any]:
            video = await client.wait_for_video(collection_id, item.result["file_id"])
            if is_completed(video):
                return {"url": item.input, "status": "completed"}
            return {
                "url": item.input,
                "status": "failed",
                "error": video.get("error") or f"Video processing ended with status {video.get('status')}",
            }

        waits = await run_batch([a for a in additions if a.ok], wait, YOUTUBE_BATCH_SIZE)
        processing_results = [
            w.result if w.ok else {"url": w.input.input, "status": "failed", "error": w.error}
            for w in waits
        ]

        videos = await _collection_video_details(client, collection_id)
    except Exception as e:
        logger.warning(f"add_youtube failed for {collection_id}: {e}")
        return error_payload(
            f"Failed to add YouTube videos: {error_message(e)}",
            collection_id=collection_id,
            youtube_urls_count=len(youtube_urls or []),
            playlist_url=playlist_url,
            channel_url=channel_url,
            limit=limit if uses_feed else None,
        )

    result = {
        "operation": "youtube_videos_added",
        "collection_id": collection_id,
        "processing_summary": {
            "total_urls_requested": len(urls),
            "successful_additions": sum(1 for a in additions if a.ok),
            "failed_additions": sum(1 for a in additions if not a.ok),
            "completed_processing": sum(1 for r in processing_results if r["status"] == "completed"),
            "failed_processing": sum(1 for r in processing_results if r["status"] == "failed"),
        },
        "addition_results": [a.to_dict(input_key="url") for a in additions],
        "processing_results": processing_results,
        "collection_videos": {
            "total_videos": len(videos),
            "videos": videos,
        },
        "input_parameters": {
            "used_youtube_urls": bool(youtube_urls),
            "used_playlist_url": bool(playlist_url),
            "used_channel_url": bool(channel_url),
            "limit": limit if uses_feed else None,
        },
    }
    if extraction_info is not None:
        result["source_extraction"] = extraction_info
    return result
