"""
Collection management: list, create, delete, add and remove videos.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.config.defaults import COLLECTION_VIDEO_SCAN_LIMIT, FANOUT_BATCH_SIZE
from cloudglue_mcp.models.page import PageResult
from cloudglue_mcp.operations.batch import run_batch
from cloudglue_mcp.operations.common import error_payload
from cloudglue_mcp.parsing.utils import is_youtube_url

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_TYPE = "rich-transcripts"

# Analysis run on every video added to a new collection
FULL_ANALYSIS = {
    "enable_summary": True,
    "enable_scene_text": True,
    "enable_speech": True,
    "enable_visual_scene_description": True,
}

CONFIG_KEYS = {
    "media-descriptions": "describe_config",
    "rich-transcripts": "transcribe_config",
}


async def count_completed_videos(client: CloudglueClient, collection_id: str) -> int:
    """Completed videos among the first 100 of a collection."""
    videos = await client.list_videos(collection_id, limit=COLLECTION_VIDEO_SCAN_LIMIT)
    return sum(1 for v in videos.get("data") or [] if v.get("status") == "completed")


async def list_collections(
    client: CloudglueClient,
    limit: int = 10,
    offset: int = 0,
    collection_type: str | None = None,
) -> dict[str, Any]:
    """One page of collections with their completed video counts."""
    try:
        response = await client.list_collections(
            limit=limit, offset=offset, collection_type=collection_type
        )
    except Exception as e:
        return error_payload(e, collections=[])

    collections = response.get("data") or []

    async def summarize(collection: dict[str, Any]) -> int:
        return await count_completed_videos(client, collection["id"])

    counts = await run_batch(collections, summarize, FANOUT_BATCH_SIZE)

    items = []
    for outcome in counts:
        collection = outcome.input
        item = {
            "id": collection.get("id"),
            "name": collection.get("name"),
            "collection_type": collection.get("collection_type") or DEFAULT_COLLECTION_TYPE,
            "created_at": collection.get("created_at"),
            "completed_video_count": outcome.result,
        }
        if collection.get("description"):
            item["description"] = collection["description"]
        if not outcome.ok:
            item["count_error"] = outcome.error
        items.append(item)

    total = response.get("total")
    if total is None:
        total = offset + len(items)
    page = PageResult(
        items=items,
        offset=offset,
        limit=limit,
        total=total,
        has_more=offset + limit < total,
        upstream_total=response.get("total"),
    )
    return {"collections": page.items, "pagination": page.pagination()}


async def create_collection(
    client: CloudglueClient,
    name: str,
    description: str | None = None,
    collection_type: str = "media-descriptions",
) -> dict[str, Any]:
    """Create a collection that runs the full analysis on every video."""
    config_key = CONFIG_KEYS.get(collection_type)
    if config_key is None:
        return error_payload(
            f"Unsupported collection type '{collection_type}'. "
            f"Use one of: {', '.join(sorted(CONFIG_KEYS))}"
        )
    try:
        collection = await client.create_collection(
            collection_type=collection_type,
            name=name,
            description=description,
            **{config_key: dict(FULL_ANALYSIS)},
        )
    except Exception as e:
        return error_payload(e, name=name)

    logger.info(f"Created collection {collection.get('id')} ({name})")
    result = {
        "id": collection.get("id"),
        "name": collection.get("name"),
        "collection_type": collection.get("collection_type"),
        "created_at": collection.get("created_at"),
    }
    if collection.get("description"):
        result["description"] = collection["description"]
    return result


async def delete_collection(client: CloudglueClient, collection_id: str) -> dict[str, Any]:
    """Delete a collection. Its files stay in the account."""
    try:
        await client.delete_collection(collection_id)
    except Exception as e:
        return error_payload(e, collection_id=collection_id)
    return {"collection_id": collection_id, "status": "deleted"}


async def add_video_to_collection(
    client: CloudglueClient,
    collection_id: str,
    url: str,
) -> dict[str, Any]:
    """Add a video by URL and wait until the collection has processed it."""
    if is_youtube_url(url):
        return error_payload(
            "YouTube URLs are not supported for adding videos to collections. "
            "Please use Cloudglue URLs, public HTTP video URLs, or data connector URLs instead.",
            collection_id=collection_id,
            url=url,
        )
    try:
        added = await client.add_video_by_url(collection_id, url)
        video = await client.wait_for_video(collection_id, added["file_id"])
    except Exception as e:
        return error_payload(e, collection_id=collection_id, url=url)

    result = {
        "collection_id": collection_id,
        "file_id": added["file_id"],
        "url": url,
        "status": video.get("status"),
    }
    if video.get("error"):
        result["error"] = video["error"]
    return result


async def remove_video_from_collection(
    client: CloudglueClient,
    collection_id: str,
    file_id: str,
) -> dict[str, Any]:
    """Remove a video from a collection. The file itself is kept."""
    try:
        await client.delete_video(collection_id, file_id)
    except Exception as e:
        return error_payload(e, collection_id=collection_id, file_id=file_id)
    return {"collection_id": collection_id, "file_id": file_id, "status": "removed"}
