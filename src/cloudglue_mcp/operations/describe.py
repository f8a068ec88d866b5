"""
Describe a video, reusing earlier work where possible.

Lookup order:
1. The collection's media description (cloudglue:// URL plus collection_id)
2. The most recent completed describe job for the URL
3. A new describe job, polled until it finishes

Descriptions of long videos are paged in 300-second windows of video time.
The window is sent to the API as start/end seconds, so each page is
rendered server-side.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.exceptions import CloudglueAPIError, CloudglueMcpError
from cloudglue_mcp.models.page import TimeWindow
from cloudglue_mcp.operations.common import (
    analysis_flags,
    error_payload,
    fetch_existing_job,
    find_completed_job,
)
from cloudglue_mcp.operations.pagination import time_window
from cloudglue_mcp.operations.polling import failure_message, is_completed
from cloudglue_mcp.parsing.utils import extract_file_id

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)

MARKDOWN = "markdown"


def _window_params(window: TimeWindow) -> dict[str, Any]:
    if not window.is_bounded or window.total_pages == 1:
        return {}
    return {
        "start_time_seconds": window.start_seconds,
        "end_time_seconds": window.end_seconds,
    }


def job_duration(job: dict[str, Any]) -> float | None:
    """Best-effort video duration from a describe job payload.

    Uses an explicit duration field when present, else the latest end_time
    of any timed segment list in the job data.
    """
    data = job.get("data") or {}
    for source in (job, data, data.get("video_info") or {}):
        value = source.get("duration_seconds")
        if isinstance(value, (int, float)) and value > 0:
            return float(value)

    latest = 0.0
    for value in data.values():
        if not isinstance(value, list):
            continue
        for segment in value:
            if isinstance(segment, dict):
                end = segment.get("end_time")
                if isinstance(end, (int, float)) and end > latest:
                    latest = float(end)
    return latest or None


async def file_duration(client: CloudglueClient, file_id: str) -> float | None:
    """Duration of an uploaded file, or None if unknown."""
    try:
        info = await client.get_file(file_id)
    except CloudglueAPIError as e:
        logger.debug(f"Could not read duration of {file_id}: {e}")
        return None
    video_info = info.get("video_info") or {}
    return video_info.get("duration_seconds")


def _payload(url: str, content: str, window: TimeWindow, source: str) -> dict[str, Any]:
    payload = {"url": url, "content": content}
    payload.update(window.to_dict())
    payload["source"] = source
    return payload


async def _from_collection(
    client: CloudglueClient,
    collection_id: str,
    file_id: str,
    window: TimeWindow,
) -> str | None:
    try:
        description = await client.get_media_descriptions(
            collection_id, file_id, response_format=MARKDOWN, **_window_params(window)
        )
    except CloudglueAPIError as e:
        logger.debug(f"No collection description for {file_id} in {collection_id}: {e}")
        return None
    return description.get("content") or None


async def _render_job(
    client: CloudglueClient,
    job: dict[str, Any],
    page: int,
    duration: float | None,
) -> tuple[str, TimeWindow]:
    """Content of a completed describe job for the requested page.

    ``job`` must be a markdown snapshot of the whole job. When the video
    spans several windows the page is re-fetched for its window only.
    """
    if duration is None:
        duration = job_duration(job)
    window = time_window(duration, page)
    window_params = _window_params(window)
    if window_params:
        job = await client.get_job(
            "describe", job["job_id"], response_format=MARKDOWN, **window_params
        )
    content = (job.get("data") or {}).get("content") or ""
    return content, window


async def describe_video(
    client: CloudglueClient,
    url: str,
    collection_id: str | None = None,
    page: int = 0,
) -> dict[str, Any]:
    """Describe one video, returning one 300-second page of the description.

    Args:
        client: Cloudglue API client.
        url: cloudglue://files/<id>, YouTube, HTTP or data connector URL.
        collection_id: Collection to check for an existing description.
        page: Zero-based 300-second page.

    Returns:
        Dict with url, content, page, total_pages, start/end seconds and
        source ("collection", "existing_job" or "new_job"), or an error dict.
    """
    try:
        file_id = extract_file_id(url)
        duration = await file_duration(client, file_id) if file_id else None
        # Known durations are checked up front so a bad page never starts a job
        window = time_window(duration, page) if file_id else None

        if collection_id and file_id and window is not None:
            content = await _from_collection(client, collection_id, file_id, window)
            if content:
                return _payload(url, content, window, "collection")

        existing = await find_completed_job(client, "describe", url)
        job = None
        if existing:
            job = await fetch_existing_job(
                client, "describe", existing["job_id"], response_format=MARKDOWN
            )
        if job is not None:
            content, window = await _render_job(client, job, page, duration)
            return _payload(url, content, window, "existing_job")

        created = await client.create_job("describe", url=url, **analysis_flags(url))
        logger.info(f"Started describe job {created.get('job_id')} for {url}")
        job = await client.wait_for_job(
            "describe", created["job_id"], created, response_format=MARKDOWN
        )
        if not is_completed(job):
            return error_payload(failure_message(job, "create description"), url=url, page=page)
        if not (job.get("data") or {}).get("content"):
            # The submit snapshot can complete without a markdown rendering
            job = await client.get_job("describe", job["job_id"], response_format=MARKDOWN)
        content, window = await _render_job(client, job, page, duration)
        return _payload(url, content, window, "new_job")

    except CloudglueMcpError as e:
        return error_payload(e, url=url, page=page)
    except Exception as e:
        logger.exception(f"describe_video failed for {url}")
        return error_payload(f"Error creating description: {e}", url=url, page=page)
