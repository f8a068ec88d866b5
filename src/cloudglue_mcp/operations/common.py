"""
Helpers shared by the tool operations: reuse lookups, analysis flags and
the error envelope.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.exceptions import CloudglueAPIError, error_message
from cloudglue_mcp.parsing.utils import is_cloudglue_url, is_youtube_url

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)


def analysis_flags(url: str) -> dict[str, bool]:
    """Describe/transcribe options for a URL.

    Summaries are only produced for YouTube. Scene text and visual scene
    descriptions need the full video, so they are limited to uploaded files.
    """
    cloudglue = is_cloudglue_url(url)
    return {
        "enable_summary": is_youtube_url(url),
        "enable_speech": True,
        "enable_scene_text": cloudglue,
        "enable_visual_scene_description": cloudglue,
    }


async def find_completed_job(
    client: CloudglueClient,
    kind: str,
    url: str,
    **filters: Any,
) -> dict[str, Any] | None:
    """Most recent completed job of a kind for a URL, or None.

    API errors during the lookup count as a miss; the caller goes on to
    create a new job.
    """
    try:
        response = await client.list_jobs(kind, limit=1, status="completed", url=url, **filters)
    except CloudglueAPIError as e:
        logger.debug(f"{kind} lookup for {url} failed, creating new job: {e}")
        return None
    jobs = response.get("data") or []
    if not jobs:
        logger.debug(f"No completed {kind} job for {url}")
        return None
    return jobs[0]


def error_payload(error: BaseException | str, **context: Any) -> dict[str, Any]:
    """The {"error": message, ...context} envelope returned by failing tools."""
    message = error if isinstance(error, str) else error_message(error)
    payload: dict[str, Any] = {"error": message}
    payload.update(context)
    return payload


async def fetch_existing_job(
    client: CloudglueClient,
    kind: str,
    job_id: str,
    **params: Any,
) -> dict[str, Any] | None:
    """Full snapshot of a job found by find_completed_job, or None.

    A failed fetch counts as a lookup miss, like a failed listing.
    """
    try:
        return await client.get_job(kind, job_id, **params)
    except CloudglueAPIError as e:
        logger.debug(f"Could not fetch existing {kind} job {job_id}, creating new job: {e}")
        return None
