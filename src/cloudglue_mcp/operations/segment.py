"""
Video segmentation into narrative chapters or camera shots.

YouTube URLs are rejected: segmentation needs the video frames, which
Cloudglue only has for uploaded files and direct video URLs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.exceptions import error_message
from cloudglue_mcp.operations.common import fetch_existing_job, find_completed_job
from cloudglue_mcp.operations.polling import failure_message, is_completed
from cloudglue_mcp.parsing.utils import is_youtube_url
from cloudglue_mcp.utils.formatting import format_clock

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)

YOUTUBE_UNSUPPORTED = (
    "Error: YouTube URLs are not supported for video segmentation. "
    "Please use Cloudglue URLs or direct HTTP video URLs instead."
)


def format_chapters(segments: list[dict[str, Any]]) -> str:
    lines = []
    for index, segment in enumerate(segments, start=1):
        description = segment.get("description") or f"Chapter {index}"
        lines.append(f"Chapter {index}: {format_clock(segment.get('start_time', 0))} - {description}")
    return "\n".join(lines)


def format_shots(segments: list[dict[str, Any]]) -> str:
    lines = []
    for index, segment in enumerate(segments, start=1):
        start = segment.get("start_time", 0)
        end = segment.get("end_time", start)
        lines.append(
            f"Shot {index}: {format_clock(start)} - {format_clock(end)} ({end - start:.1f}s)"
        )
    return "\n".join(lines)


async def _segment(
    client: CloudglueClient,
    url: str,
    criteria: str,
    label: str,
    unit: str,
    formatter,
    config: dict[str, Any] | None = None,
) -> str:
    if is_youtube_url(url):
        return YOUTUBE_UNSUPPORTED

    try:
        existing = await find_completed_job(client, "segments", url, criteria=criteria)
        if existing:
            segments = existing.get("segments")
            if not segments:
                job = await fetch_existing_job(client, "segments", existing["job_id"])
                segments = job.get("segments") if job else None
            if segments:
                return (
                    f"Found existing {label}:\n\n{formatter(segments)}\n\n"
                    f"Total {unit}: {len(segments)}"
                )

        payload: dict[str, Any] = {"url": url, "criteria": criteria}
        if config is not None:
            payload[f"{criteria}_config"] = config
        created = await client.create_job("segments", **payload)
        logger.info(f"Started {criteria} segmentation {created.get('job_id')} for {url}")
        job = await client.wait_for_job("segments", created["job_id"], created)
    except Exception as e:
        logger.warning(f"{criteria} segmentation failed for {url}: {e}")
        return f"Error creating {label}: {error_message(e)}"

    segments = job.get("segments")
    if is_completed(job) and segments is not None:
        return f"New {label} created:\n\n{formatter(segments)}\n\nTotal {unit}: {len(segments)}"
    return f"Error: {failure_message(job, f'create {label}')}"


async def segment_video_chapters(
    client: CloudglueClient,
    url: str,
    prompt: str | None = None,
) -> str:
    """Chapter listing ("Chapter N: MM:SS - description") for a video.

    Args:
        client: Cloudglue API client.
        url: cloudglue://files/<id> or direct video URL.
        prompt: Optional guidance for how chapters are chosen.
    """
    config = {"prompt": prompt} if prompt else {}
    return await _segment(
        client, url, "narrative", "chapter segmentation", "chapters", format_chapters, config
    )


async def segment_video_camera_shots(client: CloudglueClient, url: str) -> str:
    """Shot listing ("Shot N: start - end (X.Xs)") for a video."""
    return await _segment(
        client, url, "shot", "camera shot segmentation", "shots", format_shots
    )
