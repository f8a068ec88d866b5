"""
Transcribe videos through Cloudglue rich transcripts.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.config.defaults import URL_BATCH_SIZE
from cloudglue_mcp.exceptions import CloudglueAPIError, JobFailedError, error_message
from cloudglue_mcp.operations.batch import run_batch
from cloudglue_mcp.operations.common import analysis_flags, fetch_existing_job, find_completed_job
from cloudglue_mcp.operations.polling import ensure_completed, failure_message
from cloudglue_mcp.parsing.utils import extract_file_id

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)


def _job_text(job: dict[str, Any]) -> str:
    data = job.get("data") or {}
    if data.get("content"):
        return data["content"]
    return json.dumps(data)


async def fetch_transcript(
    client: CloudglueClient,
    url: str,
    collection_id: str | None = None,
    force_new: bool = False,
) -> tuple[str, str]:
    """Markdown transcript for a URL, plus where it came from.

    Raises:
        JobFailedError: If a new transcription job did not complete.
        CloudglueAPIError: On API failures outside the reuse lookups.
    """
    file_id = extract_file_id(url)

    if not force_new and collection_id and file_id:
        try:
            transcript = await client.get_rich_transcripts(
                collection_id, file_id, response_format="markdown"
            )
            if transcript.get("content"):
                return transcript["content"], "collection"
        except CloudglueAPIError as e:
            logger.debug(f"No collection transcript for {file_id} in {collection_id}: {e}")

    if not force_new:
        existing = await find_completed_job(client, "transcribe", url)
        if existing:
            job = await fetch_existing_job(
                client, "transcribe", existing["job_id"], response_format="markdown"
            )
            if job is not None:
                return _job_text(job), "existing_job"

    created = await client.create_job("transcribe", url=url, **analysis_flags(url))
    logger.info(f"Started transcribe job {created.get('job_id')} for {url}")
    job = await client.wait_for_job(
        "transcribe", created["job_id"], created, response_format="markdown"
    )
    ensure_completed(job)
    if not (job.get("data") or {}).get("content"):
        job = await client.get_job("transcribe", job["job_id"], response_format="markdown")
    return _job_text(job), "new_job"


async def transcribe_video(
    client: CloudglueClient,
    url: str,
    collection_id: str | None = None,
    force_new: bool = False,
) -> str:
    """Transcript text for one video, or an "Error: ..." line."""
    try:
        content, source = await fetch_transcript(client, url, collection_id, force_new)
    except JobFailedError as e:
        job = {"job_id": e.job_id, "status": e.status, "error": e.error}
        return f"Error: {failure_message(job, 'transcribe video')}"
    except Exception as e:
        logger.warning(f"transcribe_video failed for {url}: {e}")
        return f"Error transcribing video: {error_message(e)}"
    logger.debug(f"Transcript for {url} from {source}")
    return content


async def batch_transcribe_videos(
    client: CloudglueClient,
    urls: list[str],
    batch_size: int = URL_BATCH_SIZE,
) -> dict[str, Any]:
    """Transcribe several videos, batch_size at a time.

    Each URL goes through the same reuse-then-create flow as
    transcribe_video. One URL failing does not affect the others.
    """

    async def transcribe_one(url: str) -> dict[str, Any]:
        content, source = await fetch_transcript(client, url)
        return {"content": content, "source": source}

    outcomes = await run_batch(urls, transcribe_one, batch_size)

    results = []
    for outcome in outcomes:
        if outcome.ok:
            results.append(
                {
                    "url": outcome.input,
                    "status": "completed",
                    "source": outcome.result["source"],
                    "transcript": outcome.result["content"],
                }
            )
        else:
            results.append({"url": outcome.input, "status": "failed", "error": outcome.error})

    successful = sum(1 for o in outcomes if o.ok)
    return {
        "results": results,
        "summary": {
            "total_urls": len(urls),
            "successful": successful,
            "failed": len(urls) - successful,
        },
    }
