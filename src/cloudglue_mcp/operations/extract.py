"""
Entity extraction with prompt-matched reuse and segment paging.

An earlier extraction is only reused when it was run with the same prompt
(and schema, when one is given) and with both video-level and
segment-level entities enabled. Anything else would answer a different
question.

Segment-level entities are paged 25 at a time. Collection entities are
paged server-side; job results arrive whole and are sliced locally.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.config.defaults import ENTITIES_PER_PAGE, URL_BATCH_SIZE
from cloudglue_mcp.exceptions import CloudglueAPIError, InputValidationError, error_message
from cloudglue_mcp.models.page import EntityPage
from cloudglue_mcp.operations.batch import run_batch
from cloudglue_mcp.operations.common import fetch_existing_job, find_completed_job
from cloudglue_mcp.operations.pagination import count_pages, page_bounds, slice_page
from cloudglue_mcp.operations.polling import ensure_completed
from cloudglue_mcp.parsing.utils import extract_file_id

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)


def parse_schema(schema: str | None) -> dict[str, Any] | None:
    """Parse a JSON schema argument.

    Raises:
        InputValidationError: If the string is not a JSON object.
    """
    if schema is None or not schema.strip():
        return None
    try:
        parsed = json.loads(schema)
    except json.JSONDecodeError as e:
        raise InputValidationError(f"Invalid schema: not valid JSON ({e.msg})") from e
    if not isinstance(parsed, dict):
        raise InputValidationError("Invalid schema: expected a JSON object")
    return parsed


def config_matches(job: dict[str, Any], prompt: str, schema: dict[str, Any] | None) -> bool:
    """Whether a listed extract job was run with the requested configuration."""
    config = job.get("extract_config") or {}
    if config.get("prompt") != prompt:
        return False
    if not (
        config.get("enable_video_level_entities") is True
        and config.get("enable_segment_level_entities") is True
    ):
        return False
    if schema is not None and config.get("schema") != schema:
        return False
    return True


def _segments(data: dict[str, Any]) -> list[Any]:
    segments = data.get("segment_entities")
    return segments if isinstance(segments, list) else []


async def fetch_extraction(
    client: CloudglueClient,
    url: str,
    prompt: str,
    schema: dict[str, Any] | None = None,
) -> tuple[dict[str, Any], str]:
    """Completed extraction data for a URL, plus where it came from.

    Reuses a prompt-matched completed job, else runs a new one.

    Raises:
        JobFailedError: If the new extraction job did not complete.
    """
    existing = await find_completed_job(client, "extract", url)
    if existing and config_matches(existing, prompt, schema):
        job = await fetch_existing_job(client, "extract", existing["job_id"])
        if job is not None:
            return job.get("data") or {}, "existing_job"
    elif existing:
        logger.debug(f"Existing extraction for {url} used a different prompt, creating new job")

    payload: dict[str, Any] = {
        "url": url,
        "prompt": prompt,
        "enable_video_level_entities": True,
        "enable_segment_level_entities": True,
    }
    if schema is not None:
        payload["schema"] = schema
    created = await client.create_job("extract", **payload)
    logger.info(f"Started extract job {created.get('job_id')} for {url}")
    job = ensure_completed(await client.wait_for_job("extract", created["job_id"], created))
    if not job.get("data"):
        job = await client.get_job("extract", job["job_id"])
    return job.get("data") or {}, "new_job"


async def _from_collection(
    client: CloudglueClient,
    collection_id: str,
    file_id: str,
    page: int,
) -> EntityPage | None:
    limit, offset = page_bounds(page)
    try:
        entities = await client.get_entities(collection_id, file_id, limit=limit, offset=offset)
    except CloudglueAPIError as e:
        logger.debug(f"No collection entities for {file_id} in {collection_id}: {e}")
        return None
    segments = _segments(entities)
    if "entities" not in entities and not segments:
        return None
    total = entities.get("total") or 0
    return EntityPage(
        video_level_entities=entities.get("entities") or {},
        segment_entities=segments,
        page=page,
        total_pages=count_pages(total, ENTITIES_PER_PAGE),
    )


def _error_page(message: str) -> dict[str, Any]:
    doc = EntityPage(total_pages=0).to_dict()
    doc["error"] = message
    return doc


async def extract_video_entities(
    client: CloudglueClient,
    url: str,
    prompt: str,
    collection_id: str | None = None,
    page: int = 0,
    schema: str | None = None,
) -> dict[str, Any]:
    """Extract entities from one video and return one page of segment entities.

    Args:
        client: Cloudglue API client.
        url: Video URL.
        prompt: Extraction prompt.
        collection_id: Entities collection to check first (cloudglue:// URLs only).
        page: Zero-based page of 25 segment-level entities.
        schema: Optional JSON schema string for the extracted data.

    Returns:
        {video_level_entities, segment_level_entities: {entities, page,
        total_pages}}, with an error field on failure.
    """
    try:
        schema_obj = parse_schema(schema)
        page_bounds(page)
    except InputValidationError as e:
        return _error_page(error_message(e))

    try:
        file_id = extract_file_id(url)
        if collection_id and file_id:
            found = await _from_collection(client, collection_id, file_id, page)
            if found is not None:
                return found.to_dict()

        data, source = await fetch_extraction(client, url, prompt, schema_obj)
        logger.debug(f"Entities for {url} from {source}")
        segments, total_pages = slice_page(_segments(data), page)
        return EntityPage(
            video_level_entities=data.get("entities") or {},
            segment_entities=segments,
            page=page,
            total_pages=total_pages,
        ).to_dict()

    except Exception as e:
        logger.warning(f"extract_video_entities failed for {url}: {e}")
        return _error_page(f"Error creating entity extraction: {error_message(e)}")


async def batch_extract_video_entities(
    client: CloudglueClient,
    urls: list[str],
    prompt: str,
    schema: str | None = None,
    batch_size: int = URL_BATCH_SIZE,
) -> dict[str, Any]:
    """Extract entities from several videos, batch_size at a time.

    Each result carries the complete entity set for its URL.
    """
    try:
        schema_obj = parse_schema(schema)
    except InputValidationError as e:
        return {"error": error_message(e)}

    async def extract_one(url: str) -> tuple[dict[str, Any], str]:
        return await fetch_extraction(client, url, prompt, schema_obj)

    outcomes = await run_batch(urls, extract_one, batch_size)

    results = []
    for outcome in outcomes:
        if not outcome.ok:
            results.append({"url": outcome.input, "status": "failed", "error": outcome.error})
            continue
        data, source = outcome.result
        results.append(
            {
                "url": outcome.input,
                "status": "completed",
                "source": source,
                "video_level_entities": data.get("entities") or {},
                "segment_level_entities": _segments(data),
            }
        )

    successful = sum(1 for o in outcomes if o.ok)
    return {
        "prompt": prompt,
        "results": results,
        "summary": {
            "total_urls": len(urls),
            "successful": successful,
            "failed": len(urls) - successful,
        },
    }
