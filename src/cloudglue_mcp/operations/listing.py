"""
Browse videos, jobs and collection artifacts.

The list endpoints page by limit/offset only, so date-filtered listings
go through filter_fetch (see operations/pagination.py) and share its
over-fetch limitation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.exceptions import CloudglueMcpError, error_message
from cloudglue_mcp.models.page import PageRequest, PageResult
from cloudglue_mcp.operations.common import error_payload
from cloudglue_mcp.operations.files import collection_video_details, video_summary
from cloudglue_mcp.operations.pagination import filter_fetch, validate_request
from cloudglue_mcp.operations.polling import is_completed

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)

# Collection types whose artifacts carry titles, summaries and descriptions
DESCRIBED_TYPES = ("rich-transcripts", "media-descriptions")


def _response(key: str, page: PageResult, request: PageRequest, **extra: Any) -> dict[str, Any]:
    result: dict[str, Any] = {key: page.items}
    result.update(extra)
    result["pagination"] = page.pagination()
    result.update(request.filter_echo())
    return result


async def list_videos(
    client: CloudglueClient,
    limit: int = 10,
    offset: int = 0,
    collection_id: str | None = None,
    created_after: str | None = None,
    created_before: str | None = None,
) -> dict[str, Any]:
    """Completed videos of the account, or of one collection, by creation date."""
    try:
        request = PageRequest(limit, offset, created_after, created_before)

        if collection_id:

            async def fetch_videos(fetch_limit: int, fetch_offset: int) -> dict[str, Any]:
                return await client.list_videos(
                    collection_id, limit=fetch_limit, offset=fetch_offset
                )

            if request.has_date_filter:
                # Dates come from the file records, so every candidate needs details
                async def fetch_page(fetch_limit: int, fetch_offset: int) -> dict[str, Any]:
                    listing = await fetch_videos(fetch_limit, fetch_offset)
                    completed = [v for v in listing.get("data") or [] if is_completed(v)]
                    return {
                        "data": await collection_video_details(
                            client, completed, collection_id
                        ),
                        "total": listing.get("total"),
                    }

                page = await filter_fetch(fetch_page, request, is_completed)
            else:
                page = await filter_fetch(fetch_videos, request, is_completed)
                page.items = await collection_video_details(client, page.items, collection_id)
        else:

            async def fetch_page(fetch_limit: int, fetch_offset: int) -> dict[str, Any]:
                return await client.list_files(limit=fetch_limit, offset=fetch_offset)

            page = await filter_fetch(fetch_page, request, is_completed)
            page.items = [video_summary(f) for f in page.items]

    except (CloudglueMcpError, ValueError) as e:
        return error_payload(e, videos=[])
    except Exception as e:
        logger.warning(f"list_videos failed: {e}")
        return error_payload(f"Failed to list videos: {error_message(e)}", videos=[])

    return _response("videos", page, request)


async def _described_collection(
    client: CloudglueClient,
    collection_id: str,
    key: str,
) -> tuple[str | None, dict[str, Any] | None]:
    """(collection_type, None) for supported collections, else (None, error)."""
    collection = await client.get_collection(collection_id)
    collection_type = collection.get("collection_type") if collection else None
    if not collection_type:
        return None, error_payload(
            "Collection not found or invalid collection ID",
            collection_id=collection_id,
            **{key: []},
        )
    if collection_type not in DESCRIBED_TYPES:
        return None, error_payload(
            f"Collection type '{collection_type}' is not supported. This tool works "
            "with rich-transcripts and media-descriptions collections only.",
            collection_id=collection_id,
            collection_type=collection_type,
            **{key: []},
        )
    return collection_type, None


async def _retrieve_described(
    client: CloudglueClient,
    collection_id: str,
    key: str,
    request: PageRequest,
) -> tuple[PageResult | None, str | None, dict[str, Any] | None]:
    validate_request(request)
    collection_type, error = await _described_collection(client, collection_id, key)
    if error is not None:
        return None, None, error

    async def fetch_page(fetch_limit: int, fetch_offset: int) -> dict[str, Any]:
        return await client.list_artifacts(
            collection_type, collection_id, limit=fetch_limit, offset=fetch_offset
        )

    return await filter_fetch(fetch_page, request), collection_type, None


def summarize(description: dict[str, Any]) -> dict[str, Any]:
    data = description.get("data") or {}
    return {
        "title": data.get("title") or data.get("filename") or "Untitled",
        "summary": data.get("summary") or "No summary available",
        "file_id": description.get("file_id"),
    }


async def retrieve_summaries(
    client: CloudglueClient,
    collection_id: str,
    limit: int = 25,
    offset: int = 0,
    created_after: str | None = None,
    created_before: str | None = None,
) -> dict[str, Any]:
    """Titles and summaries of a collection's videos."""
    try:
        request = PageRequest(limit, offset, created_after, created_before)
        page, collection_type, error = await _retrieve_described(
            client, collection_id, "summaries", request
        )
    except (CloudglueMcpError, ValueError) as e:
        return error_payload(e, collection_id=collection_id, summaries=[])
    except Exception as e:
        return error_payload(
            f"Failed to retrieve summaries: {error_message(e)}",
            collection_id=collection_id,
            summaries=[],
        )
    if error is not None:
        return error
    page.items = [summarize(d) for d in page.items]
    return _response(
        "summaries", page, request, collection_type=collection_type, collection_id=collection_id
    )


async def retrieve_descriptions(
    client: CloudglueClient,
    collection_id: str,
    limit: int = 2,
    offset: int = 0,
    created_after: str | None = None,
    created_before: str | None = None,
) -> dict[str, Any]:
    """Full multimodal descriptions of a collection's videos."""
    try:
        request = PageRequest(limit, offset, created_after, created_before)
        page, collection_type, error = await _retrieve_described(
            client, collection_id, "descriptions", request
        )
    except (CloudglueMcpError, ValueError) as e:
        return error_payload(e, collection_id=collection_id, descriptions=[])
    except Exception as e:
        return error_payload(
            f"Failed to retrieve descriptions: {error_message(e)}",
            collection_id=collection_id,
            descriptions=[],
        )
    if error is not None:
        return error
    return _response(
        "descriptions", page, request, collection_type=collection_type, collection_id=collection_id
    )


async def _retrieve_artifacts(
    client: CloudglueClient,
    artifact: str,
    key: str,
    collection_id: str,
    limit: int,
    offset: int,
    created_after: str | None,
    created_before: str | None,
) -> dict[str, Any]:
    try:
        request = PageRequest(limit, offset, created_after, created_before)

        async def fetch_page(fetch_limit: int, fetch_offset: int) -> dict[str, Any]:
            return await client.list_artifacts(
                artifact, collection_id, limit=fetch_limit, offset=fetch_offset
            )

        page = await filter_fetch(fetch_page, request)
    except (CloudglueMcpError, ValueError) as e:
        return error_payload(e, collection_id=collection_id, **{key: []})
    except Exception as e:
        return error_payload(
            f"Failed to retrieve {key}: {error_message(e)}",
            collection_id=collection_id,
            **{key: []},
        )
    return _response(key, page, request, collection_id=collection_id)


async def retrieve_collection_transcripts(
    client: CloudglueClient,
    collection_id: str,
    limit: int = 10,
    offset: int = 0,
    created_after: str | None = None,
    created_before: str | None = None,
) -> dict[str, Any]:
    """Rich transcripts of a collection's videos."""
    return await _retrieve_artifacts(
        client, "rich-transcripts", "transcripts",
        collection_id, limit, offset, created_after, created_before,
    )


async def retrieve_collection_entities(
    client: CloudglueClient,
    collection_id: str,
    limit: int = 5,
    offset: int = 0,
    created_after: str | None = None,
    created_before: str | None = None,
) -> dict[str, Any]:
    """Extracted entities of a collection's videos."""
    return await _retrieve_artifacts(
        client, "entities", "entities",
        collection_id, limit, offset, created_after, created_before,
    )


async def _list_completed_jobs(
    client: CloudglueClient,
    kind: str,
    limit: int,
    url: str | None,
) -> dict[str, Any]:
    try:
        return await client.list_jobs(kind, limit=limit, status="completed", url=url)
    except Exception as e:
        return error_payload(e, data=[])


async def list_transcripts(
    client: CloudglueClient,
    limit: int = 10,
    url: str | None = None,
) -> dict[str, Any]:
    """Completed standalone transcription jobs, optionally for one URL."""
    return await _list_completed_jobs(client, "transcribe", limit, url)


async def list_extracts(
    client: CloudglueClient,
    limit: int = 10,
    url: str | None = None,
) -> dict[str, Any]:
    """Completed standalone extraction jobs, optionally for one URL."""
    return await _list_completed_jobs(client, "extract", limit, url)
