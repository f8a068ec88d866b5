"""
Semantic search and chat over a collection.

search_video_moments / search_video_summaries call the search endpoint at
segment and file scope. find_video_collection_moments and
chat_with_video_collection go through the chat endpoint, which searches
the collection before answering and cites what it used.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.config.defaults import CHAT_MAX_TOKENS, CHAT_MODEL
from cloudglue_mcp.exceptions import error_message
from cloudglue_mcp.operations.common import error_payload

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)

MOMENTS_PROMPT = """Find and describe the most relevant video moments/segments related to: "{query}".

For each relevant moment, provide:
1. The specific video file ID or name if available
2. Timestamp or time range if available
3. Brief description of what happens in that moment
4. Direct quote or summary of the content
5. Why this moment is relevant to the query

Limit to the top {max_results} most relevant moments."""


async def _search(
    client: CloudglueClient,
    collection_id: str,
    query: str,
    max_results: int,
    scope: str,
    key: str,
) -> dict[str, Any]:
    try:
        response = await client.search(
            collections=[collection_id], query=query, limit=max_results, scope=scope
        )
    except Exception as e:
        what = "collection" if scope == "segment" else "videos"
        return error_payload(
            f"Failed to search {what}: {error_message(e)}",
            query=query,
            collection_id=collection_id,
            **{key: None},
            total_results=0,
        )
    results = response.get("results") or []
    return {
        "query": query,
        "collection_id": collection_id,
        key: results,
        "total_results": len(results),
    }


async def search_video_moments(
    client: CloudglueClient,
    collection_id: str,
    query: str,
    max_results: int = 5,
) -> dict[str, Any]:
    """Segments of the collection's videos matching query."""
    return await _search(client, collection_id, query, max_results, "segment", "moments_found")


async def search_video_summaries(
    client: CloudglueClient,
    collection_id: str,
    query: str,
    max_results: int = 5,
) -> dict[str, Any]:
    """Whole videos of the collection matching query."""
    return await _search(client, collection_id, query, max_results, "file", "videos_found")


def _first_choice(response: dict[str, Any]) -> dict[str, Any]:
    choices = response.get("choices") or []
    return choices[0] if choices else {}


def normalize_citation(citation: dict[str, Any]) -> dict[str, Any]:
    return {
        "file_id": citation.get("file_id"),
        "snippet": citation.get("snippet"),
        "timestamp": citation.get("timestamp"),
        "relevance_score": citation.get("score"),
        "metadata": citation.get("metadata"),
    }


async def find_video_collection_moments(
    client: CloudglueClient,
    collection_id: str,
    query: str,
    max_results: int = 5,
) -> dict[str, Any]:
    """Ask the chat model for the moments matching query, with citations."""
    context = {"query": query, "collection_id": collection_id}
    try:
        response = await client.chat_completion(
            model=CHAT_MODEL,
            messages=[
                {
                    "role": "user",
                    "content": MOMENTS_PROMPT.format(query=query, max_results=max_results),
                }
            ],
            collections=[collection_id],
            force_search=True,
            include_citations=True,
            max_tokens=CHAT_MAX_TOKENS,
        )
    except Exception as e:
        return error_payload(
            f"Failed to search collection: {error_message(e)}",
            **context,
            moments_found=None,
            citations=[],
        )

    choice = _first_choice(response)
    content = (choice.get("message") or {}).get("content")
    if not content:
        return error_payload(
            "No relevant moments found or empty response from AI",
            **context,
            moments_found=None,
            citations=[],
        )
    citations = choice.get("citations") or []
    return {
        **context,
        "moments_found": content,
        "citations": [normalize_citation(c) for c in citations],
        "total_citations": len(citations),
    }


async def chat_with_video_collection(
    client: CloudglueClient,
    collection_id: str,
    prompt: str,
) -> str:
    """Chat answer for prompt grounded on the collection, citations appended."""
    try:
        response = await client.chat_completion(
            model=CHAT_MODEL,
            messages=[{"role": "user", "content": prompt}],
            collections=[collection_id],
            force_search=True,
            include_citations=True,
        )
    except Exception as e:
        logger.warning(f"Chat with {collection_id} failed: {e}")
        return f"Error: Failed to chat with video collection: {error_message(e)}"

    choice = _first_choice(response)
    content = (choice.get("message") or {}).get("content")
    if not content:
        return "Error: Failed to chat with video collection"
    return "\n".join(
        [
            "Chat completion response: ",
            content,
            "\n\nCitations:",
            json.dumps(choice.get("citations")),
        ]
    )
