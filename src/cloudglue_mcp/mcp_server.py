"""
cloudglue-mcp MCP server - expose Cloudglue video intelligence via Model Context Protocol.

Run as: cloudglue-mcp [--api-key KEY] [--base-url URL] [--working-dir DIR] (stdio transport)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Literal

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from cloudglue_mcp import __version__, operations
from cloudglue_mcp.api.client import CloudglueClient
from cloudglue_mcp.config.defaults import MAX_BATCH_URLS, YOUTUBE_RSS_MAX_VIDEOS
from cloudglue_mcp.config.loader import CloudglueConfig, resolve_config
from cloudglue_mcp.exceptions import CloudglueMcpError, ConfigError
from cloudglue_mcp.utils.logging import configure_logging

logger = logging.getLogger(__name__)

mcp = FastMCP("cloudglue")

_client: CloudglueClient | None = None
_config: CloudglueConfig | None = None


def configure(client: CloudglueClient, config: CloudglueConfig) -> None:
    """Install the API client and settings every tool uses."""
    global _client, _config
    _client = client
    _config = config


def get_client() -> CloudglueClient:
    if _client is None:
        raise ConfigError("Cloudglue client not configured. Start the server with main().")
    return _client


def get_working_dir() -> Path:
    return _config.working_dir if _config is not None else Path.cwd()


def _dumps(result: dict[str, Any]) -> str:
    return json.dumps(result, indent=2, default=str)


VideoUrl = Annotated[
    str,
    Field(
        description=(
            "Video URL. cloudglue://files/<file_id> for uploaded files (see list_videos), "
            "YouTube URLs, public HTTP video URLs, or data connector URLs "
            "(dropbox://, gdrive://file/<id>, zoom://uuid/<uuid>)."
        )
    ),
]
CollectionId = Annotated[
    str,
    Field(
        description=(
            "Collection ID from list_collections, without the "
            "'cloudglue://collections/' prefix."
        )
    ),
]
OptionalCollectionId = Annotated[
    str | None,
    Field(
        description=(
            "Collection to check for existing results first (saves time and cost). "
            "Only used with cloudglue:// URLs."
        )
    ),
]
CreatedAfter = Annotated[
    str | None,
    Field(description="Only include items created after this date (YYYY-MM-DD)."),
]
CreatedBefore = Annotated[
    str | None,
    Field(description="Only include items created before this date (YYYY-MM-DD)."),
]
Offset = Annotated[int, Field(ge=0, description="Number of items to skip for pagination.")]
MaxResults = Annotated[int, Field(ge=1, le=20, description="Maximum results to return (1-20).")]
UrlList = Annotated[
    list[str],
    Field(min_length=1, max_length=MAX_BATCH_URLS, description="Video URLs (1-50)."),
]


# ---------------------------------------------------------------------------
# Collections and videos
# ---------------------------------------------------------------------------


@mcp.tool()
async def list_collections(
    limit: Annotated[int, Field(ge=1, le=100)] = 10,
    offset: Offset = 0,
    collection_type: Literal["rich-transcripts", "media-descriptions", "entities"] | None = None,
) -> str:
    """List video collections with their type and completed video count.

    Use this first to find collection IDs for the other tools. For
    media-descriptions collections, pass the collection_id to describe_video;
    for entities collections, pass it to extract_video_entities.
    Check pagination.has_more and increase offset to see every collection.
    """
    result = await operations.list_collections(get_client(), limit, offset, collection_type)
    return _dumps(result)


@mcp.tool()
async def list_videos(
    limit: Annotated[int, Field(ge=1, le=100)] = 10,
    offset: Offset = 0,
    collection_id: Annotated[
        str | None,
        Field(description="Only list videos of this collection. Omit for all videos."),
    ] = None,
    created_after: CreatedAfter = None,
    created_before: CreatedBefore = None,
) -> str:
    """Browse completed videos with filename, duration and the IDs other tools need.

    Filter by collection and creation date; page with limit/offset.
    """
    result = await operations.list_videos(
        get_client(), limit, offset, collection_id, created_after, created_before
    )
    return _dumps(result)


@mcp.tool()
async def get_video_info(
    file_id: Annotated[str, Field(description="Cloudglue file ID (without cloudglue://files/).")],
) -> str:
    """Metadata for an uploaded video: filename, URI, duration, audio."""
    return _dumps(await operations.get_video_info(get_client(), file_id))


# ---------------------------------------------------------------------------
# Single-video analysis
# ---------------------------------------------------------------------------


@mcp.tool()
async def describe_video(
    url: VideoUrl,
    collection_id: OptionalCollectionId = None,
    page: Annotated[
        int,
        Field(ge=0, description="Page of the description; each page covers 5 minutes of video."),
    ] = 0,
) -> str:
    """Comprehensive multimodal description of a video (speech, on-screen text, visuals).

    Reuses an existing description when one exists before starting a new
    one. Long videos are returned in 5-minute pages; the response gives
    total_pages and the time window covered.
    """
    result = await operations.describe_video(get_client(), url, collection_id, page)
    return _dumps(result)


@mcp.tool()
async def transcribe_video(
    url: VideoUrl,
    collection_id: OptionalCollectionId = None,
    force_new: Annotated[
        bool, Field(description="Skip existing transcripts and run a new transcription.")
    ] = False,
) -> str:
    """Rich markdown transcript of a video (speech, plus a summary for YouTube).

    Reuses an existing transcript unless force_new is set.
    """
    return await operations.transcribe_video(get_client(), url, collection_id, force_new)


@mcp.tool()
async def batch_transcribe_videos(urls: UrlList) -> str:
    """Transcribe up to 50 videos, 10 at a time. One failure does not stop the rest."""
    return _dumps(await operations.batch_transcribe_videos(get_client(), urls))


@mcp.tool()
async def extract_video_entities(
    url: VideoUrl,
    prompt: Annotated[
        str,
        Field(
            description=(
                "What to extract, e.g. 'speaker names, key topics and action items'. "
                "Be specific about the structure you want."
            )
        ),
    ],
    collection_id: OptionalCollectionId = None,
    page: Annotated[
        int, Field(ge=0, description="Page of segment-level entities (25 per page).")
    ] = 0,
    schema: Annotated[
        str | None,
        Field(description="Optional JSON schema (as a JSON string) for the extracted data."),
    ] = None,
) -> str:
    """Extract structured entities from a video with a custom prompt.

    Reuses an earlier extraction only when it was run with the same prompt.
    Segment-level entities are paged 25 at a time.
    """
    result = await operations.extract_video_entities(
        get_client(), url, prompt, collection_id, page, schema
    )
    return _dumps(result)


@mcp.tool()
async def batch_extract_video_entities(
    urls: UrlList,
    prompt: Annotated[str, Field(description="Extraction prompt applied to every video.")],
    schema: Annotated[
        str | None,
        Field(description="Optional JSON schema (as a JSON string) for the extracted data."),
    ] = None,
) -> str:
    """Extract entities from up to 50 videos with one prompt, 10 at a time."""
    result = await operations.batch_extract_video_entities(get_client(), urls, prompt, schema)
    return _dumps(result)


@mcp.tool()
async def segment_video_chapters(
    url: VideoUrl,
    prompt: Annotated[
        str | None, Field(description="Optional guidance for how to split chapters.")
    ] = None,
) -> str:
    """Split a video into narrative chapters with start times and descriptions.

    YouTube URLs are not supported.
    """
    return await operations.segment_video_chapters(get_client(), url, prompt)


@mcp.tool()
async def segment_video_camera_shots(url: VideoUrl) -> str:
    """Split a video into camera shots with start/end times and durations.

    YouTube URLs are not supported.
    """
    return await operations.segment_video_camera_shots(get_client(), url)


@mcp.tool()
async def list_transcripts(
    limit: Annotated[int, Field(ge=1, le=100)] = 10,
    url: Annotated[str | None, Field(description="Only jobs for this video URL.")] = None,
) -> str:
    """Completed standalone transcription jobs, optionally for one URL."""
    return _dumps(await operations.list_transcripts(get_client(), limit, url))


@mcp.tool()
async def list_extracts(
    limit: Annotated[int, Field(ge=1, le=100)] = 10,
    url: Annotated[str | None, Field(description="Only jobs for this video URL.")] = None,
) -> str:
    """Completed standalone entity extraction jobs, optionally for one URL."""
    return _dumps(await operations.list_extracts(get_client(), limit, url))


# ---------------------------------------------------------------------------
# Collection-wide retrieval
# ---------------------------------------------------------------------------


@mcp.tool()
async def retrieve_summaries(
    collection_id: CollectionId,
    limit: Annotated[int, Field(ge=1, le=50)] = 25,
    offset: Offset = 0,
    created_after: CreatedAfter = None,
    created_before: CreatedBefore = None,
) -> str:
    """Titles and summaries of a collection's videos.

    Start here to get an overview of a collection, then use
    retrieve_descriptions only for the videos that need full detail.
    """
    result = await operations.retrieve_summaries(
        get_client(), collection_id, limit, offset, created_after, created_before
    )
    return _dumps(result)


@mcp.tool()
async def retrieve_descriptions(
    collection_id: CollectionId,
    limit: Annotated[int, Field(ge=1, le=10)] = 2,
    offset: Offset = 0,
    created_after: CreatedAfter = None,
    created_before: CreatedBefore = None,
) -> str:
    """Full multimodal descriptions of a collection's videos (at most 10 per call).

    Check pagination.has_more and page through when you need every video.
    """
    result = await operations.retrieve_descriptions(
        get_client(), collection_id, limit, offset, created_after, created_before
    )
    return _dumps(result)


@mcp.tool()
async def retrieve_collection_transcripts(
    collection_id: CollectionId,
    limit: Annotated[int, Field(ge=1, le=50)] = 10,
    offset: Offset = 0,
    created_after: CreatedAfter = None,
    created_before: CreatedBefore = None,
) -> str:
    """Rich transcripts of a collection's videos."""
    result = await operations.retrieve_collection_transcripts(
        get_client(), collection_id, limit, offset, created_after, created_before
    )
    return _dumps(result)


@mcp.tool()
async def retrieve_collection_entities(
    collection_id: CollectionId,
    limit: Annotated[int, Field(ge=1, le=10)] = 5,
    offset: Offset = 0,
    created_after: CreatedAfter = None,
    created_before: CreatedBefore = None,
) -> str:
    """Extracted entities of an entities collection's videos."""
    result = await operations.retrieve_collection_entities(
        get_client(), collection_id, limit, offset, created_after, created_before
    )
    return _dumps(result)


# ---------------------------------------------------------------------------
# Search and chat
# ---------------------------------------------------------------------------


@mcp.tool()
async def search_video_moments(
    collection_id: CollectionId,
    query: Annotated[str, Field(description="What to look for in speech, on-screen text or visuals.")],
    max_results: MaxResults = 5,
) -> str:
    """Semantic search for specific segments across a collection's videos."""
    result = await operations.search_video_moments(get_client(), collection_id, query, max_results)
    return _dumps(result)


@mcp.tool()
async def search_video_summaries(
    collection_id: CollectionId,
    query: Annotated[str, Field(description="Topic or theme to match against whole videos.")],
    max_results: MaxResults = 5,
) -> str:
    """Semantic search for the videos of a collection most relevant to a query."""
    result = await operations.search_video_summaries(get_client(), collection_id, query, max_results)
    return _dumps(result)


@mcp.tool()
async def find_video_collection_moments(
    collection_id: CollectionId,
    query: Annotated[str, Field(description="Moment, topic or content to find.")],
    max_results: MaxResults = 5,
) -> str:
    """Find and describe the most relevant moments in a collection, with citations."""
    result = await operations.find_video_collection_moments(
        get_client(), collection_id, query, max_results
    )
    return _dumps(result)


@mcp.tool()
async def chat_with_video_collection(
    collection_id: CollectionId,
    prompt: Annotated[str, Field(description="Question or instruction about the collection.")],
) -> str:
    """Chat answer grounded on a collection's videos, with citations."""
    return await operations.chat_with_video_collection(get_client(), collection_id, prompt)


# ---------------------------------------------------------------------------
# Adding and removing content
# ---------------------------------------------------------------------------


@mcp.tool()
async def add_file(
    local_file_path: Annotated[
        str | None,
        Field(description="Local file to upload; absolute or relative to the working directory."),
    ] = None,
    file_id: Annotated[
        str | None, Field(description="Already uploaded file to use instead of local_file_path.")
    ] = None,
    collection_id: Annotated[
        str | None, Field(description="Collection to add the file to after processing.")
    ] = None,
) -> str:
    """Upload a local file to Cloudglue, or add an existing file to a collection.

    Provide exactly one of local_file_path and file_id. Waits for upload
    and collection processing to finish.
    """
    result = await operations.add_file(
        get_client(), get_working_dir(), local_file_path, file_id, collection_id
    )
    return _dumps(result)


@mcp.tool()
async def add_youtube(
    collection_id: CollectionId,
    youtube_urls: Annotated[
        list[str] | None,
        Field(max_length=MAX_BATCH_URLS, description="Up to 50 YouTube video URLs."),
    ] = None,
    playlist_url: Annotated[
        str | None, Field(description="YouTube playlist to add recent videos from.")
    ] = None,
    channel_url: Annotated[
        str | None, Field(description="YouTube channel to add recent videos from.")
    ] = None,
    limit: Annotated[
        int,
        Field(
            ge=1,
            le=YOUTUBE_RSS_MAX_VIDEOS,
            description="Most recent videos to take from a playlist or channel (1-15).",
        ),
    ] = YOUTUBE_RSS_MAX_VIDEOS,
) -> str:
    """Add YouTube videos to a collection from URLs, a playlist or a channel.

    Provide exactly one source. Videos are added 5 at a time and the tool
    waits for processing before returning the collection's videos. Only
    videos with available transcripts can be processed.
    """
    result = await operations.add_youtube(
        get_client(), collection_id, youtube_urls, playlist_url, channel_url, limit
    )
    return _dumps(result)


@mcp.tool()
async def add_video_to_collection(
    collection_id: CollectionId,
    url: Annotated[
        str,
        Field(description="Cloudglue, public HTTP or data connector video URL (not YouTube)."),
    ],
) -> str:
    """Add a video to a collection by URL and wait for it to be processed."""
    return _dumps(await operations.add_video_to_collection(get_client(), collection_id, url))


@mcp.tool()
async def create_collection(
    name: Annotated[str, Field(description="Collection name, unique within the account.")],
    description: Annotated[str | None, Field(description="What the collection is for.")] = None,
    collection_type: Literal["media-descriptions", "rich-transcripts"] = "media-descriptions",
) -> str:
    """Create a collection that extracts summaries, speech, on-screen text and visuals."""
    result = await operations.create_collection(get_client(), name, description, collection_type)
    return _dumps(result)


@mcp.tool()
async def delete_collection(collection_id: CollectionId) -> str:
    """Delete a collection. Its video files stay in the account."""
    return _dumps(await operations.delete_collection(get_client(), collection_id))


@mcp.tool()
async def remove_video_from_collection(
    collection_id: CollectionId,
    file_id: Annotated[str, Field(description="Cloudglue file ID of the video to remove.")],
) -> str:
    """Remove a video from a collection without deleting the file."""
    return _dumps(
        await operations.remove_video_from_collection(get_client(), collection_id, file_id)
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cloudglue-mcp",
        description="Cloudglue MCP server (stdio)",
    )
    parser.add_argument("--api-key", help="Cloudglue API key (default: CLOUDGLUE_API_KEY)")
    parser.add_argument("--base-url", help="Cloudglue API base URL (default: CLOUDGLUE_BASE_URL)")
    parser.add_argument(
        "--working-dir",
        help="Directory relative upload paths resolve against (default: current directory)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None):
    """Entry point for the cloudglue-mcp command."""
    args = build_parser().parse_args(argv)
    try:
        config = resolve_config(args.api_key, args.base_url, args.working_dir)
        configure_logging(config.log_level)
        client = CloudglueClient.from_config(config)
    except CloudglueMcpError as e:
        configure_logging()
        logger.error(f"Fatal error: {e}")
        sys.exit(1)

    configure(client, config)
    logger.info(f"Cloudglue MCP server {__version__} running on stdio ({config.base_url})")
    mcp.run()


if __name__ == "__main__":
    main()
