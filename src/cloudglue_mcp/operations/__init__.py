"""
Video intelligence operations backing the MCP tools.
"""

from cloudglue_mcp.operations.batch import chunked, run_batch
from cloudglue_mcp.operations.collections import (
    add_video_to_collection,
    create_collection,
    delete_collection,
    list_collections,
    remove_video_from_collection,
)
from cloudglue_mcp.operations.describe import describe_video
from cloudglue_mcp.operations.extract import (
    batch_extract_video_entities,
    extract_video_entities,
)
from cloudglue_mcp.operations.files import add_file, get_video_info
from cloudglue_mcp.operations.listing import (
    list_extracts,
    list_transcripts,
    list_videos,
    retrieve_collection_entities,
    retrieve_collection_transcripts,
    retrieve_descriptions,
    retrieve_summaries,
)
from cloudglue_mcp.operations.pagination import (
    filter_fetch,
    page_bounds,
    paginate,
    slice_page,
    time_window,
)
from cloudglue_mcp.operations.polling import JobPoller
from cloudglue_mcp.operations.search import (
    chat_with_video_collection,
    find_video_collection_moments,
    search_video_moments,
    search_video_summaries,
)
from cloudglue_mcp.operations.segment import (
    segment_video_camera_shots,
    segment_video_chapters,
)
from cloudglue_mcp.operations.transcribe import (
    batch_transcribe_videos,
    transcribe_video,
)
from cloudglue_mcp.operations.youtube import add_youtube

__all__ = [
    # Primitives
    "JobPoller",
    "run_batch",
    "chunked",
    "filter_fetch",
    "paginate",
    "time_window",
    "page_bounds",
    "slice_page",
    # Analysis
    "describe_video",
    "transcribe_video",
    "batch_transcribe_videos",
    "extract_video_entities",
    "batch_extract_video_entities",
    "segment_video_chapters",
    "segment_video_camera_shots",
    # Listing
    "list_videos",
    "list_transcripts",
    "list_extracts",
    "retrieve_summaries",
    "retrieve_descriptions",
    "retrieve_collection_transcripts",
    "retrieve_collection_entities",
    # Search and chat
    "search_video_moments",
    "search_video_summaries",
    "find_video_collection_moments",
    "chat_with_video_collection",
    # Collections and files
    "list_collections",
    "create_collection",
    "delete_collection",
    "add_video_to_collection",
    "remove_video_from_collection",
    "add_file",
    "get_video_info",
    "add_youtube",
]
