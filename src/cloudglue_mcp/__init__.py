"""
cloudglue-mcp - Cloudglue video intelligence as MCP tools.

Lets an MCP client (Claude Desktop, Claude Code, Cursor) work with video:
1. Describe, transcribe, extract entities from and segment videos
2. Organize videos into collections (uploads, URLs, YouTube)
3. Search and chat across a collection with citations
"""

# Config
from cloudglue_mcp.config import CloudglueConfig, ConfigSource, resolve_config

# Exceptions
from cloudglue_mcp.exceptions import (
    CloudglueAPIError,
    CloudglueMcpError,
    ConfigError,
    InputValidationError,
    JobFailedError,
    SourceExtractionError,
)

# Models
from cloudglue_mcp.models.batch_item import BatchItem
from cloudglue_mcp.models.local_file import LocalFile, LocalFileError
from cloudglue_mcp.models.page import EntityPage, PageRequest, PageResult, TimeWindow

# Core primitives
from cloudglue_mcp.operations.batch import run_batch
from cloudglue_mcp.operations.pagination import filter_fetch, time_window
from cloudglue_mcp.operations.polling import JobPoller

# Parsing utilities
from cloudglue_mcp.parsing.utils import (
    extract_file_id,
    is_cloudglue_url,
    is_youtube_url,
)

__version__ = "0.1.0"

__all__ = [
    # Core primitives
    "JobPoller",
    "run_batch",
    "filter_fetch",
    "time_window",
    # Models
    "BatchItem",
    "EntityPage",
    "PageRequest",
    "PageResult",
    "TimeWindow",
    "LocalFile",
    "LocalFileError",
    # Config
    "CloudglueConfig",
    "ConfigSource",
    "resolve_config",
    # URL utilities
    "extract_file_id",
    "is_cloudglue_url",
    "is_youtube_url",
    # Exceptions
    "CloudglueMcpError",
    "CloudglueAPIError",
    "ConfigError",
    "InputValidationError",
    "JobFailedError",
    "SourceExtractionError",
]
