"""
Data models for cloudglue-mcp.
"""

from cloudglue_mcp.models.batch_item import BatchItem
from cloudglue_mcp.models.local_file import LocalFile, LocalFileError
from cloudglue_mcp.models.page import EntityPage, PageRequest, PageResult, TimeWindow

__all__ = [
    "BatchItem",
    "EntityPage",
    "LocalFile",
    "LocalFileError",
    "PageRequest",
    "PageResult",
    "TimeWindow",
]
