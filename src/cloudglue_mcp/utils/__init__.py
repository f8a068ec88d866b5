"""
Utility functions for cloudglue-mcp.
"""

from cloudglue_mcp.utils.formatting import format_clock, format_duration, format_file_size
from cloudglue_mcp.utils.logging import configure_logging, log_timed

__all__ = [
    "format_clock",
    "format_duration",
    "format_file_size",
    "configure_logging",
    "log_timed",
]
