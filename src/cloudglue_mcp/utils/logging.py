"""
Logging utilities.
"""

import logging
import sys
import time

logger = logging.getLogger("cloudglue_mcp")


def configure_logging(level: str = "INFO") -> None:
    """Send all logging to stderr so stdout stays clean for JSON-RPC."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )


def log_timed(msg: str, start_time: float | None = None) -> None:
    """Log timestamped message.

    Args:
        msg: Message to log
        start_time: Start time from time.time(), or None for [START]
    """
    elapsed = f"[{time.time() - start_time:.1f}s]" if start_time else "[START]"
    logger.info(f"{elapsed} {msg}")
