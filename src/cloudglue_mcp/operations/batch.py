"""
Batch runner: apply an async operation to many inputs with bounded concurrency.

Inputs are split into consecutive chunks of ``batch_size``. All operations
in a chunk run concurrently; the next chunk starts only once every
operation of the current chunk has settled. Peak concurrency is therefore
``batch_size`` and the whole run takes ``ceil(len(items) / batch_size)``
rounds.

One failing operation never aborts the batch: its exception is captured in
the corresponding BatchItem and the rest carry on.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from cloudglue_mcp.exceptions import error_message
from cloudglue_mcp.models.batch_item import BatchItem
from cloudglue_mcp.utils.logging import log_timed

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> list[Sequence[T]]:
    """Split items into consecutive chunks of at most size."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [items[i : i + size] for i in range(0, len(items), size)]


async def _settle(item: T, operation: Callable[[T], Awaitable[R]]) -> BatchItem[T, R]:
    try:
        return BatchItem(input=item, result=await operation(item))
    except Exception as e:
        logger.warning(f"Batch operation failed for {item!r}: {e}")
        return BatchItem(input=item, error=error_message(e))


async def run_batch(
    items: Sequence[T],
    operation: Callable[[T], Awaitable[R]],
    batch_size: int,
) -> list[BatchItem[T, R]]:
    """Run operation over items, batch_size at a time.

    Args:
        items: Independent inputs.
        operation: Coroutine function applied to each input.
        batch_size: Maximum number of operations in flight.

    Returns:
        One BatchItem per input, in input order.
    """
    chunks = chunked(items, batch_size)
    outcomes: list[BatchItem[T, R]] = []
    start = time.time()

    for index, chunk in enumerate(chunks, start=1):
        settled = await asyncio.gather(*(_settle(item, operation) for item in chunk))
        outcomes.extend(settled)
        if len(chunks) > 1:
            failed = sum(1 for o in settled if not o.ok)
            log_timed(
                f"Batch chunk {index}/{len(chunks)} done "
                f"({len(chunk) - failed} ok, {failed} failed)",
                start,
            )

    return outcomes
