"""
Pagination helpers layered over an API that only pages by limit/offset.

Three flavours share the PageResult/TimeWindow shapes:

- Filter-fetch: list endpoints cannot filter by date, so we over-fetch from
  offset 0 (``limit + offset + 50``, capped at the 100-item upstream max),
  filter client-side in fetched order and slice ``[offset, offset + limit)``.
  If filtering drops more than the 50-item margin the page comes back
  short even though more matches exist upstream.
- Time-range paging: one video's timeline cut into fixed 300 s windows.
- Segment-count paging: 25 segment entities per page, sent server-side as
  limit/offset where the endpoint accepts it, sliced locally otherwise.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from cloudglue_mcp.config.defaults import DESCRIBE_PAGE_SECONDS, ENTITIES_PER_PAGE
from cloudglue_mcp.exceptions import InputValidationError
from cloudglue_mcp.models.page import PageRequest, PageResult, TimeWindow

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FetchPage = Callable[[int, int], Awaitable[dict[str, Any]]]
Predicate = Callable[[dict[str, Any]], bool]


def parse_date_bound(value: str, *, end_of_day: bool) -> datetime:
    """Turn a YYYY-MM-DD bound into a UTC instant.

    created_after bounds sit at 00:00:00.000Z, created_before bounds at
    23:59:59.999Z of the given day.

    Raises:
        InputValidationError: If value is not a YYYY-MM-DD date.
    """
    try:
        day = datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError as e:
        raise InputValidationError(
            f"Invalid date '{value}': expected YYYY-MM-DD (e.g., '2024-01-15')"
        ) from e
    if end_of_day:
        return day + timedelta(days=1) - timedelta(milliseconds=1)
    return day


def parse_timestamp(value: Any) -> datetime:
    """Parse an API timestamp (ISO 8601 string or epoch number) as UTC.

    Missing or unparseable values map to the Unix epoch.
    """
    if value is None or value == "":
        return EPOCH
    if isinstance(value, (int, float)):
        seconds = value / 1000 if value > 1e12 else value
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparseable timestamp {value!r}, treating as epoch")
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def item_date(item: dict[str, Any]) -> datetime:
    """Creation instant of a listed item: created_at, else added_at, else epoch."""
    return parse_timestamp(item.get("created_at") or item.get("added_at"))


def date_filter(
    created_after: str | None,
    created_before: str | None,
) -> Predicate:
    """Build a predicate for the strict created_after/created_before bounds."""
    after = parse_date_bound(created_after, end_of_day=False) if created_after else None
    before = parse_date_bound(created_before, end_of_day=True) if created_before else None

    def matches(item: dict[str, Any]) -> bool:
        when = item_date(item)
        if after is not None and when <= after:
            return False
        if before is not None and when >= before:
            return False
        return True

    return matches


def validate_request(request: PageRequest) -> None:
    """Reject malformed date bounds before anything is fetched."""
    if request.has_date_filter:
        date_filter(request.created_after, request.created_before)


def paginate(
    items: Sequence[Any],
    request: PageRequest,
    *,
    filtered: bool,
    upstream_total: int | None = None,
) -> PageResult:
    """Slice one page out of an already-filtered list.

    Args:
        items: Candidate items in upstream order.
        request: Page bounds.
        filtered: Whether any client-side filter was applied. If not,
            upstream_total (when known) is reported as the total.
        upstream_total: Total reported by the upstream list endpoint.
    """
    page = list(items[request.offset : request.offset + request.limit])
    if filtered or upstream_total is None:
        total = len(items)
    else:
        total = upstream_total
    return PageResult(
        items=page,
        offset=request.offset,
        limit=request.limit,
        total=total,
        has_more=request.offset + request.limit < total,
        upstream_total=upstream_total,
    )


async def filter_fetch(
    fetch_page: FetchPage,
    request: PageRequest,
    predicate: Predicate | None = None,
) -> PageResult:
    """Over-fetch, filter by date (and predicate), then slice a page.

    Args:
        fetch_page: Coroutine taking (limit, offset) and returning the
            upstream list response ({"data": [...], "total": n}).
        request: Page bounds and date filters.
        predicate: Extra client-side filter (e.g. completed status only).

    Returns:
        PageResult for the requested page.

    Raises:
        InputValidationError: If a date bound is malformed. This is checked
            before the upstream is called.
    """
    matches_dates = (
        date_filter(request.created_after, request.created_before)
        if request.has_date_filter
        else None
    )

    response = await fetch_page(request.fetch_limit, 0)
    candidates = response.get("data") or []

    filtered = matches_dates is not None or predicate is not None
    if predicate is not None:
        candidates = [item for item in candidates if predicate(item)]
    if matches_dates is not None:
        candidates = [item for item in candidates if matches_dates(item)]

    return paginate(
        candidates,
        request,
        filtered=filtered,
        upstream_total=response.get("total"),
    )


def count_pages(total: int, per_page: int) -> int:
    """Pages needed for total items; an empty set still has one page."""
    if total <= 0:
        return 1
    return math.ceil(total / per_page)


def time_window(
    duration_seconds: float | None,
    page: int,
    page_seconds: int = DESCRIBE_PAGE_SECONDS,
) -> TimeWindow:
    """Window of the timeline covered by a page.

    Page p covers [p * page_seconds, min((p + 1) * page_seconds, duration)).
    With an unknown duration there is a single unbounded page.

    Raises:
        InputValidationError: If page is negative or past the last page.
    """
    if page < 0:
        raise InputValidationError(f"page must be >= 0, got {page}")
    if not duration_seconds or duration_seconds <= 0:
        if page > 0:
            raise InputValidationError(
                f"page {page} is out of range: video duration is unknown, only page 0 exists"
            )
        return TimeWindow(page=0, total_pages=1)

    total_pages = math.ceil(duration_seconds / page_seconds)
    if page >= total_pages:
        raise InputValidationError(
            f"page {page} is out of range: video has {total_pages} page(s) "
            f"of {page_seconds}s ({duration_seconds:.0f}s total)"
        )
    start = page * page_seconds
    end = min((page + 1) * page_seconds, duration_seconds)
    return TimeWindow(page=page, total_pages=total_pages, start_seconds=start, end_seconds=end)


def page_bounds(page: int, per_page: int = ENTITIES_PER_PAGE) -> tuple[int, int]:
    """(limit, offset) for a zero-based page number."""
    if page < 0:
        raise InputValidationError(f"page must be >= 0, got {page}")
    return per_page, page * per_page


def slice_page(
    items: Sequence[Any],
    page: int,
    per_page: int = ENTITIES_PER_PAGE,
) -> tuple[list[Any], int]:
    """Slice a page locally, returning (page_items, total_pages)."""
    limit, offset = page_bounds(page, per_page)
    return list(items[offset : offset + limit]), count_pages(len(items), per_page)
