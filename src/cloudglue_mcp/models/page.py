"""
Pagination models: page requests, page results and time windows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cloudglue_mcp.config.defaults import MAX_UPSTREAM_PAGE, OVERFETCH_MARGIN


@dataclass(frozen=True)
class PageRequest:
    """Caller-supplied pagination and date-filter intent.

    Dates are YYYY-MM-DD strings. Bounds that exclude each other are not
    rejected; they simply match nothing.
    """

    limit: int
    offset: int = 0
    created_after: str | None = None
    created_before: str | None = None

    def __post_init__(self):
        if self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")

    @property
    def has_date_filter(self) -> bool:
        return bool(self.created_after or self.created_before)

    @property
    def fetch_limit(self) -> int:
        """Items to pull from offset 0 so filtering can still fill the page."""
        return min(self.limit + self.offset + OVERFETCH_MARGIN, MAX_UPSTREAM_PAGE)

    def filter_echo(self) -> dict[str, str]:
        """The filtered_after/filtered_before keys echoed in responses."""
        echo = {}
        if self.created_after:
            echo["filtered_after"] = self.created_after
        if self.created_before:
            echo["filtered_before"] = self.created_before
        return echo


@dataclass
class PageResult:
    """One page of items plus derived pagination metadata.

    total is the filtered count, or the upstream-reported total when no
    filter was applied. has_more is offset + limit < total, which is an
    approximation when the upstream was only partially fetched.
    """

    items: list[Any]
    offset: int
    limit: int
    total: int
    has_more: bool
    upstream_total: int | None = None

    @property
    def total_returned(self) -> int:
        return len(self.items)

    def pagination(self) -> dict[str, Any]:
        return {
            "offset": self.offset,
            "limit": self.limit,
            "total_returned": self.total_returned,
            "total": self.total,
            "has_more": self.has_more,
        }


@dataclass(frozen=True)
class TimeWindow:
    """A fixed-length window of one video's timeline."""

    page: int
    total_pages: int
    start_seconds: float | None = None
    end_seconds: float | None = None

    @property
    def is_bounded(self) -> bool:
        return self.start_seconds is not None and self.end_seconds is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "total_pages": self.total_pages,
            "start_time_seconds": self.start_seconds,
            "end_time_seconds": self.end_seconds,
        }


@dataclass
class EntityPage:
    """Video-level entities plus one page of segment-level entities."""

    video_level_entities: dict[str, Any] = field(default_factory=dict)
    segment_entities: list[Any] = field(default_factory=list)
    page: int = 0
    total_pages: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "video_level_entities": self.video_level_entities,
            "segment_level_entities": {
                "entities": self.segment_entities,
                "page": self.page,
                "total_pages": self.total_pages,
            },
        }
