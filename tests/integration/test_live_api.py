"""Integration tests against the real Cloudglue API.

These make real API calls with the account behind CLOUDGLUE_API_KEY and
only read data (no jobs are created, nothing is deleted).

Run with: pytest tests/integration --run-integration -v
"""

from __future__ import annotations

import os

import pytest

from cloudglue_mcp.api.client import CloudglueClient
from cloudglue_mcp.config.loader import resolve_config
from cloudglue_mcp.operations import list_collections, list_videos

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("CLOUDGLUE_API_KEY"), reason="CLOUDGLUE_API_KEY not set"
    ),
]


@pytest.fixture
async def live_client():
    async with CloudglueClient.from_config(resolve_config()) as client:
        yield client


class TestLiveReads:
    @pytest.mark.asyncio
    async def test_list_collections(self, live_client):
        result = await list_collections(live_client, limit=2)
        assert "error" not in result
        assert result["pagination"]["limit"] == 2

    @pytest.mark.asyncio
    async def test_list_videos_with_date_filter(self, live_client):
        result = await list_videos(live_client, limit=5, created_after="2020-01-01")
        assert "error" not in result
        assert result["filtered_after"] == "2020-01-01"
        assert all(v["id"] for v in result["videos"])
