"""Pytest configuration for cloudglue-mcp tests."""

from unittest.mock import MagicMock

import pytest

from cloudglue_mcp.api.client import CloudglueClient


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against the real Cloudglue API (requires CLOUDGLUE_API_KEY)",
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--run-integration"):
        skip = pytest.mark.skip(reason="needs --run-integration flag")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip)


@pytest.fixture
def client():
    """A CloudglueClient double whose async methods are AsyncMocks.

    Reuse lookups find nothing unless a test says otherwise.
    """
    mock = MagicMock(spec=CloudglueClient)
    mock.list_jobs.return_value = {"data": [], "total": 0}
    return mock


@pytest.fixture(autouse=True)
def isolated_config(request, tmp_path, monkeypatch):
    """Keep unit tests away from real config files and environment."""
    if request.node.get_closest_marker("integration"):
        return
    for var in (
        "CLOUDGLUE_API_KEY",
        "CLOUDGLUE_BASE_URL",
        "CLOUDGLUE_WORKING_DIR",
        "CLOUDGLUE_POLL_INTERVAL",
        "CLOUDGLUE_MAX_POLL_ATTEMPTS",
        "CLOUDGLUE_POLL_TIMEOUT",
        "CLOUDGLUE_REQUEST_TIMEOUT",
        "CLOUDGLUE_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CLOUDGLUE_MCP_ROOT", str(tmp_path / "cloudglue-root"))
