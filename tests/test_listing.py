"""Tests for video listing and collection retrieval."""

import pytest

from cloudglue_mcp.exceptions import CloudglueAPIError
from cloudglue_mcp.operations.listing import (
    list_extracts,
    list_transcripts,
    list_videos,
    retrieve_collection_entities,
    retrieve_collection_transcripts,
    retrieve_descriptions,
    retrieve_summaries,
)


def upstream(items, total=None):
    """list-endpoint AsyncMock side effect serving items by limit/offset."""

    async def fetch(*args, limit=None, offset=None, **kwargs):
        offset = offset or 0
        page = items[offset : offset + (limit or len(items))]
        return {"data": page, "total": len(items) if total is None else total}

    return fetch


def file_item(n, status="completed", day=None):
    return {
        "id": f"f{n}",
        "filename": f"video{n}.mp4",
        "uri": f"cloudglue://files/f{n}",
        "status": status,
        "created_at": f"2024-01-{day or n:02d}T09:00:00Z",
        "video_info": {"duration_seconds": 60 * n, "has_audio": True},
    }


def description(n, day):
    return {
        "file_id": f"f{n}",
        "created_at": f"2024-02-{day:02d}T00:00:01Z",
        "data": {"title": f"Video {n}", "summary": f"About {n}", "content": "..."},
    }


class TestListVideos:
    @pytest.mark.asyncio
    async def test_account_files_completed_only(self, client):
        files = [file_item(1), file_item(2, status="processing"), file_item(3), file_item(4)]
        client.list_files.side_effect = upstream(files, total=40)

        result = await list_videos(client, limit=2)

        assert [v["id"] for v in result["videos"]] == ["f1", "f3"]
        assert result["pagination"] == {
            "offset": 0, "limit": 2, "total_returned": 2, "total": 3, "has_more": True,
        }
        assert client.list_files.await_args.kwargs == {"limit": 52, "offset": 0}

    @pytest.mark.asyncio
    async def test_date_filters_echoed(self, client):
        client.list_files.side_effect = upstream([file_item(n) for n in range(1, 11)])

        result = await list_videos(client, limit=10, created_after="2024-01-05", created_before="2024-01-07")

        assert [v["id"] for v in result["videos"]] == ["f5", "f6", "f7"]
        assert result["filtered_after"] == "2024-01-05"
        assert result["filtered_before"] == "2024-01-07"

    @pytest.mark.asyncio
    async def test_bad_date(self, client):
        result = await list_videos(client, created_after="last week")

        assert "YYYY-MM-DD" in result["error"]
        assert result["videos"] == []
        client.list_files.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_collection_videos_enriched(self, client):
        client.list_videos.side_effect = upstream(
            [
                {"file_id": "f1", "status": "completed", "added_at": "2024-03-01T00:00:00Z"},
                {"file_id": "f2", "status": "failed", "added_at": "2024-03-02T00:00:00Z"},
            ]
        )
        client.get_file.return_value = file_item(1)

        result = await list_videos(client, collection_id="c1")

        assert len(result["videos"]) == 1
        video = result["videos"][0]
        assert video["filename"] == "video1.mp4"
        assert video["collection_id"] == "c1"
        assert video["added_at"] == "2024-03-01T00:00:00Z"

    @pytest.mark.asyncio
    async def test_collection_video_detail_failure_is_reported(self, client):
        client.list_videos.side_effect = upstream(
            [
                {"file_id": "f1", "status": "completed", "added_at": "2024-03-01T00:00:00Z"},
                {"file_id": "f2", "status": "completed", "added_at": "2024-03-02T00:00:00Z"},
            ]
        )

        async def get_file(file_id):
            if file_id == "f2":
                raise CloudglueAPIError("Cloudglue API returned 404: not found")
            return file_item(1)

        client.get_file.side_effect = get_file

        result = await list_videos(client, collection_id="c1")

        assert result["pagination"]["total"] == 2
        assert result["pagination"]["total_returned"] == 2
        failed = result["videos"][1]
        assert failed["file_id"] == "f2"
        assert failed["collection_id"] == "c1"
        assert failed["status"] == "completed"
        assert failed["error"].startswith("Failed to get file details:")
        assert "404" in failed["error"]

    @pytest.mark.asyncio
    async def test_collection_details_fetched_for_page_only(self, client):
        client.list_videos.side_effect = upstream(
            [{"file_id": f"f{n}", "status": "completed"} for n in range(1, 21)]
        )
        client.get_file.return_value = file_item(1)

        result = await list_videos(client, collection_id="c1", limit=1, offset=3)

        assert result["pagination"]["total_returned"] == 1
        assert result["pagination"]["has_more"]
        client.get_file.assert_awaited_once_with("f4")

    @pytest.mark.asyncio
    async def test_collection_date_filter_uses_file_dates(self, client):
        client.list_videos.side_effect = upstream(
            [{"file_id": f"f{n}", "status": "completed"} for n in range(1, 6)]
        )

        async def get_file(file_id):
            return file_item(int(file_id[1:]))

        client.get_file.side_effect = get_file

        result = await list_videos(client, collection_id="c1", created_after="2024-01-03")

        assert [v["id"] for v in result["videos"]] == ["f3", "f4", "f5"]
        assert result["filtered_after"] == "2024-01-03"

    @pytest.mark.asyncio
    async def test_api_error(self, client):
        client.list_files.side_effect = CloudglueAPIError("Cloudglue API returned 401: bad key")
        result = await list_videos(client)
        assert result == {"error": "Cloudglue API returned 401: bad key", "videos": []}


class TestRetrieveSummaries:
    @pytest.mark.asyncio
    async def test_summaries(self, client):
        client.get_collection.return_value = {"id": "c1", "collection_type": "media-descriptions"}
        client.list_artifacts.side_effect = upstream(
            [description(1, 1), description(2, 2), description(3, 3)]
        )

        result = await retrieve_summaries(client, "c1", limit=2, offset=1)

        assert result["summaries"] == [
            {"title": "Video 2", "summary": "About 2", "file_id": "f2"},
            {"title": "Video 3", "summary": "About 3", "file_id": "f3"},
        ]
        assert result["collection_type"] == "media-descriptions"
        assert result["collection_id"] == "c1"
        assert result["pagination"]["has_more"] is False
        assert client.list_artifacts.await_args.args == ("media-descriptions", "c1")

    @pytest.mark.asyncio
    async def test_missing_fields_defaulted(self, client):
        client.get_collection.return_value = {"collection_type": "rich-transcripts"}
        client.list_artifacts.side_effect = upstream([{"file_id": "f1", "data": {}}])

        result = await retrieve_summaries(client, "c1")

        assert result["summaries"] == [
            {"title": "Untitled", "summary": "No summary available", "file_id": "f1"}
        ]

    @pytest.mark.asyncio
    async def test_unsupported_collection_type(self, client):
        client.get_collection.return_value = {"id": "c1", "collection_type": "entities"}

        result = await retrieve_summaries(client, "c1")

        assert "not supported" in result["error"]
        assert result["summaries"] == []
        client.list_artifacts.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_date_checked_before_lookup(self, client):
        result = await retrieve_summaries(client, "c1", created_before="2024/01/01")

        assert "YYYY-MM-DD" in result["error"]
        client.get_collection.assert_not_awaited()


class TestRetrieveDescriptions:
    @pytest.mark.asyncio
    async def test_date_window(self, client):
        client.get_collection.return_value = {"collection_type": "media-descriptions"}
        client.list_artifacts.side_effect = upstream(
            [description(n, n) for n in range(1, 6)], total=5
        )

        result = await retrieve_descriptions(
            client, "c1", limit=10, created_after="2024-02-02", created_before="2024-02-03"
        )

        assert [d["file_id"] for d in result["descriptions"]] == ["f2", "f3"]
        assert result["pagination"]["total"] == 2
        assert result["filtered_after"] == "2024-02-02"


class TestRetrieveArtifacts:
    @pytest.mark.asyncio
    async def test_transcripts(self, client):
        client.list_artifacts.side_effect = upstream([{"file_id": "f1"}], total=1)

        result = await retrieve_collection_transcripts(client, "c1")

        assert result["transcripts"] == [{"file_id": "f1"}]
        assert client.list_artifacts.await_args.args == ("rich-transcripts", "c1")
        assert client.list_artifacts.await_args.kwargs == {"limit": 60, "offset": 0}

    @pytest.mark.asyncio
    async def test_entities(self, client):
        client.list_artifacts.side_effect = upstream([{"file_id": f"f{n}"} for n in range(8)])

        result = await retrieve_collection_entities(client, "c1", offset=5)

        assert [e["file_id"] for e in result["entities"]] == ["f5", "f6", "f7"]
        assert client.list_artifacts.await_args.args == ("entities", "c1")


class TestJobListings:
    @pytest.mark.asyncio
    async def test_list_transcripts(self, client):
        client.list_jobs.return_value = {"data": [{"job_id": "t1"}], "total": 1}

        result = await list_transcripts(client, limit=5, url="https://a.test/v.mp4")

        client.list_jobs.assert_awaited_once_with(
            "transcribe", limit=5, status="completed", url="https://a.test/v.mp4"
        )
        assert result["data"] == [{"job_id": "t1"}]

    @pytest.mark.asyncio
    async def test_list_extracts_error(self, client):
        client.list_jobs.side_effect = CloudglueAPIError("Cloudglue API returned 500: down")

        result = await list_extracts(client)

        assert result == {"error": "Cloudglue API returned 500: down", "data": []}
