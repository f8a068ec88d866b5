"""Tests for bulk YouTube additions."""

import asyncio

import httpx
import pytest

from cloudglue_mcp.exceptions import SourceExtractionError
from cloudglue_mcp.operations.youtube import (
    add_youtube,
    extract_videos_from_source,
    parse_feed_video_ids,
    resolve_channel_id,
)


def feed(*video_ids):
    entries = "".join(f"<entry><yt:videoId>{v}</yt:videoId></entry>" for v in video_ids)
    return f'<?xml version="1.0"?><feed xmlns:yt="http://www.youtube.com/xml/schemas/2015">{entries}</feed>'


def youtube_http(routes):
    """AsyncClient serving canned pages keyed by (path, query-param value)."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        for (path, marker), response in routes.items():
            if request.url.path == path and (marker is None or marker in str(request.url)):
                return response
        return httpx.Response(404)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    http.seen = seen
    return http


def watch(video_id):
    return f"https://www.youtube.com/watch?v={video_id}"


class TestFeedParsing:
    def test_limit(self):
        assert parse_feed_video_ids(feed("a", "b", "c"), 2) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_channel_id_from_url(self):
        http = youtube_http({})
        assert await resolve_channel_id(http, "https://www.youtube.com/channel/UC123") == "UC123"
        assert http.seen == []

    @pytest.mark.asyncio
    async def test_channel_id_from_handle_page(self):
        page = '<link rel="canonical" href="https://www.youtube.com/channel/UCabc">'
        http = youtube_http({("/@someone", None): httpx.Response(200, text=page)})
        assert await resolve_channel_id(http, "https://www.youtube.com/@someone") == "UCabc"

    @pytest.mark.asyncio
    async def test_channel_page_without_id(self):
        http = youtube_http({("/@someone", None): httpx.Response(200, text="<html></html>")})
        with pytest.raises(SourceExtractionError, match="Could not find channel ID"):
            await resolve_channel_id(http, "https://www.youtube.com/@someone")

    @pytest.mark.asyncio
    async def test_playlist_feed(self):
        http = youtube_http(
            {("/feeds/videos.xml", "playlist_id=PL1"): httpx.Response(200, text=feed("v1", "v2", "v3"))}
        )
        urls = await extract_videos_from_source(
            http, "https://www.youtube.com/playlist?list=PL1", 2, "playlist"
        )
        assert urls == [watch("v1"), watch("v2")]

    @pytest.mark.asyncio
    async def test_invalid_playlist(self):
        with pytest.raises(SourceExtractionError, match="Invalid YouTube playlist URL"):
            await extract_videos_from_source(
                youtube_http({}), "https://www.youtube.com/playlist", 5, "playlist"
            )

    @pytest.mark.asyncio
    async def test_empty_feed(self):
        http = youtube_http({("/feeds/videos.xml", None): httpx.Response(200, text=feed())})
        with pytest.raises(SourceExtractionError, match="private"):
            await extract_videos_from_source(
                http, "https://www.youtube.com/channel/UC1", 5, "channel"
            )


class TestAddYoutube:
    @pytest.fixture
    def youtube_client(self, client):
        state = {"in_flight": 0, "max_in_flight": 0}

        async def add_video_by_url(collection_id, url):
            state["in_flight"] += 1
            state["max_in_flight"] = max(state["max_in_flight"], state["in_flight"])
            await asyncio.sleep(0)
            state["in_flight"] -= 1
            if url.endswith("bad"):
                raise RuntimeError("Video has no transcript")
            return {"file_id": f"file-{url[-2:]}", "status": "pending"}

        async def wait_for_video(collection_id, file_id):
            return {"file_id": file_id, "status": "completed"}

        client.add_video_by_url.side_effect = add_video_by_url
        client.wait_for_video.side_effect = wait_for_video
        client.list_videos.return_value = {
            "data": [
                {"file_id": "file-01", "collection_id": "c1", "status": "completed",
                 "added_at": "2024-01-01T00:00:00Z"},
                {"file_id": "file-02", "collection_id": "c1", "status": "processing"},
            ]
        }
        client.get_file.return_value = {"id": "file-01", "filename": "Talk", "uri": "cloudglue://files/file-01"}
        client.state = state
        return client

    @pytest.mark.asyncio
    async def test_seven_urls_in_two_rounds(self, youtube_client):
        urls = [watch(f"video{i:02d}") for i in range(1, 8)]

        result = await add_youtube(youtube_client, "c1", youtube_urls=urls)

        assert youtube_client.state["max_in_flight"] == 5
        summary = result["processing_summary"]
        assert summary["total_urls_requested"] == 7
        assert summary["successful_additions"] == 7
        assert summary["completed_processing"] == 7
        assert [r["url"] for r in result["addition_results"]] == urls
        assert result["collection_videos"]["total_videos"] == 1
        assert result["collection_videos"]["videos"][0]["filename"] == "Talk"
        assert result["input_parameters"]["used_youtube_urls"] is True
        assert result["input_parameters"]["limit"] is None
        assert "source_extraction" not in result

    @pytest.mark.asyncio
    async def test_failed_addition_recorded(self, youtube_client):
        urls = [watch("ok01"), watch("bad")]

        result = await add_youtube(youtube_client, "c1", youtube_urls=urls)

        summary = result["processing_summary"]
        assert summary["successful_additions"] == 1
        assert summary["failed_additions"] == 1
        assert result["addition_results"][1]["error"] == "Video has no transcript"
        assert [r["url"] for r in result["processing_results"]] == [watch("ok01")]

    @pytest.mark.asyncio
    async def test_requires_one_source(self, client):
        none = await add_youtube(client, "c1")
        many = await add_youtube(
            client, "c1", youtube_urls=[watch("a")], playlist_url="https://www.youtube.com/playlist?list=P"
        )
        assert "Must provide either" in none["error"]
        assert "Cannot provide multiple source types" in many["error"]
        client.add_video_by_url.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_playlist_source(self, youtube_client):
        http = youtube_http(
            {("/feeds/videos.xml", "playlist_id=PL9"): httpx.Response(200, text=feed("aa", "bb", "cc"))}
        )

        result = await add_youtube(
            youtube_client, "c1",
            playlist_url="https://www.youtube.com/playlist?list=PL9", limit=2, http=http,
        )

        assert result["source_extraction"] == {
            "source_type": "playlist",
            "source_url": "https://www.youtube.com/playlist?list=PL9",
            "limit": 2,
            "videos_extracted": 2,
            "extraction_successful": True,
        }
        assert result["input_parameters"]["limit"] == 2
        assert [r["url"] for r in result["addition_results"]] == [watch("aa"), watch("bb")]

    @pytest.mark.asyncio
    async def test_extraction_failure(self, client):
        http = youtube_http({("/feeds/videos.xml", None): httpx.Response(404)})

        result = await add_youtube(
            client, "c1", channel_url="https://www.youtube.com/channel/UC1", http=http
        )

        assert result["error"].startswith("Failed to extract videos from channel:")
        assert result["channel_url"] == "https://www.youtube.com/channel/UC1"
        client.add_video_by_url.assert_not_awaited()
