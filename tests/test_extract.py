"""Tests for entity extraction."""

import pytest

from cloudglue_mcp.exceptions import CloudglueAPIError, InputValidationError
from cloudglue_mcp.operations.extract import (
    batch_extract_video_entities,
    config_matches,
    extract_video_entities,
    parse_schema,
)

URL = "https://example.com/meeting.mp4"
PROMPT = "speaker names and action items"


def extract_job(job_id, prompt=PROMPT, **config):
    return {
        "job_id": job_id,
        "status": "completed",
        "extract_config": {
            "prompt": prompt,
            "enable_video_level_entities": True,
            "enable_segment_level_entities": True,
            **config,
        },
    }


def result(job_id, segments=30):
    return {
        "job_id": job_id,
        "status": "completed",
        "data": {
            "entities": {"speakers": ["Ada"]},
            "segment_entities": [{"start_time": i, "entities": {}} for i in range(segments)],
        },
    }


class TestParseSchema:
    def test_none_and_blank(self):
        assert parse_schema(None) is None
        assert parse_schema("  ") is None

    def test_object(self):
        assert parse_schema('{"type": "object"}') == {"type": "object"}

    def test_invalid_json(self):
        with pytest.raises(InputValidationError, match="not valid JSON"):
            parse_schema("{type: object")

    def test_not_an_object(self):
        with pytest.raises(InputValidationError):
            parse_schema("[1, 2]")


class TestConfigMatches:
    def test_same_prompt(self):
        assert config_matches(extract_job("x"), PROMPT, None)

    def test_different_prompt(self):
        assert not config_matches(extract_job("x", prompt="topics"), PROMPT, None)

    def test_segment_level_disabled(self):
        job = extract_job("x", enable_segment_level_entities=False)
        assert not config_matches(job, PROMPT, None)

    def test_schema_must_match_when_given(self):
        job = extract_job("x", schema={"type": "object"})
        assert config_matches(job, PROMPT, {"type": "object"})
        assert not config_matches(job, PROMPT, {"type": "array"})


class TestExtractVideoEntities:
    @pytest.mark.asyncio
    async def test_reuses_prompt_matched_job(self, client):
        client.list_jobs.return_value = {"data": [extract_job("e0")]}
        client.get_job.return_value = result("e0")

        doc = await extract_video_entities(client, URL, PROMPT)

        assert doc["video_level_entities"] == {"speakers": ["Ada"]}
        assert len(doc["segment_level_entities"]["entities"]) == 25
        assert doc["segment_level_entities"]["total_pages"] == 2
        client.create_job.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_different_prompt_creates_job(self, client):
        client.list_jobs.return_value = {"data": [extract_job("e0", prompt="topics")]}
        client.create_job.return_value = {"job_id": "e1", "status": "pending"}
        client.wait_for_job.return_value = result("e1", segments=3)

        doc = await extract_video_entities(client, URL, PROMPT)

        client.create_job.assert_awaited_once_with(
            "extract",
            url=URL,
            prompt=PROMPT,
            enable_video_level_entities=True,
            enable_segment_level_entities=True,
        )
        assert doc["segment_level_entities"] == {
            "entities": result("e1", segments=3)["data"]["segment_entities"],
            "page": 0,
            "total_pages": 1,
        }

    @pytest.mark.asyncio
    async def test_unreadable_existing_job_creates_new(self, client):
        client.list_jobs.return_value = {"data": [extract_job("e0")]}
        client.get_job.side_effect = CloudglueAPIError("gone", status_code=404)
        client.create_job.return_value = {"job_id": "e1", "status": "pending"}
        client.wait_for_job.return_value = result("e1", segments=3)

        doc = await extract_video_entities(client, URL, PROMPT)

        assert "error" not in doc
        assert doc["video_level_entities"] == {"speakers": ["Ada"]}
        assert doc["segment_level_entities"]["total_pages"] == 1
        client.create_job.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_collection_entities_still_used(self, client):
        client.get_entities.return_value = {"entities": {}, "segment_entities": [], "total": 0}

        doc = await extract_video_entities(
            client, "cloudglue://files/f1", PROMPT, collection_id="c1"
        )

        assert doc["video_level_entities"] == {}
        assert doc["segment_level_entities"]["entities"] == []
        client.list_jobs.assert_not_awaited()
        client.create_job.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_page_sliced_locally(self, client):
        client.create_job.return_value = {"job_id": "e1", "status": "pending"}
        client.wait_for_job.return_value = result("e1", segments=30)

        doc = await extract_video_entities(client, URL, PROMPT, page=1)

        entities = doc["segment_level_entities"]["entities"]
        assert [e["start_time"] for e in entities] == [25, 26, 27, 28, 29]
        assert doc["segment_level_entities"]["page"] == 1

    @pytest.mark.asyncio
    async def test_collection_entities_paged_server_side(self, client):
        client.get_entities.return_value = {
            "entities": {"topics": ["pricing"]},
            "segment_entities": [{"start_time": 0}],
            "total": 60,
        }

        doc = await extract_video_entities(
            client, "cloudglue://files/f1", PROMPT, collection_id="c1", page=2
        )

        client.get_entities.assert_awaited_once_with("c1", "f1", limit=25, offset=50)
        assert doc["segment_level_entities"]["total_pages"] == 3
        client.create_job.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_schema(self, client):
        doc = await extract_video_entities(client, URL, PROMPT, schema="not json")

        assert "Invalid schema" in doc["error"]
        assert doc["segment_level_entities"]["total_pages"] == 0
        client.list_jobs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_job(self, client):
        client.create_job.return_value = {"job_id": "e1", "status": "pending"}
        client.wait_for_job.return_value = {"job_id": "e1", "status": "failed", "error": "too long"}

        doc = await extract_video_entities(client, URL, PROMPT)

        assert doc["error"].startswith("Error creating entity extraction:")
        assert "too long" in doc["error"]


class TestBatchExtract:
    @pytest.mark.asyncio
    async def test_results_per_url(self, client):
        async def create_job(kind, url, **payload):
            if "broken" in url:
                raise RuntimeError("upstream exploded")
            return {"job_id": url, "status": "pending"}

        async def wait_for_job(kind, job_id, initial=None, **params):
            return result(job_id, segments=2)

        client.create_job.side_effect = create_job
        client.wait_for_job.side_effect = wait_for_job
        urls = ["https://a.test/1.mp4", "https://a.test/broken.mp4"]

        out = await batch_extract_video_entities(client, urls, PROMPT)

        assert out["prompt"] == PROMPT
        assert out["summary"] == {"total_urls": 2, "successful": 1, "failed": 1}
        first = out["results"][0]
        assert first["status"] == "completed"
        assert len(first["segment_level_entities"]) == 2
        assert out["results"][1]["error"] == "upstream exploded"

    @pytest.mark.asyncio
    async def test_invalid_schema(self, client):
        out = await batch_extract_video_entities(client, [URL], PROMPT, schema="[]")
        assert "error" in out
        client.create_job.assert_not_awaited()
