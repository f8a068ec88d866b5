"""
cloudglue_mcp.api.client - async REST client for the Cloudglue API.

Wraps the endpoints the MCP tools need: asynchronous analysis jobs
(describe, transcribe, extract, segments), collections and their per-video
artifacts, files, search and chat. Every method returns the decoded JSON
body and raises CloudglueAPIError on transport failures and non-2xx
responses.

The ``wait_for_*`` helpers poll through a shared JobPoller, so they have
exactly the same semantics as a hand-written poll loop.

Example:
    >>> client = CloudglueClient(api_key="cg-...")
    >>> job = await client.create_job("transcribe", url="https://youtu.be/abc")
    >>> job = await client.wait_for_job("transcribe", job["job_id"], job)
    >>> print(job["status"])
"""

from __future__ import annotations

import json
import logging
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from cloudglue_mcp import __version__
from cloudglue_mcp.config.defaults import DEFAULT_BASE_URL, REQUEST_TIMEOUT
from cloudglue_mcp.exceptions import CloudglueAPIError, ConfigError
from cloudglue_mcp.operations.polling import JobPoller

if TYPE_CHECKING:
    from cloudglue_mcp.config.loader import CloudglueConfig

logger = logging.getLogger(__name__)

# Job kind -> endpoint collection
JOB_ENDPOINTS = {
    "describe": "/describe",
    "transcribe": "/transcribe",
    "extract": "/extract",
    "segments": "/segments",
}

# Per-video collection artifacts
ARTIFACTS = {
    "media-descriptions",
    "rich-transcripts",
    "entities",
}


def _clean(params: dict[str, Any]) -> dict[str, Any]:
    """Drop unset parameters so the API applies its own defaults."""
    return {k: v for k, v in params.items() if v is not None}


def _error_detail(response: httpx.Response) -> str:
    """Pull a readable message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:500] if text else response.reason_phrase
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])
    return str(body)[:500]


class CloudglueClient:
    """Cloudglue REST API client.

    The underlying httpx.AsyncClient is created lazily on first use and
    shared by every request, including concurrent batch operations.

    Args:
        api_key: Cloudglue API key.
        base_url: API base URL. Defaults to https://api.cloudglue.dev/v1.
        timeout: Per-request timeout in seconds.
        poller: Poller used by the wait_for_* helpers.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = REQUEST_TIMEOUT,
        poller: JobPoller | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.poller = poller or JobPoller()

    @classmethod
    def from_config(cls, config: CloudglueConfig) -> CloudglueClient:
        """Build a client from resolved configuration.

        Raises:
            ConfigError: If no API key is configured.
        """
        return cls(
            api_key=config.require_api_key(),
            base_url=config.base_url,
            timeout=config.request_timeout,
            poller=JobPoller.from_config(config),
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy-create the shared httpx client.

        Raises:
            ConfigError: If no API key was provided.
        """
        if self._client is None:
            if not self._api_key:
                raise ConfigError(
                    "CLOUDGLUE_API_KEY not set. "
                    "Set the environment variable or pass --api-key."
                )
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Accept": "application/json",
                    "User-Agent": f"cloudglue-mcp/{__version__}",
                },
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> CloudglueClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.request(
                method,
                path,
                params=_clean(params or {}),
                json=_clean(json_body) if json_body is not None else None,
                files=files,
                data=data,
            )
        except httpx.HTTPError as e:
            raise CloudglueAPIError(
                f"Request to {path} failed: {e}", method=method, path=path
            ) from e

        if response.is_error:
            detail = _error_detail(response)
            raise CloudglueAPIError(
                f"Cloudglue API returned {response.status_code}: {detail}",
                status_code=response.status_code,
                method=method,
                path=path,
                body=response.text[:500],
            )

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise CloudglueAPIError(
                f"Invalid JSON in response from {path}",
                status_code=response.status_code,
                method=method,
                path=path,
                body=response.text[:500],
            ) from e

    # ------------------------------------------------------------------
    # Jobs: describe / transcribe / extract / segments
    # ------------------------------------------------------------------

    @staticmethod
    def _job_path(kind: str) -> str:
        try:
            return JOB_ENDPOINTS[kind]
        except KeyError:
            raise ValueError(f"Unknown job kind: {kind!r}") from None

    async def create_job(self, kind: str, **payload: Any) -> dict[str, Any]:
        """Submit a new job. Returns the initial job ({job_id, status, ...})."""
        logger.debug(f"Creating {kind} job for {payload.get('url')}")
        return await self._request("POST", self._job_path(kind), json_body=payload)

    async def get_job(
        self,
        kind: str,
        job_id: str,
        *,
        response_format: str | None = None,
        start_time_seconds: float | None = None,
        end_time_seconds: float | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        """Fetch a job's current state, optionally as markdown or for a time window."""
        return await self._request(
            "GET",
            f"{self._job_path(kind)}/{job_id}",
            params={
                "response_format": response_format,
                "start_time_seconds": start_time_seconds,
                "end_time_seconds": end_time_seconds,
                **params,
            },
        )

    async def list_jobs(
        self,
        kind: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
        status: str | None = None,
        url: str | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        """List jobs of a kind. Returns {data: [...], total: n}."""
        return await self._request(
            "GET",
            self._job_path(kind),
            params={"limit": limit, "offset": offset, "status": status, "url": url, **params},
        )

    async def wait_for_job(
        self,
        kind: str,
        job_id: str,
        initial: dict[str, Any] | None = None,
        **params: Any,
    ) -> dict[str, Any]:
        """Poll a job until it leaves pending/processing."""
        return await self.poller.wait(lambda: self.get_job(kind, job_id, **params), initial)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    async def create_collection(self, **payload: Any) -> dict[str, Any]:
        return await self._request("POST", "/collections", json_body=payload)

    async def get_collection(self, collection_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/collections/{collection_id}")

    async def list_collections(
        self,
        *,
        limit: int | None = None,
        offset: int | None = None,
        collection_type: str | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            "/collections",
            params={"limit": limit, "offset": offset, "collection_type": collection_type},
        )

    async def delete_collection(self, collection_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/collections/{collection_id}")

    async def add_video(self, collection_id: str, file_id: str) -> dict[str, Any]:
        """Add an uploaded file to a collection."""
        return await self._request(
            "POST", f"/collections/{collection_id}/videos", json_body={"file_id": file_id}
        )

    async def add_video_by_url(self, collection_id: str, url: str) -> dict[str, Any]:
        """Add a video by URL (YouTube, public HTTP, data connector)."""
        return await self._request(
            "POST", f"/collections/{collection_id}/videos", json_body={"url": url}
        )

    async def get_video(self, collection_id: str, file_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/collections/{collection_id}/videos/{file_id}")

    async def list_videos(
        self,
        collection_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/collections/{collection_id}/videos",
            params={"limit": limit, "offset": offset},
        )

    async def delete_video(self, collection_id: str, file_id: str) -> dict[str, Any]:
        return await self._request("DELETE", f"/collections/{collection_id}/videos/{file_id}")

    async def wait_for_video(self, collection_id: str, file_id: str) -> dict[str, Any]:
        """Poll a collection video until its processing finishes."""
        return await self.poller.wait(lambda: self.get_video(collection_id, file_id))

    async def get_artifact(
        self,
        artifact: str,
        collection_id: str,
        file_id: str,
        **params: Any,
    ) -> dict[str, Any]:
        """Fetch one video's media-descriptions, rich-transcripts or entities."""
        if artifact not in ARTIFACTS:
            raise ValueError(f"Unknown collection artifact: {artifact!r}")
        return await self._request(
            "GET",
            f"/collections/{collection_id}/videos/{file_id}/{artifact}",
            params=params,
        )

    async def get_media_descriptions(
        self,
        collection_id: str,
        file_id: str,
        *,
        response_format: str | None = None,
        start_time_seconds: float | None = None,
        end_time_seconds: float | None = None,
    ) -> dict[str, Any]:
        return await self.get_artifact(
            "media-descriptions",
            collection_id,
            file_id,
            response_format=response_format,
            start_time_seconds=start_time_seconds,
            end_time_seconds=end_time_seconds,
        )

    async def get_rich_transcripts(
        self,
        collection_id: str,
        file_id: str,
        *,
        response_format: str | None = None,
    ) -> dict[str, Any]:
        return await self.get_artifact(
            "rich-transcripts", collection_id, file_id, response_format=response_format
        )

    async def get_entities(
        self,
        collection_id: str,
        file_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_artifact(
            "entities", collection_id, file_id, limit=limit, offset=offset
        )

    async def list_artifacts(
        self,
        artifact: str,
        collection_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
    ) -> dict[str, Any]:
        """List a collection's artifacts of one type. Returns {data, total}."""
        if artifact not in ARTIFACTS:
            raise ValueError(f"Unknown collection artifact: {artifact!r}")
        return await self._request(
            "GET",
            f"/collections/{collection_id}/{artifact}",
            params={"limit": limit, "offset": offset},
        )

    async def list_media_descriptions(self, collection_id: str, **params: Any) -> dict[str, Any]:
        return await self.list_artifacts("media-descriptions", collection_id, **params)

    async def list_rich_transcripts(self, collection_id: str, **params: Any) -> dict[str, Any]:
        return await self.list_artifacts("rich-transcripts", collection_id, **params)

    async def list_entities(self, collection_id: str, **params: Any) -> dict[str, Any]:
        return await self.list_artifacts("entities", collection_id, **params)

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        path: Path,
        *,
        mime_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Upload a local file as multipart/form-data."""
        mime = mime_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        data = {"metadata": json.dumps(metadata)} if metadata else None
        logger.info(f"Uploading {path.name} ({mime})")
        with open(path, "rb") as fh:
            return await self._request(
                "POST",
                "/files",
                files={"file": (path.name, fh, mime)},
                data=data,
            )

    async def get_file(self, file_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/files/{file_id}")

    async def list_files(
        self,
        *,
        limit: int | None = None,
        offset: int | None = None,
        status: str | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "GET", "/files", params={"limit": limit, "offset": offset, "status": status}
        )

    async def wait_for_file(self, file_id: str) -> dict[str, Any]:
        """Poll an uploaded file until processing finishes."""
        return await self.poller.wait(lambda: self.get_file(file_id))

    # ------------------------------------------------------------------
    # Search and chat
    # ------------------------------------------------------------------

    async def search(
        self,
        *,
        collections: list[str],
        query: str,
        limit: int | None = None,
        scope: str = "segment",
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/search",
            json_body={
                "collections": collections,
                "query": query,
                "limit": limit,
                "scope": scope,
            },
        )

    async def chat_completion(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        collections: list[str],
        force_search: bool = True,
        include_citations: bool = True,
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/chat/completions",
            json_body={
                "model": model,
                "messages": messages,
                "collections": collections,
                "force_search": force_search,
                "include_citations": include_citations,
                "max_tokens": max_tokens,
            },
        )
