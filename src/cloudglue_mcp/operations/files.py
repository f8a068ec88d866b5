"""
File operations: upload local files, inspect uploaded files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.config.defaults import DIRECTORY_LISTING_CAP, FANOUT_BATCH_SIZE
from cloudglue_mcp.exceptions import CloudglueAPIError, error_message
from cloudglue_mcp.models.local_file import LocalFile, LocalFileError, list_directory_files
from cloudglue_mcp.operations.batch import run_batch
from cloudglue_mcp.operations.common import error_payload
from cloudglue_mcp.parsing.utils import file_url
from cloudglue_mcp.utils.formatting import format_duration

if TYPE_CHECKING:
    from cloudglue_mcp.api.client import CloudglueClient

logger = logging.getLogger(__name__)


def video_summary(file: dict[str, Any]) -> dict[str, Any]:
    """The file fields shown by list_videos and get_video_info."""
    video_info = file.get("video_info")
    return {
        "filename": file.get("filename"),
        "uri": file.get("uri"),
        "id": file.get("id"),
        "created_at": file.get("created_at"),
        "metadata": file.get("metadata"),
        "video_info": (
            {
                "duration_seconds": video_info.get("duration_seconds"),
                "has_audio": video_info.get("has_audio"),
            }
            if video_info
            else None
        ),
    }


async def collection_video_details(
    client: CloudglueClient,
    videos: list[dict[str, Any]],
    collection_id: str | None = None,
) -> list[dict[str, Any]]:
    """File details for collection video entries, in input order.

    A video whose file lookup fails stays in the list with an error field.
    """

    async def detail(video: dict[str, Any]) -> dict[str, Any]:
        file = await client.get_file(video["file_id"])
        return {
            **video_summary(file),
            "collection_id": video.get("collection_id", collection_id),
            "added_at": video.get("added_at"),
            "status": video.get("status"),
        }

    details = []
    for outcome in await run_batch(videos, detail, FANOUT_BATCH_SIZE):
        if outcome.ok:
            details.append(outcome.result)
            continue
        video = outcome.input
        details.append(
            {
                "file_id": video.get("file_id"),
                "collection_id": video.get("collection_id", collection_id),
                "added_at": video.get("added_at"),
                "status": video.get("status"),
                "error": f"Failed to get file details: {outcome.error}",
            }
        )
    return details


async def get_video_info(client: CloudglueClient, file_id: str) -> dict[str, Any]:
    """Metadata of an uploaded file. Only completed files are described."""
    try:
        file = await client.get_file(file_id)
    except CloudglueAPIError as e:
        return error_payload(e, file_id=file_id)
    if file.get("status") != "completed":
        return error_payload(
            f"Unable to retrieve video: Video is in {file.get('status')} status",
            file_id=file_id,
            status=file.get("status"),
        )
    return video_summary(file)


def file_metadata(file: dict[str, Any]) -> dict[str, Any]:
    """Detailed view of a processed file for add_file responses."""
    video_info = file.get("video_info")
    if video_info:
        video = {
            "duration_seconds": video_info.get("duration_seconds"),
            "duration_formatted": format_duration(video_info.get("duration_seconds")),
            "has_audio": video_info.get("has_audio"),
            "width": video_info.get("width"),
            "height": video_info.get("height"),
            "fps": video_info.get("fps"),
            "bitrate": video_info.get("bitrate"),
            "codec": video_info.get("codec"),
        }
    else:
        video = None
    return {
        "filename": file.get("filename"),
        "uri": file.get("uri"),
        "status": file.get("status"),
        "created_at": file.get("created_at"),
        "updated_at": file.get("updated_at"),
        "file_size": file.get("file_size"),
        "mime_type": file.get("mime_type"),
        "metadata": file.get("metadata") or {},
        "video_info": video,
        "processing_info": {
            "upload_completed_at": file.get("upload_completed_at"),
            "processing_started_at": file.get("processing_started_at"),
            "processing_completed_at": file.get("processing_completed_at"),
        },
    }


def _local_file_error(e: LocalFileError, local_file_path: str, working_dir: Path) -> dict[str, Any]:
    payload = error_payload(
        e,
        resolved_path=str(e.path),
        working_dir=str(working_dir),
        original_path=local_file_path,
    )
    if e.reason == "not_found":
        total, names = list_directory_files(working_dir, DIRECTORY_LISTING_CAP)
        payload["directory_info"] = {
            "total_files_with_extensions": total,
            "first_50_files": names,
            "showing_count": len(names),
        }
    return payload


async def _upload(client: CloudglueClient, local: LocalFile) -> dict[str, Any]:
    response = await client.upload_file(
        local.path, mime_type=local.mime_type, metadata=local.upload_metadata()
    )
    # Upload responses may wrap the file object in "data"
    uploaded = response.get("data") if isinstance(response.get("data"), dict) else response
    if not uploaded.get("id"):
        raise CloudglueAPIError(f"Unexpected upload response format: {response}")
    logger.info(f"Uploaded {local.filename} as {uploaded['id']}, waiting for processing")
    return await client.wait_for_file(uploaded["id"])


async def add_file(
    client: CloudglueClient,
    working_dir: Path,
    local_file_path: str | None = None,
    file_id: str | None = None,
    collection_id: str | None = None,
) -> dict[str, Any]:
    """Upload a local file (or take an existing one) and optionally add it
    to a collection, waiting for each processing step.

    Exactly one of local_file_path and file_id must be given.

    Args:
        client: Cloudglue API client.
        working_dir: Directory relative local paths resolve against.
        local_file_path: File to upload.
        file_id: Already uploaded file to use instead.
        collection_id: Collection to add the file to.
    """
    context = {
        "local_file_path": local_file_path,
        "file_id": file_id,
        "collection_id": collection_id,
    }
    if not local_file_path and not file_id:
        return error_payload("Must provide either local_file_path or file_id", **context)
    if local_file_path and file_id:
        return error_payload(
            "Cannot provide both local_file_path and file_id - choose one", **context
        )

    local = None
    if local_file_path:
        try:
            local = LocalFile.parse(local_file_path, working_dir)
        except LocalFileError as e:
            return _local_file_error(e, local_file_path, working_dir)

    try:
        if local is not None:
            file = await _upload(client, local)
        else:
            file = await client.get_file(file_id)
        final_id = file.get("id") or file_id

        collection_info = None
        if collection_id:
            added = await client.add_video(collection_id, final_id)
            await client.wait_for_video(collection_id, added.get("file_id", final_id))
            video = await client.get_video(collection_id, added.get("file_id", final_id))
            collection_info = {
                "collection_id": collection_id,
                "added_at": video.get("added_at"),
                "status": video.get("status"),
            }
    except Exception as e:
        logger.warning(f"add_file failed: {e}")
        return error_payload(
            f"Failed to process file: {error_message(e)}",
            working_dir=str(working_dir),
            **context,
        )

    result = {
        "operation": "file_uploaded_and_processed" if local else "existing_file_processed",
        "file_uri": file.get("uri") or file_url(final_id),
        "file_id": final_id,
        "file_metadata": file_metadata(file),
        "collection_info": collection_info,
    }
    if local is not None:
        result["upload_info"] = {
            "original_path": local_file_path,
            "resolved_path": str(local.path),
            "working_dir": str(working_dir),
        }
    return result
