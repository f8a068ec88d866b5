"""
LocalFile Pydantic model for files uploaded from the local machine.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, Field

from cloudglue_mcp.exceptions import CloudglueMcpError
from cloudglue_mcp.utils.formatting import format_file_size

# Content types sent with uploads, keyed by lowercase extension
MIME_TYPES = {
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


class LocalFileError(CloudglueMcpError):
    """Error when resolving a local file for upload.

    Attributes:
        reason: "not_found", "permission_denied" or "not_a_file"
        path: The resolved path that failed
    """

    def __init__(self, message: str, reason: str, path: Path):
        super().__init__(message)
        self.reason = reason
        self.path = path


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(Path(filename).suffix.lower(), DEFAULT_MIME_TYPE)


def resolve_path(input_str: str, working_dir: Path) -> Path:
    """Resolve a user-supplied path against the working directory.

    Accepts absolute paths, paths relative to working_dir, ~ paths and
    file:// URIs.
    """
    path_str = input_str.strip()
    if path_str.startswith("file://"):
        path_str = unquote(path_str[7:])
        if path_str.startswith("localhost"):
            path_str = path_str[9:]
    path = Path(path_str).expanduser()
    if not path.is_absolute():
        path = working_dir / path
    return path


def list_directory_files(directory: Path, cap: int) -> tuple[int, list[str]]:
    """(count, first cap names) of files with an extension in directory.

    Unreadable directories yield (0, []).
    """
    try:
        names = sorted(
            entry.name
            for entry in directory.iterdir()
            if entry.is_file() and "." in entry.name
        )
    except OSError:
        return 0, []
    return len(names), names[:cap]


class LocalFile(BaseModel):
    """Validated local file ready for upload."""

    path: Path = Field(..., description="Resolved absolute path to the file")
    original_input: str = Field(..., description="Path as given by the caller")
    working_dir: Path = Field(..., description="Directory relative paths resolve against")
    mime_type: str = Field(..., description="Content type sent with the upload")
    size: int = Field(..., description="File size in bytes")

    model_config = {"arbitrary_types_allowed": True}

    @classmethod
    def parse(cls, input_str: str, working_dir: Path) -> LocalFile:
        """Resolve and validate a local file.

        Raises:
            LocalFileError: If the file is missing, unreadable or not a
                regular file.
        """
        path = resolve_path(input_str, working_dir)

        if not path.exists():
            raise LocalFileError(f"File not found: {path}", "not_found", path)
        if not os.access(path, os.R_OK):
            raise LocalFileError(
                f"Permission denied: Cannot read file {path}", "permission_denied", path
            )
        if not path.is_file():
            raise LocalFileError(f"Not a file: {path}", "not_a_file", path)

        return cls(
            path=path,
            original_input=input_str,
            working_dir=working_dir,
            mime_type=mime_type_for(path.name),
            size=path.stat().st_size,
        )

    @property
    def filename(self) -> str:
        return self.path.name

    def upload_metadata(self) -> dict[str, Any]:
        """Metadata stored with the uploaded file."""
        return {
            "source": "mcp_local_upload",
            "original_path": str(self.path),
            "working_dir": str(self.working_dir),
            "mime_type": self.mime_type,
            "file_size": self.size,
            "file_size_formatted": format_file_size(self.size),
        }

    def __str__(self) -> str:
        return str(self.path)
