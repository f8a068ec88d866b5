"""
Custom exceptions for cloudglue-mcp.

All cloudglue-mcp exceptions inherit from CloudglueMcpError for easy catching.
"""

from __future__ import annotations

from typing import Any


class CloudglueMcpError(Exception):
    """Base exception for all cloudglue-mcp errors."""

    pass


class ConfigError(CloudglueMcpError):
    """Invalid or incomplete configuration (missing API key, bad values)."""

    pass


class CloudglueAPIError(CloudglueMcpError):
    """Error response from the Cloudglue REST API.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status code, if a response was received
        method: HTTP method of the failed request
        path: Request path relative to the API base URL
        body: Raw response body (truncated) for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        method: str = "",
        path: str = "",
        body: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.method = method
        self.path = path
        self.body = body

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a structured dict for MCP error responses."""
        result: dict[str, Any] = {
            "type": self.__class__.__name__,
            "message": self.message,
        }
        if self.status_code is not None:
            result["status_code"] = self.status_code
        if self.path:
            result["request"] = f"{self.method} {self.path}".strip()
        return result


class JobFailedError(CloudglueMcpError):
    """A remote job reached a terminal state other than completed."""

    def __init__(self, job_id: str | None, status: str, error: str | None = None):
        self.job_id = job_id
        self.status = status
        self.error = error
        msg = f"Job {job_id or '?'} ended with status '{status}'"
        if error:
            msg += f": {error}"
        super().__init__(msg)


class InputValidationError(CloudglueMcpError):
    """Tool arguments rejected before any remote call was made."""

    pass


class SourceExtractionError(CloudglueMcpError):
    """Failed to expand a YouTube playlist or channel into video URLs."""

    pass


def error_message(exc: BaseException) -> str:
    """Message used when embedding an exception in a tool response."""
    return str(exc) or "Unknown error"
