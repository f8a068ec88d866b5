"""
Job polling: drive an asynchronous remote job to a terminal state.

A job is any JSON object with a ``status`` field. While the status is
``pending`` or ``processing`` the poller sleeps a fixed interval and
re-fetches; every other status is terminal. There is no backoff growth and
no jitter. By default there is no ceiling either, so a job stuck in
``processing`` is polled until the remote gives up. A ceiling can be set
with ``max_attempts`` (status fetches) and/or ``timeout`` (seconds); when it
is hit the poller returns the last snapshot with status ``failed-timeout``.

Transport and API errors raised by ``fetch`` propagate unchanged. Only
"not done yet" is retried.

Example:
    >>> poller = JobPoller(interval=5.0)
    >>> job = await poller.wait(lambda: client.get_job("describe", job_id), initial)
    >>> if job["status"] == "completed":
    ...     print(job["data"]["content"])
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from cloudglue_mcp.config.defaults import POLL_INTERVAL
from cloudglue_mcp.exceptions import JobFailedError

if TYPE_CHECKING:
    from cloudglue_mcp.config.loader import CloudglueConfig

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = frozenset({"pending", "processing"})
COMPLETED = "completed"
TIMEOUT_STATUS = "failed-timeout"

Fetch = Callable[[], Awaitable[dict[str, Any]]]


def is_active(job: dict[str, Any]) -> bool:
    """True while the job is still pending or processing."""
    return job.get("status") in ACTIVE_STATUSES


def is_completed(job: dict[str, Any]) -> bool:
    return job.get("status") == COMPLETED


def job_id_of(job: dict[str, Any]) -> str | None:
    """Identity of a job-like object (jobs use job_id, files use id)."""
    return job.get("job_id") or job.get("file_id") or job.get("id")


def failure_message(job: dict[str, Any], action: str) -> str:
    """Describe a non-completed terminal job, keeping the remote error text."""
    status = job.get("status", "unknown")
    msg = f"Failed to {action} - job did not complete successfully (status: {status})"
    remote_error = job.get("error")
    if remote_error:
        if isinstance(remote_error, dict):
            remote_error = remote_error.get("message") or str(remote_error)
        msg += f": {remote_error}"
    return msg


def ensure_completed(job: dict[str, Any]) -> dict[str, Any]:
    """Return the job if completed, else raise JobFailedError."""
    if not is_completed(job):
        raise JobFailedError(job_id_of(job), job.get("status", "unknown"), job.get("error"))
    return job


class JobPoller:
    """Fixed-interval poller with an optional attempt/deadline ceiling.

    Args:
        interval: Seconds to sleep between status fetches.
        max_attempts: Maximum number of status fetches. None means unbounded.
        timeout: Maximum seconds spent waiting. None means unbounded.
        sleep: Coroutine used to wait between polls (injectable for tests).
        clock: Monotonic clock used for the timeout.
    """

    def __init__(
        self,
        interval: float = POLL_INTERVAL,
        *,
        max_attempts: int | None = None,
        timeout: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval < 0:
            raise ValueError("interval must be >= 0")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.interval = interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_config(cls, config: CloudglueConfig) -> JobPoller:
        return cls(
            config.poll_interval,
            max_attempts=config.max_poll_attempts,
            timeout=config.poll_timeout,
        )

    def _ceiling_reached(self, attempts: int, started: float) -> bool:
        if self.max_attempts is not None and attempts >= self.max_attempts:
            return True
        if self.timeout is not None and self._clock() - started >= self.timeout:
            return True
        return False

    def _timed_out(self, job: dict[str, Any], attempts: int, started: float) -> dict[str, Any]:
        waited = self._clock() - started
        logger.warning(
            f"Giving up on {job_id_of(job) or 'job'} after {attempts} status "
            f"fetches ({waited:.1f}s); last status {job.get('status')!r}"
        )
        timed_out = dict(job)
        timed_out["status"] = TIMEOUT_STATUS
        timed_out["error"] = (
            f"Polling stopped after {attempts} status checks ({waited:.0f}s) "
            f"while job was still {job.get('status')}"
        )
        return timed_out

    async def wait(
        self,
        fetch: Fetch,
        initial: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Poll until the job leaves pending/processing.

        Args:
            fetch: Zero-argument coroutine returning the job's current state.
            initial: Snapshot already in hand (e.g. the submit response).
                When omitted the first fetch happens immediately.

        Returns:
            The job in its terminal state.
        """
        started = self._clock()
        attempts = 0
        job = initial
        if job is None:
            job = await fetch()
            attempts += 1

        while is_active(job):
            if self._ceiling_reached(attempts, started):
                return self._timed_out(job, attempts, started)
            await self._sleep(self.interval)
            job = await fetch()
            attempts += 1
            logger.debug(
                f"Poll {attempts} for {job_id_of(job) or 'job'}: {job.get('status')}"
            )

        return job
