"""Render job status polling.

A JobPoller checks a job's status at a fixed interval in its own asyncio
task. The loop ends when:
  - the service reports "completed"        -> returns the final JobStatus
  - the service reports "failed"           -> JobFailedError(local=False)
  - max_failures status checks fail in a row -> JobFailedError(local=True)
  - max_attempts checks pass without a terminal status -> JobFailedError(local=True)
  - cancel() is called                     -> asyncio.CancelledError

A failed check (network error, 5xx, garbled body) is logged and retried on
the next tick; a successful check resets the consecutive-failure count.
Several pollers may run at once for the same session; the service owns
deduplication.
"""

import asyncio
import logging
from typing import Callable

from .composition import CompositionRequest
from .errors import JobFailedError, ServiceError
from .render_client import JobStatus, RenderClient

logger = logging.getLogger(__name__)


class JobPoller:
    """Cancellable fixed-interval status loop for one render job.

    Args:
        client: Connected RenderClient.
        job_id: Job to watch.
        interval_s: Seconds between checks. Defaults to the client config.
        max_failures: Consecutive failed checks tolerated. Defaults to config.
        max_attempts: Overall cap on checks, or None for no cap.
        on_update: Called with every successfully fetched JobStatus.
        sleep: Awaitable sleep, replaceable in tests.
    """

    def __init__(
        self,
        client: RenderClient,
        job_id: str,
        *,
        interval_s: float | None = None,
        max_failures: int | None = None,
        max_attempts: int | None = None,
        on_update: Callable[[JobStatus], None] | None = None,
        sleep=asyncio.sleep,
    ):
        cfg = client.config
        self.client = client
        self.job_id = job_id
        self.interval_s = cfg.poll_interval_s if interval_s is None else interval_s
        self.max_failures = cfg.max_poll_failures if max_failures is None else max_failures
        self.max_attempts = cfg.max_poll_attempts if max_attempts is None else max_attempts
        self.on_update = on_update
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._cancelled = False
        self.attempts = 0
        self.last_status: JobStatus | None = None

    # ── Task control ──────────────────────────────────────────────

    def start(self) -> asyncio.Task:
        """Schedule the loop on the running event loop. Idempotent."""
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name=f"poll-{self.job_id}")
        return self._task

    def cancel(self) -> None:
        """Stop polling. Safe to call before start, after finish, or twice."""
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def wait(self) -> JobStatus:
        """Start if needed and wait for the terminal status."""
        return await self.start()

    # ── Loop ──────────────────────────────────────────────────────

    async def run(self) -> JobStatus:
        failures = 0
        while True:
            if self._cancelled:
                raise asyncio.CancelledError()

            self.attempts += 1
            try:
                status = await self.client.get_status(self.job_id)
            except ServiceError as e:
                failures += 1
                logger.warning(
                    "Status check %d for job %s failed (%d/%d): %s",
                    self.attempts, self.job_id, failures, self.max_failures, e,
                )
                if failures >= self.max_failures:
                    raise JobFailedError(
                        self.job_id,
                        f"gave up after {failures} consecutive failed status checks",
                        local=True,
                    ) from e
            else:
                failures = 0
                self.last_status = status
                logger.debug(
                    "Job %s: %s (%s%%)", self.job_id, status.status,
                    "?" if status.progress is None else f"{status.progress:.0f}",
                )
                if self.on_update is not None:
                    self.on_update(status)
                if status.is_completed:
                    logger.info("Job %s completed: %s", self.job_id, status.output_video_url)
                    return status
                if status.is_failed:
                    raise JobFailedError(
                        self.job_id, status.error_message or "Composition failed",
                    )

            if self.max_attempts is not None and self.attempts >= self.max_attempts:
                raise JobFailedError(
                    self.job_id,
                    f"no terminal status after {self.attempts} checks",
                    local=True,
                )
            await self._sleep(self.interval_s)


async def submit_and_poll(
    client: RenderClient,
    request: CompositionRequest,
    **poller_kwargs,
) -> JobStatus:
    """Submit a request and wait for the job to finish.

    If the submission response already carries an output URL, no polling
    happens.

    Raises:
        SubmissionError: the service rejected the request.
        JobFailedError: the job failed or polling gave up.
    """
    job = await client.submit(request)
    if job.output_video_url and job.status == "completed":
        return JobStatus(status="completed", progress=100, output_video_url=job.output_video_url)
    poller = JobPoller(client, job.job_id, **poller_kwargs)
    try:
        return await poller.wait()
    finally:
        poller.cancel()
