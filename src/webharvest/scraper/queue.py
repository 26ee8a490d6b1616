"""Bulk job queue: bounded concurrency, pacing, progress tracking.

``JobQueue.submit`` registers a ``pending`` job and spawns one asyncio task
that owns the job's processing.  Inside that task:

- one ``asyncio.TaskGroup`` owns the scrape units, and an
  ``asyncio.Semaphore(concurrency)`` bounds how many run at once;
- every unit except the first sleeps ``delay_ms`` once it holds a slot
  (global pacing, applied regardless of how many hosts are involved);
- each unit calls the orchestrator and folds its ``ScrapeResult`` into the
  job through ``JobStore.update``, which serialises concurrent completions.

A single URL failure is just a failed result; the job still completes.  The
job is marked ``failed`` only when a unit raises (the remaining units are
cancelled) or the processing task is cancelled.  Either way the terminal
transition happens exactly once, and a terminal job takes no more results.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from functools import partial

from webharvest.core.exceptions import ScrapeConfigError
from webharvest.scraper.job_store import InMemoryJobStore, JobStore
from webharvest.scraper.models import (
    Job,
    JobStatus,
    QueueConfig,
    ScrapeConfig,
    ScrapeMode,
    ScrapeResult,
    utcnow,
)
from webharvest.scraper.orchestrator import scrape

logger = logging.getLogger(__name__)

ScrapeFn = Callable[[ScrapeConfig], Awaitable[ScrapeResult]]


# ---------------------------------------------------------------------------
# Job mutators (run under the store's lock)
# ---------------------------------------------------------------------------


def _mark_running(job: Job) -> None:
    if job.status is JobStatus.PENDING:
        job.status = JobStatus.RUNNING
        job.updated_at = utcnow()


def _record_result(job: Job, *, result: ScrapeResult) -> None:
    if job.status.is_terminal:
        return
    job.results.append(result)
    job.completed_urls = len(job.results)
    job.updated_at = utcnow()


def _mark_terminal(job: Job, *, status: JobStatus, error: str | None = None) -> None:
    if job.status.is_terminal:
        return
    job.status = status
    job.error = error
    job.updated_at = utcnow()


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


class JobQueue:
    """In-process bulk scrape queue.

    Args:
        store: Job storage backend.  Defaults to :class:`InMemoryJobStore`.
        scrape_fn: Coroutine function scraping one URL.  Defaults to
            :func:`webharvest.scraper.orchestrator.scrape`.
    """

    def __init__(
        self,
        store: JobStore | None = None,
        *,
        scrape_fn: ScrapeFn | None = None,
    ) -> None:
        self._store = store if store is not None else InMemoryJobStore()
        self._scrape_fn = scrape_fn if scrape_fn is not None else scrape
        self._tasks: dict[str, asyncio.Task[None]] = {}

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(
        self,
        urls: list[str],
        field_selectors: dict[str, str],
        mode: ScrapeMode,
        queue_config: QueueConfig | None = None,
    ) -> str:
        """Register a job and start processing it in the background.

        Must be called from within a running event loop.  Returns as soon as
        the job is stored; poll :meth:`get_job` for progress.

        Raises:
            ScrapeConfigError: If ``urls`` is empty.
        """
        if not urls:
            raise ScrapeConfigError("At least one URL is required")
        queue_config = queue_config or QueueConfig()

        job = Job(id=uuid.uuid4().hex, total_urls=len(urls))
        self._store.put(job)

        task = asyncio.get_running_loop().create_task(
            self._process(job.id, list(urls), dict(field_selectors), mode, queue_config),
            name=f"scrape-job-{job.id}",
        )
        self._tasks[job.id] = task
        task.add_done_callback(lambda _t, job_id=job.id: self._tasks.pop(job_id, None))

        logger.info(
            "scraper: job %s submitted (%d URLs, mode=%s, concurrency=%d, delay_ms=%d)",
            job.id,
            len(urls),
            mode.value,
            queue_config.concurrency,
            queue_config.delay_ms,
        )
        return job.id

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    async def _process(
        self,
        job_id: str,
        urls: list[str],
        field_selectors: dict[str, str],
        mode: ScrapeMode,
        queue_config: QueueConfig,
    ) -> None:
        semaphore = asyncio.Semaphore(queue_config.concurrency)

        async def run_unit(index: int, url: str) -> None:
            async with semaphore:
                self._store.update(job_id, _mark_running)
                if index > 0 and queue_config.delay_ms > 0:
                    await asyncio.sleep(queue_config.delay_ms / 1000)
                config = ScrapeConfig(
                    url=url,
                    field_selectors=field_selectors,
                    mode=mode,
                    timeout_ms=queue_config.timeout_ms,
                    proxy=queue_config.proxy,
                )
                result = await self._scrape_fn(config)
                self._store.update(job_id, partial(_record_result, result=result))

        try:
            async with asyncio.TaskGroup() as units:
                for index, url in enumerate(urls):
                    units.create_task(run_unit(index, url))
        except asyncio.CancelledError:
            logger.warning("scraper: job %s cancelled", job_id)
            self._store.update(
                job_id, partial(_mark_terminal, status=JobStatus.FAILED, error="cancelled")
            )
            raise
        except ExceptionGroup as group:
            # The task group has already cancelled and awaited the sibling units.
            cause = group.exceptions[0]
            logger.error("scraper: job %s failed", job_id, exc_info=cause)
            self._store.update(
                job_id, partial(_mark_terminal, status=JobStatus.FAILED, error=str(cause))
            )
            return

        self._store.update(job_id, partial(_mark_terminal, status=JobStatus.COMPLETED))
        logger.info("scraper: job %s completed (%d URLs)", job_id, len(urls))

    async def wait(self, job_id: str) -> Job | None:
        """Wait until the job's processing task finishes; return the job."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})
        return self._store.get(job_id)

    async def shutdown(self) -> None:
        """Cancel every outstanding job task and wait for them to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Registry accessors
    # ------------------------------------------------------------------

    def get_job(self, job_id: str) -> Job | None:
        return self._store.get(job_id)

    def list_jobs(self) -> list[Job]:
        """Return every job, newest first."""
        return sorted(self._store.list(), key=lambda job: job.created_at, reverse=True)

    def delete_job(self, job_id: str) -> bool:
        """Delete a job by id.  Returns ``False`` for unknown ids.

        A job deleted while running keeps processing; its further updates
        are discarded.
        """
        return self._store.delete(job_id)

    def clear_completed(self) -> int:
        """Delete every job in a terminal state; return how many were removed."""
        return self._store.delete_where(lambda job: job.status.is_terminal)
