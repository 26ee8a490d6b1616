"""FastAPI router for the scrape engine.

A thin HTTP layer over :mod:`webharvest.scraper.orchestrator` and
:class:`~webharvest.scraper.queue.JobQueue`.

Routes:
    POST   /scrape                — scrape one URL synchronously
    POST   /scrape/jobs           — submit a bulk job (fire-and-forget)
    GET    /scrape/jobs           — list jobs, newest first
    DELETE /scrape/jobs           — delete all completed/failed jobs
    GET    /scrape/jobs/{job_id}  — job detail, or export with ?format=json|csv
    DELETE /scrape/jobs/{job_id}  — delete one job

``JobNotFoundError`` and ``ScrapeConfigError`` raised here are mapped to
404 and 422 by the handlers registered in ``api/main.py``.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from webharvest.api.dependencies import get_app_settings, get_job_queue
from webharvest.config.settings import Settings
from webharvest.core.exceptions import JobNotFoundError, ScrapeConfigError
from webharvest.core.schemas.scraping import (
    BulkScrapeRequest,
    JobListResponse,
    JobResponse,
    JobsClearedResponse,
    JobSubmittedResponse,
    ScrapeRequest,
    ScrapeResponse,
)
from webharvest.scraper.export import to_csv, to_json
from webharvest.scraper.models import Job, JobStatus, QueueConfig, ScrapeConfig
from webharvest.scraper.orchestrator import scrape, scrape_with_full_extraction
from webharvest.scraper.queue import JobQueue

logger = structlog.get_logger(__name__)

router = APIRouter()

_EXPORT_MEDIA_TYPES: dict[str, str] = {
    "json": "application/json",
    "csv": "text/csv",
}


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------


def _get_job_or_raise(queue: JobQueue, job_id: str) -> Job:
    job = queue.get_job(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return job


# ---------------------------------------------------------------------------
# Single URL
# ---------------------------------------------------------------------------


@router.post("", response_model=ScrapeResponse)
async def scrape_single_url(
    payload: ScrapeRequest,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ScrapeResponse:
    """Scrape one URL and return its result.

    Uses full-page extraction when ``fullExtract`` is set or no selectors
    are given; otherwise selector extraction with the requested mode.
    """
    config = ScrapeConfig(
        url=payload.url,
        field_selectors=payload.selectors,
        mode=payload.mode or settings.default_scrape_mode,
        timeout_ms=payload.timeout or settings.default_timeout_ms,
        wait_for_selector=payload.wait_for_selector,
        proxy=payload.proxy,
    )
    full_extract = payload.full_extract or not payload.selectors

    if full_extract:
        result = await scrape_with_full_extraction(config)
    else:
        result = await scrape(config)

    logger.info(
        "scrape_completed",
        url=config.url,
        success=result.success,
        mode=result.mode.value,
        full_extract=full_extract,
    )
    return ScrapeResponse(result=result)


# ---------------------------------------------------------------------------
# Bulk jobs
# ---------------------------------------------------------------------------


@router.post("/jobs", response_model=JobSubmittedResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_bulk_job(
    payload: BulkScrapeRequest,
    queue: Annotated[JobQueue, Depends(get_job_queue)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> JobSubmittedResponse:
    """Submit a bulk job and return its id immediately.

    Raises:
        ScrapeConfigError: If the URL count or concurrency exceeds the
            configured maximum.
    """
    if len(payload.urls) > settings.max_urls_per_job:
        raise ScrapeConfigError(
            f"At most {settings.max_urls_per_job} URLs are accepted per job "
            f"(got {len(payload.urls)})."
        )
    concurrency = payload.concurrency or settings.default_concurrency
    if concurrency > settings.max_concurrency:
        raise ScrapeConfigError(
            f"concurrency must not exceed {settings.max_concurrency} (got {concurrency})."
        )

    queue_config = QueueConfig(
        concurrency=concurrency,
        delay_ms=payload.delay if payload.delay is not None else settings.default_delay_ms,
        timeout_ms=payload.timeout or settings.default_timeout_ms,
        proxy=payload.proxy,
    )
    job_id = queue.submit(
        payload.urls,
        payload.selectors,
        payload.mode or settings.default_scrape_mode,
        queue_config,
    )

    logger.info(
        "scrape_job_submitted",
        job_id=job_id,
        total_urls=len(payload.urls),
        concurrency=queue_config.concurrency,
    )
    return JobSubmittedResponse(job_id=job_id, check_status_at=f"/scrape/jobs/{job_id}")


@router.get("/jobs", response_model=JobListResponse)
async def list_jobs(
    queue: Annotated[JobQueue, Depends(get_job_queue)],
) -> JobListResponse:
    """List every job, newest first."""
    return JobListResponse(jobs=queue.list_jobs())


@router.delete("/jobs", response_model=JobsClearedResponse)
async def clear_completed_jobs(
    queue: Annotated[JobQueue, Depends(get_job_queue)],
) -> JobsClearedResponse:
    """Delete all jobs in a terminal state."""
    cleared = queue.clear_completed()
    logger.info("scrape_jobs_cleared", cleared=cleared)
    return JobsClearedResponse(cleared=cleared)


@router.get("/jobs/{job_id}", response_model=None)
async def get_job(
    job_id: str,
    queue: Annotated[JobQueue, Depends(get_job_queue)],
    format: Optional[Literal["json", "csv"]] = None,  # noqa: A002
) -> JobResponse | Response:
    """Return job progress, or download its results with ``?format=``.

    Raises:
        JobNotFoundError: If the job does not exist.
        HTTPException 409: If an export is requested before the job completed.
    """
    job = _get_job_or_raise(queue, job_id)
    if format is None:
        return JobResponse(job=job)

    if job.status is not JobStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot export a job with status '{job.status.value}'.",
        )

    body = to_csv(job.results) if format == "csv" else to_json(job.results)
    return Response(
        content=body,
        media_type=_EXPORT_MEDIA_TYPES[format],
        headers={"Content-Disposition": f'attachment; filename="scrape-{job_id}.{format}"'},
    )


@router.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_job(
    job_id: str,
    queue: Annotated[JobQueue, Depends(get_job_queue)],
) -> None:
    """Delete one job.

    Raises:
        JobNotFoundError: If the job does not exist.
    """
    if not queue.delete_job(job_id):
        raise JobNotFoundError(job_id)
    logger.info("scrape_job_deleted", job_id=job_id)
