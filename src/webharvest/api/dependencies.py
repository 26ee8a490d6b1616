"""FastAPI dependency injection providers.

The :class:`~webharvest.scraper.queue.JobQueue` is created by the
application lifespan (the composition root) and stored on ``app.state``;
route handlers receive it through :func:`get_job_queue`.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from webharvest.config.settings import Settings, get_settings
from webharvest.scraper.queue import JobQueue


def get_job_queue(request: Request) -> JobQueue:
    """Return the application's job queue.

    Raises:
        HTTPException 503: If the lifespan has not initialised the queue.
    """
    queue = getattr(request.app.state, "job_queue", None)
    if queue is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Job queue is not available.",
        )
    return queue


def get_app_settings() -> Settings:
    """Return the cached settings (overridable in tests)."""
    return get_settings()
