"""FastAPI application factory and entry point.

The lifespan handler is the composition root: it builds the
:class:`~webharvest.scraper.queue.JobQueue` (over an in-memory store),
stores it on ``app.state`` and shuts it down on exit, which marks any job
still in flight as ``failed``.

Usage::

    uvicorn webharvest.api.main:app --reload
"""

from __future__ import annotations

import time
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from webharvest import __version__
from webharvest.config.settings import Settings, get_settings
from webharvest.core.exceptions import JobNotFoundError, ScrapeConfigError, WebHarvestError
from webharvest.core.logging_config import configure_logging, request_id_var
from webharvest.scraper.job_store import InMemoryJobStore
from webharvest.scraper.queue import JobQueue

logger = structlog.get_logger(__name__)

#: HTTP status per domain exception.  Most specific class first.
_ERROR_STATUS: tuple[tuple[type[WebHarvestError], int], ...] = (
    (JobNotFoundError, status.HTTP_404_NOT_FOUND),
    (ScrapeConfigError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (WebHarvestError, status.HTTP_400_BAD_REQUEST),
)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    queue = JobQueue(InMemoryJobStore())
    application.state.job_queue = queue
    logger.info("application_startup", app_name=settings.app_name, log_level=settings.log_level)
    try:
        yield
    finally:
        await queue.shutdown()
        logger.info("application_shutdown")


# ---------------------------------------------------------------------------
# Wiring helpers
# ---------------------------------------------------------------------------


async def _log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Tag the request with an id, then log its outcome and latency.

    The id is bound to the structlog context and to ``request_id_var`` (for
    stdlib records), and echoed back in the ``X-Request-ID`` header.
    """
    request_id = uuid.uuid4().hex
    request_id_var.set(request_id)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id, method=request.method, path=request.url.path
    )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("request_failed", elapsed_ms=_elapsed_ms(started))
        raise

    level = "warning" if response.status_code >= 400 else "info"
    getattr(logger, level)(
        "request_complete", status_code=response.status_code, elapsed_ms=_elapsed_ms(started)
    )
    response.headers["X-Request-ID"] = request_id
    return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


async def _domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a :class:`WebHarvestError` as ``{"success": false, "error": ...}``."""
    status_code = next(
        (code for exc_type, code in _ERROR_STATUS if isinstance(exc, exc_type)),
        status.HTTP_400_BAD_REQUEST,
    )
    return JSONResponse(status_code=status_code, content={"success": False, "error": str(exc)})


def _configure_middleware(application: FastAPI, settings: Settings) -> None:
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )
    application.middleware("http")(_log_requests)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build the FastAPI application.

    Kept separate from the module-level ``app`` so tests can build fresh
    instances after adjusting the environment.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Structured data extraction from arbitrary web pages.",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    _configure_middleware(application, settings)

    for exc_type, _ in _ERROR_STATUS:
        application.add_exception_handler(exc_type, _domain_error_handler)

    from webharvest.scraper.router import router as scrape_router  # noqa: PLC0415

    application.include_router(scrape_router, prefix="/scrape", tags=["scrape"])

    @application.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        """Liveness check."""
        return {"status": "ok"}

    return application


app = create_app()
"""The FastAPI application instance passed to Uvicorn."""
