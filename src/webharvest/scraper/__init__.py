"""Scrape orchestration engine.

Sub-modules:
- ``config``             — constants (headers, stealth script, extraction limits)
- ``models``             — ScrapeConfig, ScrapeResult, Job and their enums
- ``content_extractor``  — BeautifulSoup selector and full-page extraction
- ``http_fetcher``       — static fetch via httpx
- ``playwright_fetcher`` — rendered fetch via headless Chromium
- ``orchestrator``       — mode dispatch and static → dynamic fallback
- ``job_store``          — JobStore interface and in-memory implementation
- ``queue``              — bounded-concurrency bulk job queue
- ``export``             — JSON / CSV export of results
- ``router``             — FastAPI router (``/scrape``)
"""

from webharvest.scraper.content_extractor import extract_by_selectors, extract_full_page
from webharvest.scraper.job_store import InMemoryJobStore, JobStore
from webharvest.scraper.models import (
    Job,
    JobStatus,
    QueueConfig,
    ScrapeConfig,
    ScrapeMode,
    ScrapeResult,
)
from webharvest.scraper.orchestrator import scrape, scrape_with_full_extraction
from webharvest.scraper.queue import JobQueue

__all__ = [
    "InMemoryJobStore",
    "Job",
    "JobQueue",
    "JobStatus",
    "JobStore",
    "QueueConfig",
    "ScrapeConfig",
    "ScrapeMode",
    "ScrapeResult",
    "extract_by_selectors",
    "extract_full_page",
    "scrape",
    "scrape_with_full_extraction",
]
