"""Pydantic request/response schemas for the scrape HTTP API.

Request bodies accept camelCase keys (``waitForSelector``, ``fullExtract``)
as well as snake_case.  Optional fields left unset fall back to the values
in :class:`~webharvest.config.settings.Settings`.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from webharvest.scraper.models import Job, ScrapeMode, ScrapeResult


class _CamelSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScrapeRequest(_CamelSchema):
    """Payload for scraping a single URL.

    Attributes:
        url: Target URL.
        selectors: Field name → CSS selector.  When empty or omitted the
            page is scraped with full-page extraction.
        mode: ``static``, ``dynamic`` or ``auto``.
        timeout: Fetch timeout in milliseconds.
        wait_for_selector: Selector the browser waits for (dynamic only).
        proxy: Optional proxy URL.
        full_extract: Force full-page extraction even if selectors are given.
    """

    url: str = Field(min_length=1)
    selectors: dict[str, str] = Field(default_factory=dict)
    mode: Optional[ScrapeMode] = None
    timeout: Optional[int] = Field(default=None, gt=0)
    wait_for_selector: Optional[str] = None
    proxy: Optional[str] = None
    full_extract: bool = False


class BulkScrapeRequest(_CamelSchema):
    """Payload for submitting a bulk job.

    Attributes:
        urls: URLs to scrape.
        selectors: Field name → CSS selector applied to every URL.
        mode: ``static``, ``dynamic`` or ``auto``.
        concurrency: Parallel scrape units.
        delay: Pacing delay in milliseconds between queued units.
        timeout: Per-fetch timeout in milliseconds.
        proxy: Optional proxy URL applied to every URL.
    """

    urls: list[str] = Field(min_length=1)
    selectors: dict[str, str] = Field(default_factory=lambda: {"title": "title"})
    mode: Optional[ScrapeMode] = None
    concurrency: Optional[int] = Field(default=None, ge=1)
    delay: Optional[int] = Field(default=None, ge=0)
    timeout: Optional[int] = Field(default=None, gt=0)
    proxy: Optional[str] = None


class ScrapeResponse(_CamelSchema):
    success: bool = True
    result: ScrapeResult


class JobSubmittedResponse(_CamelSchema):
    success: bool = True
    job_id: str
    message: str = "Scraping job started"
    check_status_at: str


class JobResponse(_CamelSchema):
    success: bool = True
    job: Job


class JobListResponse(_CamelSchema):
    success: bool = True
    jobs: list[Job]


class JobsClearedResponse(_CamelSchema):
    success: bool = True
    cleared: int
