"""Domain records for scrapes and bulk jobs.

All records are pydantic models.  Python code uses snake_case attributes;
JSON output uses camelCase keys through aliases, e.g.::

    job.model_dump(mode="json", by_alias=True)
    # {"id": ..., "totalUrls": 5, "completedUrls": 2, "results": [...], ...}
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

FieldValue = Union[str, list[str]]
"""An extracted field: a scalar string or a list of strings."""


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


class ScrapeMode(str, Enum):
    """Page-acquisition strategy.

    ``AUTO`` is only ever requested; a ``ScrapeResult`` always records the
    concrete strategy (``STATIC`` or ``DYNAMIC``) that produced its data.
    """

    STATIC = "static"
    DYNAMIC = "dynamic"
    AUTO = "auto"


class JobStatus(str, Enum):
    """Lifecycle state of a bulk job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScrapeConfig(_CamelModel):
    """Immutable per-invocation scrape configuration.

    Attributes:
        url: Target URL.
        field_selectors: Field name → CSS selector.  Ignored by full extraction.
        mode: Requested strategy.
        timeout_ms: Bound applied independently to each fetch.
        wait_for_selector: Selector the dynamic fetch waits for after
            navigation.  Ignored by the static fetch.
        proxy: Proxy URL passed to both httpx and Chromium.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str
    field_selectors: dict[str, str] = Field(default_factory=dict)
    mode: ScrapeMode = ScrapeMode.AUTO
    timeout_ms: int = Field(default=30_000, gt=0)
    wait_for_selector: Optional[str] = None
    proxy: Optional[str] = None


class ScrapeResult(_CamelModel):
    """Outcome of one scrape attempt for one URL."""

    url: str
    success: bool
    data: dict[str, FieldValue] = Field(default_factory=dict)
    error: Optional[str] = None
    scraped_at: datetime = Field(default_factory=utcnow)
    mode: ScrapeMode


class QueueConfig(_CamelModel):
    """Per-job execution parameters for the bulk queue."""

    concurrency: int = Field(default=3, ge=1)
    delay_ms: int = Field(default=1_000, ge=0)
    timeout_ms: int = Field(default=30_000, gt=0)
    proxy: Optional[str] = None


class Job(_CamelModel):
    """A bulk multi-URL scrape job.

    ``results`` is in completion order, not submission order.
    ``completed_urls`` always equals ``len(results)``.
    """

    id: str
    status: JobStatus = JobStatus.PENDING
    total_urls: int
    completed_urls: int = 0
    results: list[ScrapeResult] = Field(default_factory=list)
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
