"""Shared pytest fixtures for webharvest tests.

Fixture summary
---------------
clear_settings_cache — Resets the ``get_settings`` lru_cache around every test.
job_store           — Empty :class:`InMemoryJobStore`.
job_queue           — :class:`JobQueue` over ``job_store`` with a stub scraper; shut down after the test.
make_result         — Factory for :class:`ScrapeResult` objects.

No test touches the network or launches a browser: fetchers are patched
with ``unittest.mock`` or intercepted with ``respx``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Iterator
from typing import Any

import pytest
import pytest_asyncio

from webharvest.config.settings import get_settings
from webharvest.scraper.job_store import InMemoryJobStore
from webharvest.scraper.models import ScrapeConfig, ScrapeMode, ScrapeResult
from webharvest.scraper.queue import JobQueue


async def _stub_scrape(config: ScrapeConfig) -> ScrapeResult:
    return ScrapeResult(url=config.url, success=True, data={"title": "stub"}, mode=ScrapeMode.STATIC)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest_asyncio.fixture
async def job_queue(job_store: InMemoryJobStore) -> AsyncGenerator[JobQueue, None]:
    queue = JobQueue(job_store, scrape_fn=_stub_scrape)
    yield queue
    await queue.shutdown()


@pytest.fixture
def make_result() -> Callable[..., ScrapeResult]:
    """Return a factory building successful static results by default."""

    def _make(url: str = "https://example.com/", **overrides: Any) -> ScrapeResult:
        fields: dict[str, Any] = {
            "url": url,
            "success": True,
            "data": {"title": "Example"},
            "mode": ScrapeMode.STATIC,
        }
        fields.update(overrides)
        return ScrapeResult(**fields)

    return _make
