"""Scrape orchestration: strategy selection, fallback, result assembly.

Public entry points:

``scrape(config)``
    Selector extraction.  Dispatches on ``config.mode``:

    - ``STATIC``  — HTTP fetch only.
    - ``DYNAMIC`` — headless browser only.
    - ``AUTO``    — HTTP first; falls back to the browser when the fetch
      failed or every extracted field came back empty (the page is rendered
      client-side).

``scrape_with_full_extraction(config)``
    Full-page heuristic extraction.  HTTP first; falls back to the browser
    (with a settle delay) unless ``mainContent`` is longer than
    ``MIN_MAIN_CONTENT_CHARS``.

Neither function raises for per-URL problems: fetch and extraction failures
are returned as ``ScrapeResult(success=False, data={}, error=...)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from webharvest.scraper.config import FULL_EXTRACTION_SETTLE_MS, MIN_MAIN_CONTENT_CHARS
from webharvest.scraper.content_extractor import (
    extract_by_selectors,
    extract_full_page,
    has_meaningful_data,
)
from webharvest.scraper.http_fetcher import FetchResult, fetch_static
from webharvest.scraper.models import FieldValue, ScrapeConfig, ScrapeMode, ScrapeResult
from webharvest.scraper.playwright_fetcher import fetch_dynamic

logger = logging.getLogger(__name__)

Extractor = Callable[[str], dict[str, FieldValue]]


# ---------------------------------------------------------------------------
# Result helpers
# ---------------------------------------------------------------------------


def _failed(url: str, mode: ScrapeMode, error: str) -> ScrapeResult:
    return ScrapeResult(url=url, success=False, data={}, error=error, mode=mode)


def _build_result(
    url: str, mode: ScrapeMode, fetched: FetchResult, extract: Extractor
) -> ScrapeResult:
    """Run ``extract`` over a fetch outcome and wrap it in a ``ScrapeResult``."""
    if not fetched.ok:
        return _failed(url, mode, fetched.error or "no HTML returned")
    try:
        data = extract(fetched.html or "")
    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: extraction failed for %s: %s", url, exc)
        return _failed(url, mode, f"extraction error: {exc}")
    return ScrapeResult(url=url, success=True, data=data, mode=mode)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


async def _static(config: ScrapeConfig, extract: Extractor) -> ScrapeResult:
    fetched = await fetch_static(config.url, timeout_ms=config.timeout_ms, proxy=config.proxy)
    return _build_result(config.url, ScrapeMode.STATIC, fetched, extract)


async def _dynamic(config: ScrapeConfig, extract: Extractor, settle_ms: int = 0) -> ScrapeResult:
    fetched = await fetch_dynamic(
        config.url,
        timeout_ms=config.timeout_ms,
        wait_for_selector=config.wait_for_selector,
        proxy=config.proxy,
        settle_ms=settle_ms,
    )
    return _build_result(config.url, ScrapeMode.DYNAMIC, fetched, extract)


def _selector_extractor(config: ScrapeConfig) -> Extractor:
    return lambda html: extract_by_selectors(html, config.field_selectors)


async def _auto(config: ScrapeConfig) -> ScrapeResult:
    extract = _selector_extractor(config)
    static_result = await _static(config, extract)
    if static_result.success and has_meaningful_data(static_result.data):
        return static_result

    logger.info(
        "scraper: static scrape yielded no data for %s (%s), trying dynamic",
        config.url,
        static_result.error or "all fields empty",
    )
    return await _dynamic(config, extract)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def scrape(config: ScrapeConfig) -> ScrapeResult:
    """Scrape one URL with selector extraction using ``config.mode``.

    Args:
        config: Scrape configuration.

    Returns:
        A :class:`ScrapeResult` whose ``mode`` is the strategy that actually
        produced it.
    """
    if config.mode is ScrapeMode.STATIC:
        return await _static(config, _selector_extractor(config))
    if config.mode is ScrapeMode.DYNAMIC:
        return await _dynamic(config, _selector_extractor(config))
    if config.mode is ScrapeMode.AUTO:
        return await _auto(config)
    raise ValueError(f"Unsupported scrape mode: {config.mode!r}")


async def scrape_with_full_extraction(config: ScrapeConfig) -> ScrapeResult:
    """Scrape one URL with full-page extraction.

    The static attempt is accepted only if its ``mainContent`` is longer than
    ``MIN_MAIN_CONTENT_CHARS``.  A failed fetch, thin content or any error in
    the static phase falls through to the browser, which is the strategy of
    last resort and is always attempted in that case.

    ``config.field_selectors`` and ``config.mode`` are ignored.
    """
    try:
        static_result = await _static(config, extract_full_page)
        main_content = static_result.data.get("mainContent", "")
        if static_result.success and len(main_content) > MIN_MAIN_CONTENT_CHARS:
            return static_result
        logger.info(
            "scraper: static extraction yielded limited content for %s, trying dynamic",
            config.url,
        )
    except Exception as exc:  # noqa: BLE001
        logger.info("scraper: static scraping failed for %s (%s), trying dynamic", config.url, exc)

    return await _dynamic(config, extract_full_page, settle_ms=FULL_EXTRACTION_SETTLE_MS)
