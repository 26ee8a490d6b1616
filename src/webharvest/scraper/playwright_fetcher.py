"""Playwright-based headless browser fetcher for JavaScript-rendered pages.

Every call launches its own Chromium process and closes it before
returning, on success and on every failure path.  Browsers are never
shared between concurrent scrapes, so a hung or crashed instance cannot
affect a sibling.

Before navigation the page receives realistic headers and
``STEALTH_INIT_SCRIPT``, which masks the usual automation checks
(``navigator.webdriver``, missing ``window.chrome``, the permissions query,
empty plugin/language lists).

Install the browser binary once per environment::

    playwright install chromium
"""

from __future__ import annotations

import logging
from typing import Any

from playwright.async_api import async_playwright

from webharvest.scraper.config import (
    BROWSER_HEADERS,
    BROWSER_USER_AGENT,
    CHROMIUM_ARGS,
    NAVIGATION_WAIT_UNTIL,
    STEALTH_INIT_SCRIPT,
)
from webharvest.scraper.http_fetcher import FetchResult

logger = logging.getLogger(__name__)


def _launch_options(proxy: str | None, timeout_ms: int) -> dict[str, Any]:
    options: dict[str, Any] = {"headless": True, "args": CHROMIUM_ARGS, "timeout": timeout_ms}
    if proxy:
        options["proxy"] = {"server": proxy}
    return options


async def fetch_dynamic(
    url: str,
    *,
    timeout_ms: int,
    wait_for_selector: str | None = None,
    proxy: str | None = None,
    settle_ms: int = 0,
) -> FetchResult:
    """Fetch the fully rendered HTML of ``url`` with headless Chromium.

    Navigation waits for network idleness.  If ``wait_for_selector`` is set
    the fetch additionally waits for that selector to appear; both waits are
    bounded by ``timeout_ms`` independently.  ``settle_ms`` adds a fixed
    pause afterwards for late-running scripts.

    Args:
        url: Target URL.
        timeout_ms: Browser launch, navigation and selector-wait timeout in
            milliseconds.
        wait_for_selector: Optional CSS selector to wait for.
        proxy: Optional proxy server URL for the browser.
        settle_ms: Extra delay after navigation, in milliseconds.

    Returns:
        A :class:`~webharvest.scraper.http_fetcher.FetchResult`.  Launch,
        navigation and timeout failures are reported through ``error``.
    """
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(**_launch_options(proxy, timeout_ms))
            try:
                context = await browser.new_context(
                    user_agent=BROWSER_USER_AGENT,
                    extra_http_headers=BROWSER_HEADERS,
                    locale="en-US",
                )
                page = await context.new_page()
                await page.add_init_script(STEALTH_INIT_SCRIPT)

                response = await page.goto(
                    url,
                    timeout=timeout_ms,
                    wait_until=NAVIGATION_WAIT_UNTIL,
                )
                if wait_for_selector:
                    await page.wait_for_selector(wait_for_selector, timeout=timeout_ms)
                if settle_ms > 0:
                    await page.wait_for_timeout(settle_ms)

                html = await page.content()
                return FetchResult(
                    html=html,
                    status_code=response.status if response else None,
                    final_url=page.url,
                    error=None,
                )
            finally:
                await browser.close()

    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: playwright fetch failed for %s: %s", url, exc)
        return FetchResult(
            html=None,
            status_code=None,
            final_url=url,
            error=str(exc) or exc.__class__.__name__,
        )
