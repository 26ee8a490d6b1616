"""Static page fetcher built on ``httpx``.

A single ``GET`` with browser-like headers.  The page's scripts are never
executed, so client-rendered pages come back as near-empty shells; the
orchestrator detects that from the extracted data and retries with
:mod:`webharvest.scraper.playwright_fetcher`.

Failures are returned, never raised: every path yields a
:class:`FetchResult` whose ``error`` describes what went wrong.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from webharvest.scraper.config import STATIC_HEADERS

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """Result of a single fetch attempt (static or dynamic).

    Attributes:
        html: Raw or rendered HTML, or ``None`` if the fetch failed.
        status_code: HTTP status code, or ``None`` on network/browser error.
        final_url: URL after following redirects, or the requested URL on error.
        error: Human-readable error description, or ``None`` on success.
    """

    html: str | None
    status_code: int | None
    final_url: str | None
    error: str | None

    @property
    def ok(self) -> bool:
        return self.error is None and self.html is not None


def _failure(url: str, error: str, status_code: int | None = None) -> FetchResult:
    return FetchResult(html=None, status_code=status_code, final_url=url, error=error)


@asynccontextmanager
async def _client_scope(
    client: httpx.AsyncClient | None, proxy: str | None
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield ``client`` as-is, or a short-lived client owned by this call."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(proxy=proxy, follow_redirects=True) as owned:
        yield owned


# ---------------------------------------------------------------------------
# Public fetch function
# ---------------------------------------------------------------------------


async def fetch_static(
    url: str,
    *,
    timeout_ms: int,
    proxy: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> FetchResult:
    """Fetch ``url`` with a plain HTTP GET.

    The whole request (connect, headers, body) is bounded by ``timeout_ms``;
    on expiry the in-flight request is cancelled.

    Args:
        url: Target URL.
        timeout_ms: Total time budget in milliseconds.
        proxy: Optional proxy URL.  Ignored when ``client`` is supplied.
        client: Optional shared :class:`httpx.AsyncClient`.  When omitted a
            client is created and closed within this call.

    Returns:
        A :class:`FetchResult`.  Non-2xx responses carry
        ``error="HTTP <status>: <reason>"``.
    """
    timeout_s = timeout_ms / 1000

    try:
        async with _client_scope(client, proxy) as http:
            response = await asyncio.wait_for(
                http.get(
                    url,
                    headers=STATIC_HEADERS,
                    timeout=timeout_s,
                    follow_redirects=True,
                ),
                timeout=timeout_s,
            )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning("scraper: static fetch timed out after %d ms for %s", timeout_ms, url)
        return _failure(url, f"Request timed out after {timeout_ms} ms")
    except httpx.HTTPError as exc:
        logger.warning("scraper: static fetch request error for %s: %s", url, exc)
        return _failure(url, str(exc) or exc.__class__.__name__)
    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: static fetch failed for %s: %s", url, exc)
        return _failure(url, str(exc) or exc.__class__.__name__)

    final_url = str(response.url)

    if not response.is_success:
        logger.info("scraper: HTTP %d for %s", response.status_code, url)
        return _failure(
            final_url,
            f"HTTP {response.status_code}: {response.reason_phrase}",
            status_code=response.status_code,
        )

    try:
        html = response.text
    except Exception as exc:  # noqa: BLE001
        logger.warning("scraper: decode error for %s: %s", url, exc)
        return _failure(final_url, f"decode error: {exc}", status_code=response.status_code)

    return FetchResult(
        html=html,
        status_code=response.status_code,
        final_url=final_url,
        error=None,
    )
