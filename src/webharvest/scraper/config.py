"""Constants and tuning parameters for the scrape engine."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Static fetch (httpx)
# ---------------------------------------------------------------------------

#: User-agent string sent with every static request.
STATIC_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

#: Headers sent with every static request.
STATIC_HEADERS: dict[str, str] = {
    "User-Agent": STATIC_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

# ---------------------------------------------------------------------------
# Dynamic fetch (Playwright / Chromium)
# ---------------------------------------------------------------------------

#: User-agent string presented by the headless browser.
BROWSER_USER_AGENT: str = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/119.0.0.0 Safari/537.36"
)

#: Extra headers mimicking a real Chrome navigation.
BROWSER_HEADERS: dict[str, str] = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.7"
    ),
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Sec-Ch-Ua": '"Google Chrome";v="119", "Chromium";v="119", "Not?A_Brand";v="24"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
}

#: Chromium command-line flags for container-friendly headless runs.
CHROMIUM_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
]

#: Script injected before any page script runs.  Masks the most common
#: headless-automation checks.
STEALTH_INIT_SCRIPT: str = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });

window.chrome = { runtime: {} };

const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) => (
    parameters.name === 'notifications'
        ? Promise.resolve({ state: Notification.permission })
        : originalQuery(parameters)
);

Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });

Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""

#: Playwright ``wait_until`` condition used for navigation.
NAVIGATION_WAIT_UNTIL: str = "networkidle"

#: Extra settle time after navigation for full-page extraction (ms).
FULL_EXTRACTION_SETTLE_MS: int = 1_000

# ---------------------------------------------------------------------------
# Orchestration thresholds
# ---------------------------------------------------------------------------

#: ``mainContent`` must be longer than this for a static full extraction to
#: be accepted without a browser retry.
MIN_MAIN_CONTENT_CHARS: int = 100

# ---------------------------------------------------------------------------
# Full-page extraction limits
# ---------------------------------------------------------------------------

#: Node types removed before full-page extraction.
NON_CONTENT_SELECTOR: str = "script, style, noscript, iframe, svg"

#: Candidate main-content containers.  The first one present in document
#: order wins; body text is the fallback.
CONTENT_CONTAINER_SELECTOR: str = (
    'article, main, [role="main"], .content, .main-content, #content, #main'
)

MAX_LINKS: int = 50
MAX_IMAGES: int = 30
MAX_LIST_ITEMS: int = 50
MAX_TABLES: int = 10
MAX_MAIN_CONTENT_CHARS: int = 5_000

#: Paragraphs of this length or shorter are dropped.
MIN_PARAGRAPH_CHARS: int = 20
