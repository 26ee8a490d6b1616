"""webharvest — structured data extraction from arbitrary web pages.

Fetches pages statically (httpx) or through a rendered headless browser
(Playwright), extracts fields via CSS selectors or full-page heuristics, and
tracks bulk multi-URL jobs asynchronously.
"""

__version__ = "0.1.0"
