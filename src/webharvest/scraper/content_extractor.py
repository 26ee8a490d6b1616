"""Field extraction from raw HTML.

Two pure, synchronous extractors built on BeautifulSoup (``html.parser``)
with soupsieve CSS selectors:

- :func:`extract_by_selectors` — caller-supplied ``field → selector`` map.
- :func:`extract_full_page` — a fixed, broad set of page fields chosen by
  heuristics (metadata, headings, paragraphs, links, images, main content,
  list items, tables).

List-valued fields always preserve document order.  Limits are the
constants in :mod:`webharvest.scraper.config`.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from webharvest.scraper.config import (
    CONTENT_CONTAINER_SELECTOR,
    MAX_IMAGES,
    MAX_LINKS,
    MAX_LIST_ITEMS,
    MAX_MAIN_CONTENT_CHARS,
    MAX_TABLES,
    MIN_PARAGRAPH_CHARS,
    NON_CONTENT_SELECTOR,
)
from webharvest.scraper.models import FieldValue

_WHITESPACE_RE = re.compile(r"\s+")

#: Attribute fallbacks for a single matched node, after its text.
_SINGLE_NODE_ATTRS: tuple[str, ...] = ("content", "href", "src", "value", "alt", "title")

#: Attribute fallbacks per node when a selector matches several nodes.
_MULTI_NODE_ATTRS: tuple[str, ...] = ("content", "href", "src")


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------


def _parse(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def _attr(node: Tag, name: str) -> str:
    """Return an attribute as a string (``""`` when absent)."""
    value = node.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value


def _text(node: Tag) -> str:
    return node.get_text().strip()


def _collapse(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _first_non_empty(node: Tag, attrs: tuple[str, ...]) -> str:
    """Return the node's text, else the first non-empty attribute in ``attrs``."""
    text = _text(node)
    if text:
        return text
    for name in attrs:
        value = _attr(node, name)
        if value:
            return value
    return ""


def _single_node_value(node: Tag) -> str:
    value = _first_non_empty(node, _SINGLE_NODE_ATTRS)
    if value:
        return value
    return node.decode_contents().strip()


# ---------------------------------------------------------------------------
# Selector extraction
# ---------------------------------------------------------------------------


def extract_by_selectors(markup: str, field_selectors: dict[str, str]) -> dict[str, FieldValue]:
    """Extract one value per field using CSS selectors.

    For each ``field → selector`` pair:

    - no match: ``""`` (the key is always present);
    - one match: its stripped text, else the first non-empty of the
      ``content``, ``href``, ``src``, ``value``, ``alt`` and ``title``
      attributes, else its stripped inner HTML, else ``""``;
    - several matches: a list with one entry per node (text, else
      ``content``, ``href`` or ``src``), empty entries dropped.

    Args:
        markup: Raw HTML.
        field_selectors: Field name → CSS selector.

    Returns:
        Field name → extracted value, in ``field_selectors`` order.

    Raises:
        soupsieve.SelectorSyntaxError: If a selector is not valid CSS.
    """
    soup = _parse(markup)
    data: dict[str, FieldValue] = {}
    for field_name, selector in field_selectors.items():
        nodes = soup.select(selector)
        if not nodes:
            data[field_name] = ""
        elif len(nodes) == 1:
            data[field_name] = _single_node_value(nodes[0])
        else:
            values = [_first_non_empty(node, _MULTI_NODE_ATTRS) for node in nodes]
            data[field_name] = [value for value in values if value]
    return data


# ---------------------------------------------------------------------------
# Full-page extraction
# ---------------------------------------------------------------------------


def _meta_content(soup: BeautifulSoup, selector: str) -> str:
    node = soup.select_one(selector)
    return _attr(node, "content") if node is not None else ""


def _link_entry(node: Tag) -> str:
    text = _text(node)
    href = _attr(node, "href")
    return f"{text} -> {href}" if text else href


def _image_entry(node: Tag) -> str:
    src = _attr(node, "src")
    alt = _attr(node, "alt")
    return f"{alt}: {src}" if alt else src


def _main_content(soup: BeautifulSoup) -> str:
    container = soup.select_one(CONTENT_CONTAINER_SELECTOR)
    if container is None:
        container = soup.body
    text = container.get_text() if container is not None else soup.get_text()
    return _collapse(text)[:MAX_MAIN_CONTENT_CHARS]


def extract_full_page(markup: str) -> dict[str, FieldValue]:
    """Extract a fixed set of fields describing the whole page.

    Script, style, noscript, iframe and svg nodes are removed first.

    Returns a dict with the keys ``title``, ``metaDescription``,
    ``metaKeywords``, ``ogTitle``, ``ogImage``, ``ogUrl`` (strings) and
    ``headings``, ``paragraphs``, ``links``, ``images``, ``listItems``,
    ``tables`` (lists), plus ``mainContent`` (string, whitespace-collapsed,
    at most ``MAX_MAIN_CONTENT_CHARS`` characters).
    """
    soup = _parse(markup)
    for node in soup.select(NON_CONTENT_SELECTOR):
        node.decompose()

    title = "".join(node.get_text() for node in soup.select("title")).strip()
    if not title:
        first_h1 = soup.select_one("h1")
        title = _text(first_h1) if first_h1 is not None else ""

    headings = [_text(node) for node in soup.select("h1, h2, h3, h4, h5, h6")]
    paragraphs = [_text(node) for node in soup.select("p")]
    links = [_link_entry(node) for node in soup.select("a[href]")]
    images = [_image_entry(node) for node in soup.select("img[src]")]
    list_items = [_text(node) for node in soup.select("ul li, ol li")]
    tables = [_collapse(node.get_text()) for node in soup.select("table")]

    return {
        "title": title,
        "metaDescription": (
            _meta_content(soup, 'meta[name="description"]')
            or _meta_content(soup, 'meta[property="og:description"]')
        ),
        "metaKeywords": _meta_content(soup, 'meta[name="keywords"]'),
        "ogTitle": _meta_content(soup, 'meta[property="og:title"]'),
        "ogImage": _meta_content(soup, 'meta[property="og:image"]'),
        "ogUrl": _meta_content(soup, 'meta[property="og:url"]'),
        "headings": [text for text in headings if text],
        "paragraphs": [text for text in paragraphs if len(text) > MIN_PARAGRAPH_CHARS],
        "links": [entry for entry in links if entry][:MAX_LINKS],
        "images": [entry for entry in images if entry][:MAX_IMAGES],
        "mainContent": _main_content(soup),
        "listItems": [text for text in list_items if text][:MAX_LIST_ITEMS],
        "tables": [text for text in tables if text][:MAX_TABLES],
    }


def has_meaningful_data(data: dict[str, FieldValue]) -> bool:
    """Return ``True`` if at least one field is a non-empty string or list."""
    return any(len(value) > 0 for value in data.values())
