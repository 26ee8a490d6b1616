"""JSON and CSV export of scrape results."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence

from webharvest.scraper.models import ScrapeResult

#: Fixed leading CSV columns; ``data_<field>`` columns follow.
_BASE_COLUMNS: tuple[str, ...] = ("url", "success", "mode", "scrapedAt", "error")

#: Separator used to flatten list-valued fields into one CSV cell.
LIST_SEPARATOR: str = " | "


def to_json(results: Sequence[ScrapeResult]) -> str:
    """Serialise results as a pretty-printed JSON array with camelCase keys."""
    payload = [result.model_dump(mode="json", by_alias=True) for result in results]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _flatten(result: ScrapeResult) -> dict[str, str]:
    row = {
        "url": result.url,
        "success": "true" if result.success else "false",
        "mode": result.mode.value,
        "scrapedAt": result.scraped_at.isoformat(),
        "error": result.error or "",
    }
    for key, value in result.data.items():
        row[f"data_{key}"] = LIST_SEPARATOR.join(value) if isinstance(value, list) else value
    return row


def to_csv(results: Sequence[ScrapeResult]) -> str:
    """Serialise results as CSV, one row per result.

    Columns are the base columns followed by one ``data_<field>`` column per
    field seen in any result, in first-seen order.  Returns ``""`` when
    ``results`` is empty.
    """
    if not results:
        return ""

    rows = [_flatten(result) for result in results]
    columns: dict[str, None] = dict.fromkeys(_BASE_COLUMNS)
    for row in rows:
        columns.update(dict.fromkeys(row))

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(columns), restval="", lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()
