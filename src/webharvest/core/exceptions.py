"""Application-wide exception hierarchy for webharvest.

All custom exceptions subclass ``WebHarvestError``, enabling consistent
error handling and structured logging across the application.

Per-URL fetch and extraction failures are never raised past the
orchestrator; they are recorded as failed ``ScrapeResult`` objects.  The
exceptions below cover the remaining caller-facing error paths.

Hierarchy::

    WebHarvestError
    ├── ScrapeConfigError
    └── JobNotFoundError    (job_id: str)
"""

from __future__ import annotations


class WebHarvestError(Exception):
    """Base class for all webharvest exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


class ScrapeConfigError(WebHarvestError):
    """Raised when a scrape or bulk job submission is invalid.

    Examples: an empty URL list, a URL list above the configured maximum,
    or a concurrency outside the accepted range.
    """


class JobNotFoundError(WebHarvestError):
    """Raised when a job id does not resolve to a stored job.

    Args:
        job_id: The id that was looked up.
    """

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job '{job_id}' not found")
        self.job_id = job_id
