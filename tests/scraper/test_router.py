"""HTTP-level tests for the scrape router.

Requests go through ``httpx.AsyncClient`` with ``ASGITransport`` against
``create_app()``.  ``ASGITransport`` does not run the lifespan, so each test
installs its own :class:`JobQueue` (with a stub scraper) on ``app.state``.
Single-URL scrapes patch the orchestrator functions at the router's import
site.
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from webharvest.api.dependencies import get_app_settings
from webharvest.api.main import create_app
from webharvest.config.settings import Settings
from webharvest.scraper.models import ScrapeConfig, ScrapeMode, ScrapeResult
from webharvest.scraper.queue import JobQueue

_SCRAPE = "webharvest.scraper.router.scrape"
_FULL = "webharvest.scraper.router.scrape_with_full_extraction"


async def _stub_scrape(config: ScrapeConfig) -> ScrapeResult:
    return ScrapeResult(
        url=config.url,
        success=True,
        data={"title": f"Title of {config.url}", "tags": ["a", "b"]},
        mode=ScrapeMode.STATIC,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app() -> FastAPI:
    application = create_app()
    application.state.job_queue = JobQueue(scrape_fn=_stub_scrape)
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    await app.state.job_queue.shutdown()


async def _submit_and_wait(client: AsyncClient, app: FastAPI, urls: list[str]) -> str:
    response = await client.post(
        "/scrape/jobs", json={"urls": urls, "selectors": {"title": "title"}, "delay": 0}
    )
    assert response.status_code == 202
    job_id = response.json()["jobId"]
    await app.state.job_queue.wait(job_id)
    return job_id


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestSystem:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_request_id_header(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.headers["x-request-id"]

    async def test_queue_missing_returns_503(self) -> None:
        application = create_app()
        async with AsyncClient(
            transport=ASGITransport(app=application), base_url="http://test"
        ) as http:
            response = await http.get("/scrape/jobs")
        assert response.status_code == 503


# ---------------------------------------------------------------------------
# POST /scrape
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestScrapeSingle:
    async def test_selector_scrape(self, client: AsyncClient) -> None:
        result = ScrapeResult(
            url="https://example.com", success=True, data={"title": "Hi"}, mode=ScrapeMode.STATIC
        )
        scrape = AsyncMock(return_value=result)
        full = AsyncMock()
        with patch(_SCRAPE, scrape), patch(_FULL, full):
            response = await client.post(
                "/scrape",
                json={
                    "url": "https://example.com",
                    "selectors": {"title": "h1"},
                    "mode": "static",
                    "timeout": 5000,
                    "waitForSelector": "h1",
                },
            )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["result"]["data"] == {"title": "Hi"}
        assert body["result"]["mode"] == "static"
        assert "scrapedAt" in body["result"]
        full.assert_not_awaited()

        config: ScrapeConfig = scrape.await_args.args[0]
        assert config.field_selectors == {"title": "h1"}
        assert config.mode is ScrapeMode.STATIC
        assert config.timeout_ms == 5000
        assert config.wait_for_selector == "h1"

    async def test_defaults_applied(self, client: AsyncClient) -> None:
        scrape = AsyncMock(
            return_value=ScrapeResult(url="https://e.test", success=True, mode=ScrapeMode.STATIC)
        )
        with patch(_SCRAPE, scrape):
            await client.post("/scrape", json={"url": "https://e.test", "selectors": {"t": "p"}})

        config: ScrapeConfig = scrape.await_args.args[0]
        assert config.mode is ScrapeMode.AUTO
        assert config.timeout_ms == 30_000

    async def test_no_selectors_uses_full_extraction(self, client: AsyncClient) -> None:
        full = AsyncMock(
            return_value=ScrapeResult(
                url="https://e.test", success=True, data={"mainContent": "x"}, mode=ScrapeMode.DYNAMIC
            )
        )
        scrape = AsyncMock()
        with patch(_SCRAPE, scrape), patch(_FULL, full):
            response = await client.post("/scrape", json={"url": "https://e.test"})

        assert response.status_code == 200
        assert response.json()["result"]["mode"] == "dynamic"
        full.assert_awaited_once()
        scrape.assert_not_awaited()

    async def test_full_extract_flag_overrides_selectors(self, client: AsyncClient) -> None:
        full = AsyncMock(
            return_value=ScrapeResult(url="https://e.test", success=True, mode=ScrapeMode.STATIC)
        )
        with patch(_FULL, full):
            await client.post(
                "/scrape",
                json={"url": "https://e.test", "selectors": {"t": "h1"}, "fullExtract": True},
            )
        full.assert_awaited_once()

    async def test_failed_scrape_is_still_200(self, client: AsyncClient) -> None:
        failed = ScrapeResult(
            url="https://e.test",
            success=False,
            error="HTTP 404: Not Found",
            mode=ScrapeMode.STATIC,
        )
        with patch(_SCRAPE, AsyncMock(return_value=failed)):
            response = await client.post(
                "/scrape", json={"url": "https://e.test", "selectors": {"t": "h1"}}
            )

        assert response.status_code == 200
        assert response.json()["result"]["success"] is False
        assert response.json()["result"]["error"] == "HTTP 404: Not Found"

    async def test_missing_url_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/scrape", json={"selectors": {"t": "h1"}})
        assert response.status_code == 422

    async def test_unknown_mode_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/scrape", json={"url": "https://e.test", "mode": "turbo"})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Bulk jobs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestJobs:
    async def test_submit_returns_job_id(self, client: AsyncClient) -> None:
        response = await client.post("/scrape/jobs", json={"urls": ["https://a.test"]})
        assert response.status_code == 202
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Scraping job started"
        assert body["checkStatusAt"] == f"/scrape/jobs/{body['jobId']}"

    async def test_empty_urls_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/scrape/jobs", json={"urls": []})
        assert response.status_code == 422

    async def test_too_many_urls_rejected(self, app: FastAPI, client: AsyncClient) -> None:
        app.dependency_overrides[get_app_settings] = lambda: Settings(max_urls_per_job=2)
        response = await client.post(
            "/scrape/jobs", json={"urls": ["https://a.test", "https://b.test", "https://c.test"]}
        )
        assert response.status_code == 422
        assert response.json()["success"] is False
        assert app.state.job_queue.list_jobs() == []

    async def test_excessive_concurrency_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            "/scrape/jobs", json={"urls": ["https://a.test"], "concurrency": 1000}
        )
        assert response.status_code == 422
        assert "concurrency" in response.json()["error"]

    async def test_job_detail_after_completion(self, app: FastAPI, client: AsyncClient) -> None:
        urls = [f"https://example.com/{i}" for i in range(5)]
        job_id = await _submit_and_wait(client, app, urls)

        response = await client.get(f"/scrape/jobs/{job_id}")

        assert response.status_code == 200
        job = response.json()["job"]
        assert job["id"] == job_id
        assert job["status"] == "completed"
        assert job["totalUrls"] == 5
        assert job["completedUrls"] == 5
        assert len(job["results"]) == 5

    async def test_unknown_job_is_404(self, client: AsyncClient) -> None:
        response = await client.get("/scrape/jobs/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Job 'does-not-exist' not found"}

    async def test_list_jobs(self, app: FastAPI, client: AsyncClient) -> None:
        first = await _submit_and_wait(client, app, ["https://a.test"])
        await asyncio.sleep(0.002)
        second = await _submit_and_wait(client, app, ["https://b.test"])

        response = await client.get("/scrape/jobs")

        assert response.status_code == 200
        assert [job["id"] for job in response.json()["jobs"]] == [second, first]

    async def test_delete_job(self, app: FastAPI, client: AsyncClient) -> None:
        job_id = await _submit_and_wait(client, app, ["https://a.test"])

        response = await client.delete(f"/scrape/jobs/{job_id}")
        assert response.status_code == 204

        assert (await client.get(f"/scrape/jobs/{job_id}")).status_code == 404
        assert (await client.delete(f"/scrape/jobs/{job_id}")).status_code == 404

    async def test_clear_completed(self, app: FastAPI, client: AsyncClient) -> None:
        await _submit_and_wait(client, app, ["https://a.test"])
        await _submit_and_wait(client, app, ["https://b.test"])

        response = await client.delete("/scrape/jobs")

        assert response.status_code == 200
        assert response.json() == {"success": True, "cleared": 2}
        assert (await client.get("/scrape/jobs")).json()["jobs"] == []


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestExport:
    async def test_json_export(self, app: FastAPI, client: AsyncClient) -> None:
        job_id = await _submit_and_wait(client, app, ["https://a.test"])

        response = await client.get(f"/scrape/jobs/{job_id}", params={"format": "json"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert f"scrape-{job_id}.json" in response.headers["content-disposition"]
        payload = json.loads(response.text)
        assert payload[0]["url"] == "https://a.test"
        assert payload[0]["data"]["tags"] == ["a", "b"]

    async def test_csv_export(self, app: FastAPI, client: AsyncClient) -> None:
        job_id = await _submit_and_wait(client, app, ["https://a.test", "https://b.test"])

        response = await client.get(f"/scrape/jobs/{job_id}", params={"format": "csv"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.DictReader(io.StringIO(response.text)))
        assert len(rows) == 2
        assert {row["data_tags"] for row in rows} == {"a | b"}

    async def test_export_of_running_job_conflicts(self, app: FastAPI, client: AsyncClient) -> None:
        release = asyncio.Event()

        async def _blocked(config: ScrapeConfig) -> ScrapeResult:
            await release.wait()
            return await _stub_scrape(config)

        app.state.job_queue = JobQueue(scrape_fn=_blocked)
        response = await client.post("/scrape/jobs", json={"urls": ["https://a.test"]})
        job_id = response.json()["jobId"]

        response = await client.get(f"/scrape/jobs/{job_id}", params={"format": "csv"})
        assert response.status_code == 409

        release.set()
        await app.state.job_queue.wait(job_id)

    async def test_unsupported_format_rejected(self, app: FastAPI, client: AsyncClient) -> None:
        job_id = await _submit_and_wait(client, app, ["https://a.test"])
        response = await client.get(f"/scrape/jobs/{job_id}", params={"format": "xml"})
        assert response.status_code == 422
