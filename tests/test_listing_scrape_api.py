"""
tests/test_listing_scrape_api.py

Job manager lifecycle and the `/scrape-jobs` HTTP surface.
"""

from __future__ import annotations

import asyncio
import csv
import io
import time

import pytest
from fastapi.testclient import TestClient

from app.domain.listing_scrape import JobStatus
from app.main import create_app
from app.scraping.browser.session import SessionManager
from app.scraping.orchestrator import ListingScrapeOrchestrator
from app.services.listing_scrape_service import DuplicateJobError, ScrapeJobManager
from tests.fakes import SEARCH_URL, FakeProvider, FakeSite, fast_settings, listing_page, listing_url, search_page


def _manager(*, scrape=None, closers=()) -> ScrapeJobManager:
    site = FakeSite()
    site.pages[SEARCH_URL] = search_page([1, 2])
    site.pages[listing_url(1)] = listing_page(1, priceHistory=[{"date": "2020-01-01", "event": "Sold", "price": 1}])
    site.pages[listing_url(2)] = listing_page(2, bedrooms=3)
    settings = fast_settings()
    orchestrator = ListingScrapeOrchestrator(
        sessions=SessionManager(FakeProvider(site)),
        settings=settings,
        scrape=scrape,
    )
    return ScrapeJobManager(orchestrator=orchestrator, settings=settings, closers=closers)


# ---------------------------------------------------------------------------
# ScrapeJobManager
# ---------------------------------------------------------------------------


class TestScrapeJobManager:
    def test_start_returns_immediately_and_completes(self) -> None:
        async def scenario() -> None:
            manager = _manager()
            job = manager.start(SEARCH_URL, job_id="abc")
            assert job.status is JobStatus.RUNNING
            assert manager.get("abc") is job

            await manager.wait("abc")

            assert job.status is JobStatus.COMPLETED
            assert job.scraped_count == 2
            assert [listed.job_id for listed in manager.list_jobs()] == ["abc"]
            assert manager.cancel("abc") is False

        asyncio.run(scenario())

    def test_duplicate_job_id_is_rejected(self) -> None:
        async def scenario() -> None:
            manager = _manager()
            manager.start(SEARCH_URL, job_id="dup")
            with pytest.raises(DuplicateJobError):
                manager.start(SEARCH_URL, job_id="dup")
            await manager.shutdown()

        asyncio.run(scenario())

    def test_cancel_unknown_job(self) -> None:
        assert _manager().cancel("missing") is False

    def test_shutdown_interrupts_running_jobs_and_closes_resources(self) -> None:
        closed: list[bool] = []

        async def close() -> None:
            closed.append(True)

        async def slow_scrape(url: str) -> dict:
            await asyncio.sleep(10)
            return {"address": url}

        async def scenario() -> None:
            manager = _manager(scrape=slow_scrape, closers=[close])
            job = manager.start(SEARCH_URL, job_id="slow")
            await asyncio.sleep(0.05)

            await manager.shutdown()

            assert job.status is JobStatus.ERROR
            assert "shutdown" in job.error

        asyncio.run(scenario())
        assert closed == [True]


# ---------------------------------------------------------------------------
# HTTP endpoints
# ---------------------------------------------------------------------------


def _wait_for_terminal(client: TestClient, job_id: str) -> dict:
    for _ in range(200):
        body = client.get(f"/scrape-jobs/{job_id}").json()
        if body["status"] != "running":
            return body
        time.sleep(0.01)
    raise AssertionError(f"job {job_id} did not finish")


@pytest.fixture()
def client():
    with TestClient(create_app(job_manager=_manager())) as test_client:
        yield test_client


class TestListingScrapeRouter:
    def test_job_lifecycle_and_exports(self, client: TestClient) -> None:
        created = client.post("/scrape-jobs", json={"search_url": SEARCH_URL, "job_id": "api-1"})
        assert created.status_code == 202
        assert created.json()["job_id"] == "api-1"

        status_body = _wait_for_terminal(client, "api-1")
        assert status_body["status"] == "completed"
        assert status_body["scraped"] == 2

        listing = client.get("/scrape-jobs").json()
        assert [job["job_id"] for job in listing["jobs"]] == ["api-1"]

        exported = client.get("/scrape-jobs/api-1/export", params={"format": "csv"})
        assert exported.status_code == 200
        assert exported.headers["content-type"].startswith("text/csv")
        assert exported.headers["x-row-count"] == "2"
        rows = list(csv.DictReader(io.StringIO(exported.text)))
        assert rows[0]["link"] == listing_url(1)
        assert rows[0]["price_history"] == '[["2020-01-01", "Sold", "$1", null]]'
        assert rows[1]["fact_bedrooms"] == "3"
        assert rows[0]["fact_bedrooms"] == ""

        as_json = client.get("/scrape-jobs/api-1/export", params={"format": "json"}).json()
        assert as_json["rows"] == 2
        assert "fact_bedrooms" in as_json["fields"]

    def test_logs_are_paged_by_index(self, client: TestClient) -> None:
        client.post("/scrape-jobs", json={"search_url": SEARCH_URL, "job_id": "log-job"})
        _wait_for_terminal(client, "log-job")

        first = client.get("/scrape-jobs/log-job/logs").json()
        assert first["entries"][0]["index"] == 0
        assert first["scraped"] == 2

        later = client.get("/scrape-jobs/log-job/logs", params={"since": first["next_index"]}).json()
        assert later["entries"] == []
        assert later["next_index"] == first["next_index"]

    def test_duplicate_job_conflicts(self, client: TestClient) -> None:
        client.post("/scrape-jobs", json={"search_url": SEARCH_URL, "job_id": "same"})
        again = client.post("/scrape-jobs", json={"search_url": SEARCH_URL, "job_id": "same"})
        assert again.status_code == 409

    def test_cancel_finished_job_reports_false(self, client: TestClient) -> None:
        client.post("/scrape-jobs", json={"search_url": SEARCH_URL, "job_id": "done"})
        _wait_for_terminal(client, "done")

        response = client.post("/scrape-jobs/done/cancel")

        assert response.status_code == 200
        assert response.json() == {"job_id": "done", "cancel_requested": False}

    def test_unknown_job_is_404(self, client: TestClient) -> None:
        assert client.get("/scrape-jobs/nope").status_code == 404
        assert client.post("/scrape-jobs/nope/cancel").status_code == 404
        assert client.get("/scrape-jobs/nope/export").status_code == 404

    def test_invalid_export_format(self, client: TestClient) -> None:
        client.post("/scrape-jobs", json={"search_url": SEARCH_URL, "job_id": "fmt"})
        response = client.get("/scrape-jobs/fmt/export", params={"format": "xml"})
        assert response.status_code == 422

    def test_empty_search_url_is_rejected(self, client: TestClient) -> None:
        assert client.post("/scrape-jobs", json={"search_url": ""}).status_code == 422

    def test_health(self, client: TestClient) -> None:
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["running_jobs"] >= 0
