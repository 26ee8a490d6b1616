"""Unit tests for the in-memory job store."""

from __future__ import annotations

import threading

from webharvest.scraper.job_store import InMemoryJobStore
from webharvest.scraper.models import Job, JobStatus


def _job(job_id: str = "job-1", status: JobStatus = JobStatus.PENDING) -> Job:
    return Job(id=job_id, status=status, total_urls=3)


class TestInMemoryJobStore:
    def test_get_unknown_returns_none(self, job_store: InMemoryJobStore) -> None:
        assert job_store.get("missing") is None

    def test_put_then_get(self, job_store: InMemoryJobStore) -> None:
        job_store.put(_job())
        stored = job_store.get("job-1")
        assert stored is not None
        assert stored.total_urls == 3
        assert len(job_store) == 1

    def test_get_returns_snapshot(self, job_store: InMemoryJobStore) -> None:
        job_store.put(_job())
        snapshot = job_store.get("job-1")
        snapshot.status = JobStatus.FAILED
        snapshot.results.append(None)  # type: ignore[arg-type]
        fresh = job_store.get("job-1")
        assert fresh.status is JobStatus.PENDING
        assert fresh.results == []

    def test_put_copies_input(self, job_store: InMemoryJobStore) -> None:
        job = _job()
        job_store.put(job)
        job.status = JobStatus.COMPLETED
        assert job_store.get("job-1").status is JobStatus.PENDING

    def test_update_applies_mutation(self, job_store: InMemoryJobStore) -> None:
        job_store.put(_job())

        def _bump(job: Job) -> None:
            job.completed_urls += 1

        after = job_store.update("job-1", _bump)
        assert after is not None
        assert after.completed_urls == 1
        assert job_store.get("job-1").completed_urls == 1

    def test_update_unknown_returns_none(self, job_store: InMemoryJobStore) -> None:
        assert job_store.update("missing", lambda job: None) is None

    def test_delete(self, job_store: InMemoryJobStore) -> None:
        job_store.put(_job())
        assert job_store.delete("job-1") is True
        assert job_store.delete("job-1") is False
        assert job_store.get("job-1") is None

    def test_list(self, job_store: InMemoryJobStore) -> None:
        job_store.put(_job("a"))
        job_store.put(_job("b"))
        assert sorted(job.id for job in job_store.list()) == ["a", "b"]

    def test_delete_where(self, job_store: InMemoryJobStore) -> None:
        job_store.put(_job("p", JobStatus.PENDING))
        job_store.put(_job("r", JobStatus.RUNNING))
        job_store.put(_job("c", JobStatus.COMPLETED))
        job_store.put(_job("f", JobStatus.FAILED))

        removed = job_store.delete_where(lambda job: job.status.is_terminal)

        assert removed == 2
        assert sorted(job.id for job in job_store.list()) == ["p", "r"]

    def test_concurrent_updates_are_not_lost(self, job_store: InMemoryJobStore) -> None:
        job_store.put(_job())

        def _bump(job: Job) -> None:
            job.completed_urls += 1

        def _worker() -> None:
            for _ in range(200):
                job_store.update("job-1", _bump)

        threads = [threading.Thread(target=_worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert job_store.get("job-1").completed_urls == 1_600
