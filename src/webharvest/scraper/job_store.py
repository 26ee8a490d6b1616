"""Job storage abstraction.

:class:`JobStore` is the seam between the queue logic and wherever job
records live.  :class:`InMemoryJobStore` keeps them in a process-local dict;
a persistent implementation can be swapped in through the ``JobQueue``
constructor without touching the queue.

Every read returns a deep copy and every write goes through
:meth:`JobStore.update` or :meth:`JobStore.put`, so callers never hold a
reference to the live record.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

from webharvest.scraper.models import Job

JobMutator = Callable[[Job], None]
JobPredicate = Callable[[Job], bool]


class JobStore(ABC):
    """Synchronized accessors over a collection of :class:`Job` records."""

    @abstractmethod
    def get(self, job_id: str) -> Job | None:
        """Return a snapshot of the job, or ``None`` if unknown."""

    @abstractmethod
    def put(self, job: Job) -> None:
        """Insert or replace a job."""

    @abstractmethod
    def delete(self, job_id: str) -> bool:
        """Remove a job.  Returns ``False`` if it did not exist."""

    @abstractmethod
    def list(self) -> list[Job]:
        """Return snapshots of every stored job (unordered)."""

    @abstractmethod
    def update(self, job_id: str, mutate: JobMutator) -> Job | None:
        """Apply ``mutate`` to the stored job atomically.

        Returns:
            A snapshot of the job after mutation, or ``None`` if the job no
            longer exists (e.g. deleted while still running).
        """

    @abstractmethod
    def delete_where(self, predicate: JobPredicate) -> int:
        """Atomically remove every job matching ``predicate``; return the count."""


class InMemoryJobStore(JobStore):
    """Process-local job store guarded by a single lock.

    A ``threading.Lock`` rather than an ``asyncio.Lock`` keeps the
    accessors synchronous; no critical section awaits, so the lock is never
    held across a suspension point.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._lock = threading.Lock()

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return job.model_copy(deep=True) if job is not None else None

    def put(self, job: Job) -> None:
        with self._lock:
            self._jobs[job.id] = job.model_copy(deep=True)

    def delete(self, job_id: str) -> bool:
        with self._lock:
            return self._jobs.pop(job_id, None) is not None

    def list(self) -> list[Job]:
        with self._lock:
            return [job.model_copy(deep=True) for job in self._jobs.values()]

    def update(self, job_id: str, mutate: JobMutator) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            mutate(job)
            return job.model_copy(deep=True)

    def delete_where(self, predicate: JobPredicate) -> int:
        with self._lock:
            doomed = [job_id for job_id, job in self._jobs.items() if predicate(job)]
            for job_id in doomed:
                del self._jobs[job_id]
            return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
