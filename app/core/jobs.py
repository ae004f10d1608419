"""
In-process background job queue.

Jobs are enqueued with ``SomeJob.perform_later(...)`` and executed by
``queue.perform_enqueued()``, which the worker loop (and the test suite)
calls. Each job run gets its own database session.
"""
from collections.abc import Callable, Iterable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import AsyncSessionLocal
from app.utils import get_logger


log = get_logger(__name__)


@dataclass
class EnqueuedJob:
    job_class: type["Job"]
    args: tuple = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


class JobQueue:
    def __init__(self, session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = AsyncSessionLocal):
        self.enqueued: list[EnqueuedJob] = []
        self.session_factory = session_factory

    def enqueue(self, job_class: type["Job"], *args, **kwargs) -> EnqueuedJob:
        job = EnqueuedJob(job_class, args, kwargs)
        self.enqueued.append(job)
        log.debug("Enqueued %s args=%s", job_class.__name__, args)
        return job

    def clear(self) -> None:
        self.enqueued.clear()

    def jobs_of(self, job_class: type["Job"]) -> list[EnqueuedJob]:
        return [job for job in self.enqueued if job.job_class is job_class]

    def _next(self, only: tuple[type["Job"], ...] | None) -> EnqueuedJob | None:
        for job in self.enqueued:
            if only is None or job.job_class in only:
                return job
        return None

    async def perform_enqueued(self, only: Iterable[type["Job"]] | None = None) -> int:
        """
        Run enqueued jobs in order until none matching ``only`` are left.

        Jobs enqueued while draining are picked up too. Jobs not matching
        ``only`` stay in the queue. Returns the number of jobs performed.
        """
        only = tuple(only) if only is not None else None
        performed = 0
        while (job := self._next(only)) is not None:
            self.enqueued.remove(job)
            async with self.session_factory() as db:
                await job.job_class().perform(db, *job.args, **job.kwargs)
                await db.commit()
            performed += 1
        return performed


queue = JobQueue()


class Job:
    """Base class for background jobs."""

    @classmethod
    def perform_later(cls, *args, **kwargs) -> EnqueuedJob:
        return queue.enqueue(cls, *args, **kwargs)

    async def perform(self, db: AsyncSession, *args, **kwargs) -> None:
        raise NotImplementedError
