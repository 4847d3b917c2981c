"""Bounded in-process pool for background extraction jobs."""

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional
from uuid import UUID

from benefit_extraction.core.exceptions import WorkerPoolFullError
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

JobFactory = Callable[[], Awaitable[None]]


class JobState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class JobHandle:
    """Reference to one submitted extraction job."""

    document_id: UUID
    job: JobFactory = field(repr=False)
    job_id: UUID = field(default_factory=uuid.uuid4)
    state: JobState = JobState.QUEUED
    task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED, JobState.CANCELLED)


class ExtractionWorkerPool:
    """Runs at most ``max_concurrent_jobs`` jobs at once.

    Capacity is reserved synchronously in :meth:`submit` so the HTTP handler
    can reject with 503 before acknowledging. The task itself is started by
    :meth:`launch`, normally from a response background task. Jobs beyond the
    concurrency limit wait on the semaphore.
    """

    def __init__(self, max_concurrent_jobs: int = 4, max_queued_jobs: int = 32):
        if max_concurrent_jobs < 1:
            raise ValueError("max_concurrent_jobs must be at least 1")
        self.max_concurrent_jobs = max_concurrent_jobs
        self.max_queued_jobs = max(0, max_queued_jobs)
        self._semaphore = asyncio.Semaphore(max_concurrent_jobs)
        self._active: Dict[UUID, JobHandle] = {}
        self._closed = False

    @property
    def capacity(self) -> int:
        return self.max_concurrent_jobs + self.max_queued_jobs

    @property
    def active_count(self) -> int:
        return len(self._active)

    @property
    def running_count(self) -> int:
        return sum(1 for h in self._active.values() if h.state == JobState.RUNNING)

    def get(self, document_id: UUID) -> Optional[JobHandle]:
        """Active job for a document, if any."""
        return self._active.get(document_id)

    def submit(self, document_id: UUID, job: JobFactory) -> JobHandle:
        """Reserve a slot for a document's job.

        Args:
            document_id: Document the job extracts
            job: Zero-argument coroutine factory, the job body

        Returns:
            JobHandle: New handle, or the existing one when the document
            already has a queued or running job

        Raises:
            WorkerPoolFullError: If the pool is shutting down or full
        """
        if self._closed:
            raise WorkerPoolFullError("Extraction pool is shutting down")

        existing = self._active.get(document_id)
        if existing is not None and not existing.done:
            LOGGER.info(
                "Extraction already active for document",
                extra={"document_id": str(document_id), "job_id": str(existing.job_id)},
            )
            return existing

        if len(self._active) >= self.capacity:
            LOGGER.warning(
                "Extraction pool full",
                extra={"document_id": str(document_id), "active": len(self._active)},
            )
            raise WorkerPoolFullError(
                f"Extraction pool is full ({len(self._active)}/{self.capacity} jobs)"
            )

        handle = JobHandle(document_id=document_id, job=job)
        self._active[document_id] = handle
        LOGGER.debug(
            "Extraction job reserved",
            extra={"document_id": str(document_id), "job_id": str(handle.job_id)},
        )
        return handle

    async def launch(self, handle: JobHandle) -> None:
        """Start a reserved job without waiting for it."""
        if handle.task is not None or handle.done:
            return
        if self._closed:
            handle.state = JobState.CANCELLED
            self._release(handle)
            return
        handle.task = asyncio.create_task(
            self._run(handle), name=f"extract-{handle.document_id}"
        )

    async def _run(self, handle: JobHandle) -> None:
        try:
            async with self._semaphore:
                handle.state = JobState.RUNNING
                LOGGER.info(
                    "Extraction job started",
                    extra={"document_id": str(handle.document_id), "job_id": str(handle.job_id)},
                )
                await handle.job()
                handle.state = JobState.SUCCEEDED
        except asyncio.CancelledError:
            handle.state = JobState.CANCELLED
            LOGGER.warning(
                "Extraction job cancelled",
                extra={"document_id": str(handle.document_id), "job_id": str(handle.job_id)},
            )
            raise
        except Exception as e:
            handle.state = JobState.FAILED
            LOGGER.error(
                f"Unhandled error in extraction job: {e}",
                extra={"document_id": str(handle.document_id), "job_id": str(handle.job_id)},
                exc_info=True,
            )
        finally:
            self._release(handle)

    def _release(self, handle: JobHandle) -> None:
        if self._active.get(handle.document_id) is handle:
            del self._active[handle.document_id]

    async def shutdown(self, timeout: float = 30.0) -> None:
        """Stop accepting jobs, wait for running ones, then cancel the rest.

        Args:
            timeout: Seconds to wait before cancelling outstanding jobs
        """
        self._closed = True
        handles = list(self._active.values())
        tasks: List[asyncio.Task] = [h.task for h in handles if h.task is not None]

        for handle in handles:
            if handle.task is None:
                handle.state = JobState.CANCELLED
                self._release(handle)

        if not tasks:
            return

        LOGGER.info(f"Waiting for {len(tasks)} extraction job(s) to finish")
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            LOGGER.warning(f"Cancelling {len(pending)} extraction job(s) after {timeout}s")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
