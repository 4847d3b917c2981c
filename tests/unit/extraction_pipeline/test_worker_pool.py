import asyncio
import uuid

import pytest

from benefit_extraction.core.exceptions import WorkerPoolFullError
from benefit_extraction.services.worker_pool import ExtractionWorkerPool, JobState


async def _noop():
    return None


@pytest.mark.asyncio
async def test_submit_reserves_slot_without_running():
    pool = ExtractionWorkerPool(max_concurrent_jobs=1, max_queued_jobs=1)
    calls = []

    async def job():
        calls.append(1)

    handle = pool.submit(uuid.uuid4(), job)

    assert handle.state == JobState.QUEUED
    assert handle.task is None
    assert pool.active_count == 1
    assert calls == []


@pytest.mark.asyncio
async def test_duplicate_submission_returns_existing_handle():
    pool = ExtractionWorkerPool()
    document_id = uuid.uuid4()

    first = pool.submit(document_id, _noop)
    second = pool.submit(document_id, _noop)

    assert second is first
    assert pool.active_count == 1


@pytest.mark.asyncio
async def test_full_pool_rejects_submission():
    pool = ExtractionWorkerPool(max_concurrent_jobs=1, max_queued_jobs=1)
    pool.submit(uuid.uuid4(), _noop)
    pool.submit(uuid.uuid4(), _noop)

    with pytest.raises(WorkerPoolFullError):
        pool.submit(uuid.uuid4(), _noop)


@pytest.mark.asyncio
async def test_launch_runs_job_and_releases_slot():
    pool = ExtractionWorkerPool()
    ran = asyncio.Event()

    async def job():
        ran.set()

    handle = pool.submit(uuid.uuid4(), job)
    await pool.launch(handle)
    await handle.task

    assert ran.is_set()
    assert handle.state == JobState.SUCCEEDED
    assert pool.active_count == 0


@pytest.mark.asyncio
async def test_concurrency_is_bounded():
    pool = ExtractionWorkerPool(max_concurrent_jobs=1, max_queued_jobs=5)
    release = asyncio.Event()
    started = []

    def make_job(name):
        async def job():
            started.append(name)
            await release.wait()
        return job

    first = pool.submit(uuid.uuid4(), make_job("first"))
    second = pool.submit(uuid.uuid4(), make_job("second"))
    await pool.launch(first)
    await pool.launch(second)
    await asyncio.sleep(0.01)

    assert started == ["first"]
    assert first.state == JobState.RUNNING
    assert second.state == JobState.QUEUED
    assert pool.running_count == 1

    release.set()
    await asyncio.gather(first.task, second.task)

    assert started == ["first", "second"]
    assert pool.active_count == 0


@pytest.mark.asyncio
async def test_escaping_exception_is_contained():
    pool = ExtractionWorkerPool()

    async def job():
        raise RuntimeError("unexpected")

    handle = pool.submit(uuid.uuid4(), job)
    await pool.launch(handle)
    await handle.task

    assert handle.state == JobState.FAILED
    assert pool.active_count == 0


@pytest.mark.asyncio
async def test_document_can_be_resubmitted_after_job_finishes():
    pool = ExtractionWorkerPool()
    document_id = uuid.uuid4()

    first = pool.submit(document_id, _noop)
    await pool.launch(first)
    await first.task

    second = pool.submit(document_id, _noop)
    assert second is not first


@pytest.mark.asyncio
async def test_shutdown_cancels_outstanding_jobs():
    pool = ExtractionWorkerPool()
    never = asyncio.Event()

    async def job():
        await never.wait()

    running = pool.submit(uuid.uuid4(), job)
    unlaunched = pool.submit(uuid.uuid4(), _noop)
    await pool.launch(running)
    await asyncio.sleep(0)

    await pool.shutdown(timeout=0.05)

    assert running.state == JobState.CANCELLED
    assert unlaunched.state == JobState.CANCELLED
    assert pool.active_count == 0
    with pytest.raises(WorkerPoolFullError):
        pool.submit(uuid.uuid4(), _noop)


@pytest.mark.asyncio
async def test_shutdown_waits_for_quick_jobs():
    pool = ExtractionWorkerPool()

    async def job():
        await asyncio.sleep(0.01)

    handle = pool.submit(uuid.uuid4(), job)
    await pool.launch(handle)

    await pool.shutdown(timeout=1)

    assert handle.state == JobState.SUCCEEDED


@pytest.mark.asyncio
async def test_shutdown_fails_document_of_cancelled_extraction(
    extraction_service, store, mock_llm_client
):
    document = store.add_document()
    never = asyncio.Event()

    async def hanging_call(**kwargs):
        await never.wait()

    mock_llm_client.extract_from_document.side_effect = hanging_call
    pool = extraction_service.worker_pool

    handle = extraction_service.extract(document.id)
    await pool.launch(handle)
    while mock_llm_client.extract_from_document.await_count == 0:
        await asyncio.sleep(0.001)

    await pool.shutdown(timeout=0.05)

    assert handle.state == JobState.CANCELLED
    assert document.processing_status == "failed"
    assert document.error_message == "Extraction cancelled during shutdown"
    assert store.status_history[document.id] == ["pending", "processing", "failed"]
    assert store.benefits == []
