"""Client-side polling of a document's processing status."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Mapping, Optional

from benefit_extraction.services.status_machine import DEFAULT_FAILURE_MESSAGE, ProcessingStatus
from benefit_extraction.utils.logging import get_logger

LOGGER = get_logger(__name__)

StatusReader = Callable[[str], Awaitable[Mapping[str, Any]]]
Callback = Callable[..., Any]


class DocumentPollingCoordinator:
    """Polls one document until it reaches a terminal status or the budget runs out.

    One session is active per instance. Starting a new session supersedes the
    previous one: its scheduled cycle is cancelled and any query still in
    flight is ignored when it returns. Each session fires at most one of
    ``on_complete``, ``on_failed`` or ``on_timeout``.

    Callbacks may be plain functions or coroutine functions.

    Example:
        async with DocumentPollingCoordinator(
            api.get_document_status, on_complete, on_failed, on_timeout
        ) as poller:
            poller.start_polling(document_id)
            ...
    """

    def __init__(
        self,
        status_reader: StatusReader,
        on_complete: Callback,
        on_failed: Callback,
        on_timeout: Callback,
        max_attempts: int = 30,
        interval_ms: int = 1000,
    ):
        """Initialize the coordinator.

        Args:
            status_reader: Coroutine returning ``processing_status`` and
                ``error_message`` for a document id
            on_complete: Called when the document completes
            on_failed: Called with the stored error message on failure
            on_timeout: Called when ``max_attempts`` cycles pass without a
                terminal status
            max_attempts: Query budget per session
            interval_ms: Delay between a query finishing and the next one
        """
        self.status_reader = status_reader
        self.on_complete = on_complete
        self.on_failed = on_failed
        self.on_timeout = on_timeout
        self.max_attempts = max_attempts
        self.interval = interval_ms / 1000

        self._document_id: Optional[str] = None
        self._attempts = 0
        self._generation = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def is_polling(self) -> bool:
        return self._document_id is not None

    @property
    def attempts(self) -> int:
        return self._attempts

    @property
    def document_id(self) -> Optional[str]:
        return self._document_id

    def start_polling(self, document_id: str) -> None:
        """Begin polling ``document_id``, issuing the first query right away.

        Must be called from a running event loop. Empty ids are ignored.
        """
        if self._closed or not document_id:
            return

        self._reset()
        self._document_id = str(document_id)
        LOGGER.debug("Polling started", extra={"document_id": self._document_id})
        self._spawn(self._generation)

    def stop_polling(self) -> None:
        """Cancel any scheduled cycle and clear the session. Idempotent."""
        self._reset()

    async def close(self) -> None:
        """Tear down: no query, callback or state change happens afterwards."""
        self._closed = True
        self._reset()

        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "DocumentPollingCoordinator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _reset(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1
        self._attempts = 0
        self._document_id = None

    def _is_current(self, generation: int) -> bool:
        return (
            not self._closed
            and generation == self._generation
            and self._document_id is not None
        )

    def _spawn(self, generation: int) -> None:
        self._timer = None
        if not self._is_current(generation):
            return
        self._task = asyncio.get_running_loop().create_task(self._cycle(generation))

    async def _cycle(self, generation: int) -> None:
        if not self._is_current(generation):
            return

        document_id = self._document_id
        self._attempts += 1

        if self._attempts > self.max_attempts:
            LOGGER.warning(
                "Polling timed out",
                extra={"document_id": document_id, "attempts": self.max_attempts},
            )
            self._reset()
            await self._invoke(self.on_timeout)
            return

        status: Optional[Mapping[str, Any]] = None
        try:
            status = await self.status_reader(document_id)
        except Exception as e:
            LOGGER.warning(
                f"Polling error: {e}",
                extra={"document_id": document_id, "attempt": self._attempts},
            )

        if not self._is_current(generation):
            return

        if status:
            processing_status = status.get("processing_status")
            if processing_status == ProcessingStatus.COMPLETED.value:
                self._reset()
                await self._invoke(self.on_complete)
                return
            if processing_status == ProcessingStatus.FAILED.value:
                self._reset()
                await self._invoke(
                    self.on_failed, status.get("error_message") or DEFAULT_FAILURE_MESSAGE
                )
                return

        self._timer = asyncio.get_running_loop().call_later(
            self.interval, self._spawn, generation
        )

    async def _invoke(self, callback: Callback, *args: Any) -> None:
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            LOGGER.exception("Polling callback raised")
