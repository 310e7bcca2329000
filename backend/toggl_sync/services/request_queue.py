import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, Tuple, TypeVar

from toggl_sync.exceptions import TogglSyncError

log = logging.getLogger(__name__)

T = TypeVar("T")


class RequestQueue:
    """
    Runs asynchronous operations one at a time, in submission order.

    The Reports API is rate limited and hands out inconsistent pages when the
    same client hits it concurrently, so every report request goes through
    here. A failed operation settles only its own future; the next one
    starts right after. Queued operations are never skipped.
    """

    def __init__(self):
        self._pending: Deque[Tuple[Callable[[], Awaitable], asyncio.Future]] = deque()
        self._worker: Optional[asyncio.Task] = None
        self._running: Optional[asyncio.Future] = None
        self._closed = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def enqueue(self, operation: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        """Submit an operation; the returned future settles with its outcome."""
        if self._closed:
            raise TogglSyncError("Request queue is closed")
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._pending.append((operation, future))
        log.trace(f"Request queued ({len(self._pending)} pending)")
        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._drain())
        return future

    async def _drain(self) -> None:
        # Exits once the deque is empty; enqueue() restarts it.
        while self._pending:
            operation, future = self._pending.popleft()
            self._running = future
            try:
                result = await operation()
            except asyncio.CancelledError:
                if self._closed:
                    raise
                # The operation cancelled itself; keep draining the rest.
                log.debug("Queued request was cancelled")
                if not future.done():
                    future.cancel()
            except Exception as e:
                log.debug(f"Queued request failed: {e}")
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._running = None

    async def close(self) -> None:
        """Stop the worker and fail whatever is still waiting."""
        self._closed = True
        running = self._running
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        if running is not None and not running.done():
            running.set_exception(TogglSyncError("Request queue closed while the request was running"))
        while self._pending:
            _, future = self._pending.popleft()
            if not future.done():
                future.set_exception(TogglSyncError("Request queue closed before the request ran"))
