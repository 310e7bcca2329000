import asyncio

import pytest

from toggl_sync.exceptions import TogglSyncError
from toggl_sync.services.request_queue import RequestQueue


@pytest.mark.asyncio
class TestRequestQueue:
    async def test_runs_operations_one_at_a_time_in_order(self):
        queue = RequestQueue()
        started = []
        completed = 0
        in_flight = 0
        max_in_flight = 0

        def operation(name, delay):
            async def run():
                nonlocal completed, in_flight, max_in_flight
                # completed count at start time == number of earlier operations
                started.append((name, completed))
                in_flight += 1
                max_in_flight = max(max_in_flight, in_flight)
                await asyncio.sleep(delay)
                in_flight -= 1
                completed += 1
                return name
            return run

        futures = [
            queue.enqueue(operation("A", 0.05)),
            queue.enqueue(operation("B", 0)),
            queue.enqueue(operation("C", 0.01)),
        ]
        results = await asyncio.gather(*futures)

        assert results == ["A", "B", "C"]
        assert started == [("A", 0), ("B", 1), ("C", 2)]
        assert max_in_flight == 1

    async def test_failure_does_not_block_later_operations(self):
        queue = RequestQueue()

        async def fail():
            raise ValueError("boom")

        async def succeed():
            return "ok"

        failing = queue.enqueue(fail)
        following = queue.enqueue(succeed)

        with pytest.raises(ValueError, match="boom"):
            await failing
        assert await following == "ok"

    async def test_restarts_after_draining(self):
        queue = RequestQueue()

        async def value(v):
            return v

        assert await queue.enqueue(lambda: value(1)) == 1
        await asyncio.sleep(0)
        assert queue.pending_count == 0
        assert await queue.enqueue(lambda: value(2)) == 2

    async def test_close_fails_waiting_operations(self):
        queue = RequestQueue()
        gate = asyncio.Event()

        async def blocked():
            await gate.wait()

        async def never_run():
            return "unreachable"

        running = queue.enqueue(blocked)
        waiting = queue.enqueue(never_run)
        await asyncio.sleep(0)

        await queue.close()

        with pytest.raises(TogglSyncError):
            await running
        with pytest.raises(TogglSyncError):
            await waiting
        with pytest.raises(TogglSyncError):
            queue.enqueue(never_run)

    async def test_operation_cancelling_itself_settles_its_future(self):
        queue = RequestQueue()

        async def cancelled():
            raise asyncio.CancelledError()

        async def succeed():
            return "ok"

        first = queue.enqueue(cancelled)
        following = queue.enqueue(succeed)

        assert await following == "ok"
        assert first.cancelled()
