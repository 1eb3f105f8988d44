import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from workflow_core.bus import NullBus
from workflow_core.timers import TimerManager


class TestNullBus:
    @pytest.mark.asyncio
    async def test_executes_inline(self):
        executor = AsyncMock(return_value="done")
        bus = NullBus()
        bus.initialize(executor)
        bus.start()

        assert await bus.queue_execution({"id": 1}) == "done"
        executor.assert_awaited_once_with({"id": 1})

    @pytest.mark.asyncio
    async def test_requires_executor(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            await NullBus().queue_execution({})


class TestTimerManager:
    @pytest.mark.asyncio
    async def test_fires_due_timer(self):
        fired = asyncio.Event()
        calls = []

        async def on_timer(process_id, name):
            calls.append((process_id, name))
            fired.set()

        manager = TimerManager()
        manager.start(on_timer)
        process_id = uuid.uuid4()
        manager.schedule(process_id, "Reminder", datetime.now() - timedelta(seconds=1))

        await asyncio.wait_for(fired.wait(), timeout=2)
        assert calls == [(process_id, "Reminder")]
        assert manager.pending() == []
        await manager.stop()

    @pytest.mark.asyncio
    async def test_reschedule_replaces_pending_timer(self):
        manager = TimerManager()
        manager.start(AsyncMock())
        process_id = uuid.uuid4()
        later = datetime.now(timezone.utc) + timedelta(hours=1)

        manager.schedule(process_id, "Expire", later)
        manager.schedule(process_id, "Expire", later + timedelta(hours=1))

        assert manager.pending() == [(process_id, "Expire")]
        await manager.stop()

    @pytest.mark.asyncio
    async def test_cancel_by_process(self):
        manager = TimerManager()
        manager.start(AsyncMock())
        first, second = uuid.uuid4(), uuid.uuid4()
        later = datetime.now() + timedelta(hours=1)
        manager.schedule(first, "A", later)
        manager.schedule(first, "B", later)
        manager.schedule(second, "A", later)

        assert manager.cancel(first, "A") == 1
        assert manager.cancel(first) == 1
        assert manager.pending() == [(second, "A")]
        await manager.stop()
        assert manager.pending() == []
        assert not manager.is_running

    @pytest.mark.asyncio
    async def test_failing_callback_is_contained(self):
        done = asyncio.Event()

        async def on_timer(process_id, name):
            done.set()
            raise ValueError("boom")

        manager = TimerManager()
        manager.start(on_timer)
        manager.schedule(uuid.uuid4(), "Broken", datetime.now())

        await asyncio.wait_for(done.wait(), timeout=2)
        await manager.stop()

    def test_schedule_requires_start(self):
        with pytest.raises(RuntimeError, match="not started"):
            TimerManager().schedule(uuid.uuid4(), "A", datetime.now())
