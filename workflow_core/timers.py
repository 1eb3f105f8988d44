"""Timer manager handed to the workflow runtime.

Timers are keyed by process id and timer name. When a timer is due the
runtime's callback runs as a task on the event loop the timer was
scheduled from.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Set, Tuple
from uuid import UUID

logger = logging.getLogger(__name__)

TimerKey = Tuple[UUID, str]
TimerCallback = Callable[[UUID, str], Awaitable[None]]


class TimerManager:
    def __init__(self):
        self._handles: Dict[TimerKey, asyncio.TimerHandle] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._on_timer: Optional[TimerCallback] = None

    @property
    def is_running(self) -> bool:
        return self._on_timer is not None

    def start(self, on_timer: TimerCallback) -> None:
        """Start accepting timers; ``on_timer`` is awaited when one is due."""
        self._on_timer = on_timer
        logger.info("Timer manager started")

    def schedule(self, process_id: UUID, name: str, when: datetime) -> None:
        """Schedule a timer, replacing a pending timer with the same key.

        Raises:
            RuntimeError: If the manager is not started or no loop is running
        """
        if not self.is_running:
            raise RuntimeError("Timer manager is not started")
        loop = asyncio.get_running_loop()
        key = (process_id, name)
        self.cancel(process_id, name)

        now = datetime.now(when.tzinfo) if when.tzinfo else datetime.now()
        delay = max(0.0, (when - now).total_seconds())
        self._handles[key] = loop.call_later(delay, self._fire, key)
        logger.debug(f"Timer '{name}' for process {process_id} due in {delay:.2f}s")

    def cancel(self, process_id: UUID, name: Optional[str] = None) -> int:
        """Cancel one named timer, or all timers of a process when name is None.

        Returns:
            Number of timers cancelled
        """
        keys = [
            key
            for key in self._handles
            if key[0] == process_id and (name is None or key[1] == name)
        ]
        for key in keys:
            self._handles.pop(key).cancel()
        return len(keys)

    def pending(self) -> List[TimerKey]:
        return list(self._handles)

    def _fire(self, key: TimerKey) -> None:
        self._handles.pop(key, None)
        task = asyncio.ensure_future(self._run(key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, key: TimerKey) -> None:
        process_id, name = key
        try:
            await self._on_timer(process_id, name)
        except Exception as e:
            logger.error(f"Timer '{name}' for process {process_id} failed: {e}", exc_info=True)

    async def stop(self) -> None:
        """Cancel pending timers and wait for running timer callbacks to finish."""
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._on_timer = None
        logger.info("Timer manager stopped")
