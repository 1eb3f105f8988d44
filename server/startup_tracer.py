"""Timing of workflow server start-up phases.

Phases (configuration, backend selection, runtime wiring, connection
check, runtime start) are timed with ``time_operation`` and summarized
in the log once the server is ready.
"""

import functools
import inspect
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

# Start-up slower than this is reported as a warning
SLOW_STARTUP_SECONDS = 10.0


@dataclass
class TimingEntry:
    """A single timed phase."""

    name: str
    start_time: float
    parent: Optional[str] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def finish(self) -> float:
        if self.duration is None:
            self.duration = time.time() - self.start_time
        return self.duration


class StartupTracer:
    """Records nested start-up phases and their durations."""

    def __init__(self):
        self.startup_start = time.time()
        self.timings: Dict[str, TimingEntry] = {}
        self.phase_stack: List[str] = []

    def start_timing(self, name: str, parent: Optional[str] = None, **metadata) -> TimingEntry:
        if parent is None and self.phase_stack:
            parent = self.phase_stack[-1]
        entry = TimingEntry(name=name, start_time=time.time(), parent=parent, metadata=metadata)
        self.timings[name] = entry
        self.phase_stack.append(name)
        logger.debug(f">> [{entry.start_time - self.startup_start:.2f}s] {name}")
        return entry

    def finish_timing(self, name: str) -> Optional[float]:
        entry = self.timings.get(name)
        if entry is None or name not in self.phase_stack:
            logger.warning(f"Attempted to finish unknown timing: {name}")
            return None
        self.phase_stack.remove(name)
        duration = entry.finish()
        logger.info(f"OK {name} completed in {duration:.2f}s")
        return duration

    @contextmanager
    def time_operation(self, name: str, parent: Optional[str] = None, **metadata) -> Iterator[TimingEntry]:
        entry = self.start_timing(name, parent, **metadata)
        try:
            yield entry
        finally:
            self.finish_timing(name)

    def get_timing_summary(self) -> Dict[str, Any]:
        """Summarize completed phases, slowest first."""
        completed = [entry for entry in self.timings.values() if entry.duration is not None]
        completed.sort(key=lambda entry: entry.duration, reverse=True)
        return {
            "total_startup_time": time.time() - self.startup_start,
            "completed_operations": len(completed),
            "operations": [
                {
                    "name": entry.name,
                    "duration": entry.duration,
                    "parent": entry.parent,
                    "metadata": entry.metadata,
                }
                for entry in completed
            ],
        }

    def log_summary(self) -> None:
        summary = self.get_timing_summary()
        total = summary["total_startup_time"]

        logger.info("=" * 60)
        logger.info(f"Workflow server start-up: {total:.2f}s")
        for op in summary["operations"]:
            if op["parent"] is None:
                logger.info(f"  • {op['name']}: {op['duration']:.2f}s")
        if total > SLOW_STARTUP_SECONDS:
            logger.warning(f"Start-up took {total:.2f}s (over {SLOW_STARTUP_SECONDS:.0f}s)")
        logger.info("=" * 60)


_global_tracer: Optional[StartupTracer] = None


def get_global_tracer() -> StartupTracer:
    global _global_tracer
    if _global_tracer is None:
        _global_tracer = StartupTracer()
    return _global_tracer


def reset_global_tracer() -> None:
    global _global_tracer
    _global_tracer = None


def time_operation(name: str, parent: Optional[str] = None, **metadata):
    """Context manager timing a phase on the global tracer."""
    return get_global_tracer().time_operation(name, parent, **metadata)


def trace_startup_time(name: Optional[str] = None) -> Callable[[Callable], Callable]:
    """Decorator timing a sync or async function on the global tracer."""

    def decorator(func: Callable) -> Callable:
        operation_name = name or f"{func.__module__}.{func.__name__}"

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with time_operation(operation_name):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with time_operation(operation_name):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def log_startup_summary() -> None:
    get_global_tracer().log_summary()
