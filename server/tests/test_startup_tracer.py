import pytest

from server.startup_tracer import StartupTracer, get_global_tracer, reset_global_tracer, trace_startup_time


@pytest.fixture(autouse=True)
def fresh_global_tracer():
    reset_global_tracer()
    yield
    reset_global_tracer()


def test_nested_phases_record_parent():
    tracer = StartupTracer()
    with tracer.time_operation("Server Setup"):
        with tracer.time_operation("Configuration", source="env"):
            pass

    summary = tracer.get_timing_summary()
    by_name = {op["name"]: op for op in summary["operations"]}
    assert summary["completed_operations"] == 2
    assert by_name["Configuration"]["parent"] == "Server Setup"
    assert by_name["Configuration"]["metadata"] == {"source": "env"}
    assert by_name["Server Setup"]["parent"] is None


def test_finish_unknown_timing():
    assert StartupTracer().finish_timing("never started") is None


def test_decorator_times_sync_function():
    @trace_startup_time("Wiring")
    def wire():
        return "wired"

    assert wire() == "wired"
    assert get_global_tracer().timings["Wiring"].duration is not None


@pytest.mark.asyncio
async def test_decorator_times_async_function():
    @trace_startup_time()
    async def start_runtime():
        return 42

    assert await start_runtime() == 42
    names = list(get_global_tracer().timings)
    assert names == [f"{__name__}.start_runtime"]
