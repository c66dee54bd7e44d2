import asyncio

import pytest

from ledger_pulse.spec.task import Task, task
from ledger_pulse.runtime.engine import Engine
from ledger_pulse.runtime.events import (
    RunFinished,
    TaskDiscarded,
    TaskExecutionFinished,
    TaskExecutionStarted,
)
from ledger_pulse.runtime.exceptions import CyclicDependency, GraphTimeout, TaskCancelled


class Boom(Exception):
    pass


@pytest.mark.asyncio
async def test_dependent_task_starts_only_after_its_dependency_is_recorded(bus_and_spy):
    bus, spy = bus_and_spy
    timeline = []

    @task
    async def a(_):
        timeline.append("a:start")
        await asyncio.sleep(0.01)
        timeline.append("a:end")
        return 1

    @task(depends_on=["a"])
    async def b(results):
        timeline.append("b:start")
        return results["a"] + 1

    @task
    async def c(_):
        timeline.append("c:start")
        return "c"

    results = await Engine(bus=bus).run([a, b, c])

    assert results == {"a": 1, "b": 2, "c": "c"}
    assert timeline.index("b:start") > timeline.index("a:end")
    finished = [e.task_name for e in spy.events_of_type(TaskExecutionFinished)]
    assert finished.index("a") < finished.index("b")


@pytest.mark.asyncio
async def test_independent_tasks_run_concurrently():
    gate = asyncio.Event()

    @task
    async def waiter(_):
        # Only completes if `opener` runs while this task is suspended
        await asyncio.wait_for(gate.wait(), timeout=1)
        return "waited"

    @task
    async def opener(_):
        gate.set()
        return "opened"

    results = await Engine().run([waiter, opener])

    assert results == {"waiter": "waited", "opener": "opened"}


@pytest.mark.asyncio
async def test_task_sees_only_its_declared_dependencies():
    seen = {}

    @task
    def first(_):
        return "first"

    @task
    def unrelated(_):
        return "unrelated"

    @task(depends_on=["first"])
    def second(results):
        seen.update(results)
        with pytest.raises(TypeError):
            results["injected"] = True  # read-only view
        return "second"

    await Engine().run([first, unrelated, second])

    assert seen == {"first": "first"}


@pytest.mark.asyncio
async def test_each_task_runs_exactly_once():
    calls = []

    def make(name, deps=()):
        def run(_):
            calls.append(name)
            return name

        return Task(name, run, depends_on=deps)

    tasks = [
        make("root"),
        make("left", ["root"]),
        make("right", ["root"]),
        make("join", ["left", "right"]),
    ]

    results = await Engine().run(tasks)

    assert sorted(calls) == ["join", "left", "right", "root"]
    assert set(results) == {"root", "left", "right", "join"}


@pytest.mark.asyncio
async def test_first_failure_is_raised_and_no_result_map_returned(bus_and_spy):
    bus, spy = bus_and_spy

    @task
    async def a(_):
        raise Boom("a failed")

    @task
    async def b(_):
        await asyncio.sleep(0.01)
        return "b"

    with pytest.raises(Boom, match="a failed"):
        await Engine(bus=bus).run([a, b])

    # The sibling finishes on its own afterwards, its result thrown away
    await asyncio.sleep(0.05)
    discarded = spy.events_of_type(TaskDiscarded)
    assert [e.task_name for e in discarded] == ["b"]
    run_finished = spy.events_of_type(RunFinished)[-1]
    assert run_finished.status == "Failed"
    assert "Boom" in run_finished.error


@pytest.mark.asyncio
async def test_first_failure_is_raised_without_waiting_for_siblings(bus_and_spy):
    bus, spy = bus_and_spy
    release = asyncio.Event()

    @task
    async def fails(_):
        raise Boom("cache down")

    @task
    async def slow_query(_):
        await release.wait()
        return "rows"

    # Would time out if the engine kept waiting for `slow_query`
    with pytest.raises(Boom, match="cache down"):
        await asyncio.wait_for(Engine(bus=bus).run([fails, slow_query]), timeout=1)

    assert spy.events_of_type(TaskDiscarded) == []

    release.set()
    await asyncio.sleep(0.01)

    discarded = spy.events_of_type(TaskDiscarded)
    assert [e.task_name for e in discarded] == ["slow_query"]


@pytest.mark.asyncio
async def test_no_new_task_starts_after_a_failure(bus_and_spy):
    bus, spy = bus_and_spy
    started_after_failure = []

    @task
    async def fails(_):
        raise Boom()

    @task
    async def slow(_):
        await asyncio.sleep(0.01)
        return "slow"

    @task(depends_on=["slow"])
    async def after_slow(_):
        started_after_failure.append(True)

    with pytest.raises(Boom):
        await Engine(bus=bus).run([fails, slow, after_slow])

    # `slow` completes after the failure, its dependent is still never started
    await asyncio.sleep(0.05)
    assert started_after_failure == []
    started = {e.task_name for e in spy.events_of_type(TaskExecutionStarted)}
    assert started == {"fails", "slow"}


@pytest.mark.asyncio
async def test_cycle_fails_before_any_task_executes(bus_and_spy):
    bus, spy = bus_and_spy
    ran = []

    x = Task("x", lambda _: ran.append("x"), depends_on={"y"})
    y = Task("y", lambda _: ran.append("y"), depends_on={"x"})
    free = Task("free", lambda _: ran.append("free"))

    with pytest.raises(CyclicDependency):
        await Engine(bus=bus).run([x, y, free])

    assert ran == []
    assert spy.events_of_type(TaskExecutionStarted) == []


@pytest.mark.asyncio
async def test_timeout_cancels_running_tasks(bus_and_spy):
    bus, spy = bus_and_spy
    cancelled = []

    @task
    async def hangs(_):
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append("hangs")
            raise

    @task
    def quick(_):
        return "quick"

    with pytest.raises(GraphTimeout) as exc_info:
        await Engine(bus=bus).run([hangs, quick], timeout=0.05)

    assert exc_info.value.running == ["hangs"]
    assert cancelled == ["hangs"]
    assert spy.events_of_type(RunFinished)[-1].status == "TimedOut"


@pytest.mark.asyncio
async def test_sync_and_async_tasks_mix():
    @task
    def sync_value(_):
        return 20

    @task(depends_on=["sync_value"])
    async def async_value(results):
        await asyncio.sleep(0)
        return results["sync_value"] + 1

    results = await Engine().run([sync_value, async_value])

    assert results["async_value"] == 21


@pytest.mark.asyncio
async def test_task_cancelled_from_within_is_a_task_failure(bus_and_spy):
    bus, spy = bus_and_spy

    @task
    async def gives_up(_):
        raise asyncio.CancelledError()

    with pytest.raises(TaskCancelled) as exc_info:
        await Engine(bus=bus).run([gives_up])

    assert exc_info.value.task_name == "gives_up"
    assert spy.events_of_type(RunFinished)[-1].status == "Failed"
