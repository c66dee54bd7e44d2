import asyncio
import functools
import time
from types import MappingProxyType
from typing import Any, Dict, Iterable, Optional, Set
from uuid import uuid4

from ledger_pulse.graph.build import build_graph
from ledger_pulse.graph.model import Graph, Node, TaskState
from ledger_pulse.spec.task import Task
from ledger_pulse.spec.protocols import Solver
from ledger_pulse.adapters.solvers.native import NativeSolver
from ledger_pulse.runtime.bus import MessageBus
from ledger_pulse.runtime.events import (
    RunStarted,
    RunFinished,
    TaskExecutionStarted,
    TaskExecutionFinished,
    TaskDiscarded,
)
from ledger_pulse.runtime.exceptions import GraphTimeout, TaskCancelled


class Engine:
    """
    Runs a set of interdependent tasks concurrently.

    A task starts as soon as every task it depends on is done. The first
    failure stops the scheduling of new tasks and is raised to the caller
    right away. Tasks still running are left to finish on their own; their
    results are discarded.
    """

    def __init__(
        self,
        solver: Optional[Solver] = None,
        bus: Optional[MessageBus] = None,
    ):
        self.solver = solver or NativeSolver()
        self.bus = bus or MessageBus()
        # Tasks left running by a failed run, referenced until they finish
        self._detached: Set["asyncio.Future[Any]"] = set()

    async def run(
        self, tasks: Iterable[Task], timeout: Optional[float] = None
    ) -> Dict[str, Any]:
        """
        Executes `tasks` and returns the result map keyed by task name.

        `timeout` bounds the whole run in seconds. When it expires, running
        tasks are cancelled and GraphTimeout is raised.
        """
        run_id = str(uuid4())
        start_time = time.time()
        tasks = list(tasks)

        self.bus.publish(RunStarted(run_id=run_id, task_names=[t.name for t in tasks]))

        try:
            # 1. Build and validate before anything executes
            graph = build_graph(tasks)
            self.solver.resolve(graph)

            # 2. Execute
            graph_run = _GraphRun(graph, run_id, self.bus, self._detached)
            if timeout is None:
                results = await graph_run.execute()
            else:
                try:
                    results = await asyncio.wait_for(graph_run.execute(), timeout)
                except asyncio.TimeoutError:
                    running = [n.id for n in graph.nodes if n.state is TaskState.RUNNING]
                    raise GraphTimeout(timeout, running) from None

        except Exception as e:
            status = "TimedOut" if isinstance(e, GraphTimeout) else "Failed"
            self.bus.publish(
                RunFinished(
                    run_id=run_id,
                    status=status,
                    duration=time.time() - start_time,
                    error=f"{type(e).__name__}: {e}",
                )
            )
            raise

        self.bus.publish(
            RunFinished(
                run_id=run_id, status="Succeeded", duration=time.time() - start_time
            )
        )
        return results


class _GraphRun:
    """Scheduling state for a single execution of a validated graph."""

    def __init__(
        self,
        graph: Graph,
        run_id: str,
        bus: MessageBus,
        detached: Set["asyncio.Future[Any]"],
    ):
        self.graph = graph
        self.run_id = run_id
        self.bus = bus
        self._detached = detached
        self.results: Dict[str, Any] = {}
        self._in_flight: Dict["asyncio.Future[Any]", Node] = {}
        self._error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self._error is not None

    async def execute(self) -> Dict[str, Any]:
        self._launch_ready()
        try:
            while self._in_flight and not self.failed:
                done, _ = await asyncio.wait(
                    list(self._in_flight), return_when=asyncio.FIRST_COMPLETED
                )
                for fut in done:
                    self._settle(self._in_flight.pop(fut), fut)
                if not self.failed:
                    self._launch_ready()
        except asyncio.CancelledError:
            for fut in self._in_flight:
                fut.cancel()
            await asyncio.gather(*self._in_flight, return_exceptions=True)
            raise

        if self._error is not None:
            self._detach_in_flight()
            raise self._error
        return dict(self.results)

    def _detach_in_flight(self):
        for fut, node in self._in_flight.items():
            self._detached.add(fut)
            fut.add_done_callback(functools.partial(self._settle_detached, node))
        self._in_flight.clear()

    def _settle_detached(self, node: Node, fut: "asyncio.Future[Any]"):
        self._detached.discard(fut)
        self._settle(node, fut)

    def _launch_ready(self):
        for node in self.graph.nodes:
            if node.state is not TaskState.PENDING:
                continue
            if all(self.graph.get_node(d).state is TaskState.DONE for d in node.depends_on):
                node.state = TaskState.RUNNING
                fut = asyncio.ensure_future(self._invoke(node, self._view_for(node)))
                self._in_flight[fut] = node

    def _view_for(self, node: Node) -> MappingProxyType:
        # A task only ever sees the results it declared a dependency on
        return MappingProxyType({d: self.results[d] for d in node.depends_on})

    async def _invoke(self, node: Node, upstream: MappingProxyType) -> Any:
        start = time.time()
        self.bus.publish(
            TaskExecutionStarted(run_id=self.run_id, task_name=node.name)
        )
        try:
            if node.task.is_async:
                result = await node.task.run(upstream)
            else:
                result = node.task.run(upstream)
        except Exception as e:
            self.bus.publish(
                TaskExecutionFinished(
                    run_id=self.run_id,
                    task_name=node.name,
                    status="Failed",
                    duration=time.time() - start,
                    error=f"{type(e).__name__}: {e}",
                )
            )
            raise

        self.bus.publish(
            TaskExecutionFinished(
                run_id=self.run_id,
                task_name=node.name,
                status="Succeeded",
                duration=time.time() - start,
                result_preview=repr(result)[:100],  # Truncate long results
            )
        )
        return result

    def _settle(self, node: Node, fut: "asyncio.Future[Any]"):
        if fut.cancelled():
            error: Optional[BaseException] = TaskCancelled(node.name)
        else:
            error = fut.exception()
        if error is not None:
            node.state = TaskState.FAILED
            if self._error is None:
                self._error = error
            return

        if self.failed:
            # Finished after a sibling failed: the result is not used
            node.state = TaskState.DONE
            self.bus.publish(
                TaskDiscarded(run_id=self.run_id, task_name=node.name)
            )
            return

        self.results[node.id] = fut.result()
        node.state = TaskState.DONE
