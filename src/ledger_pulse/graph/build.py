from typing import Iterable

from ledger_pulse.graph.model import Graph, Node, Edge
from ledger_pulse.spec.task import Task
from ledger_pulse.runtime.exceptions import DuplicateTask, UnknownDependency


def build_graph(tasks: Iterable[Task]) -> Graph:
    """
    Builds a dependency graph from a collection of tasks.

    Every name in a task's `depends_on` must belong to another task of the
    same collection. Cycles are not detected here; that is the solver's job.
    """
    graph = Graph()
    tasks = list(tasks)

    # 1. Register nodes
    for t in tasks:
        if t.name in graph:
            raise DuplicateTask(t.name)
        graph.add_node(Node(id=t.name, task=t))

    # 2. Wire edges in a stable order
    for t in tasks:
        target = graph.get_node(t.name)
        for dep in sorted(t.depends_on):
            source = graph.get_node(dep)
            if source is None:
                raise UnknownDependency(t.name, dep)
            graph.add_edge(Edge(source=source, target=target))

    return graph
