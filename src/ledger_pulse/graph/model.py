from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional

from ledger_pulse.spec.task import Task


class TaskState(Enum):
    """Execution state of a single node within one graph run."""

    PENDING = auto()
    RUNNING = auto()
    DONE = auto()
    FAILED = auto()


@dataclass
class Node:
    """Represents a task in the dependency graph."""

    id: str
    task: Task
    state: TaskState = TaskState.PENDING

    @property
    def name(self) -> str:
        return self.task.name

    @property
    def depends_on(self):
        return self.task.depends_on

    def __hash__(self):
        return hash(self.id)


@dataclass
class Edge:
    """Represents a directed dependency: `target` consumes the result of `source`."""

    source: Node
    target: Node


@dataclass
class Graph:
    """A container for nodes and edges representing one set of tasks."""

    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    _index: Dict[str, Node] = field(default_factory=dict, repr=False)

    def add_node(self, node: Node):
        if node.id not in self._index:
            self.nodes.append(node)
            self._index[node.id] = node

    def add_edge(self, edge: Edge):
        self.edges.append(edge)

    def get_node(self, node_id: str) -> Optional[Node]:
        return self._index.get(node_id)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._index
