from .model import Graph, Node, Edge, TaskState
from .build import build_graph

__all__ = ["Graph", "Node", "Edge", "TaskState", "build_graph"]
