from typing import Iterable

from ..spec.task import Task
from ..graph.build import build_graph
from ..adapters.solvers.native import NativeSolver


def visualize(tasks: Iterable[Task]) -> str:
    """
    Builds the dependency graph for a set of tasks and returns its
    representation in the Graphviz DOT language format. Tasks of the same
    stage share a rank.
    """
    graph = build_graph(tasks)
    plan = NativeSolver().resolve(graph)

    dot_parts = [
        "digraph LedgerPulse {",
        '  rankdir="TB";',
        '  node [shape=box, style="rounded,filled", fillcolor=white];',
    ]

    # 1. Define Nodes, one rank per stage
    for index, stage in enumerate(plan):
        names = " ".join(f'"{node.id}";' for node in stage)
        dot_parts.append(f"  subgraph stage_{index} {{ rank=same; {names} }}")

    # 2. Define Edges
    for edge in graph.edges:
        dot_parts.append(f'  "{edge.source.id}" -> "{edge.target.id}";')

    dot_parts.append("}")
    return "\n".join(dot_parts)
