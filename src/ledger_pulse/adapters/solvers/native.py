from collections import deque
from typing import Dict, List, Set

from ledger_pulse.graph.model import Graph, Node
from ledger_pulse.spec.protocols import ExecutionPlan
from ledger_pulse.runtime.exceptions import CyclicDependency


class NativeSolver:
    """
    A solver that uses topological sort (Kahn's algorithm) to validate a graph
    and group its nodes into stages of mutually independent tasks.
    """

    def resolve(self, graph: Graph) -> ExecutionPlan:
        """
        Resolves a dependency graph into a list of execution stages.

        Raises:
            CyclicDependency: If a cycle is detected in the graph.
        """
        adj: Dict[str, List[Node]] = {node.id: [] for node in graph.nodes}
        in_degree: Dict[str, int] = {node.id: 0 for node in graph.nodes}
        node_map: Dict[str, Node] = {node.id: node for node in graph.nodes}

        for edge in graph.edges:
            adj[edge.source.id].append(edge.target)
            in_degree[edge.target.id] += 1

        queue = deque([node.id for node in graph.nodes if in_degree[node.id] == 0])
        plan: ExecutionPlan = []
        processed: Set[str] = set()

        while queue:
            # Sort for deterministic output, useful for testing.
            stage_ids = sorted(queue)
            plan.append([node_map[nid] for nid in stage_ids])
            queue.clear()
            processed.update(stage_ids)

            for node_id in stage_ids:
                for neighbor in adj[node_id]:
                    in_degree[neighbor.id] -= 1
                    if in_degree[neighbor.id] == 0:
                        queue.append(neighbor.id)

        # If not all nodes were processed, a cycle must exist.
        if len(processed) != len(graph.nodes):
            remaining = [n.id for n in graph.nodes if n.id not in processed]
            raise CyclicDependency(_find_cycle(remaining, adj))

        return plan


def _find_cycle(remaining: List[str], adj: Dict[str, List[Node]]) -> List[str]:
    """
    Walks the unprocessed part of the graph and returns one cycle, with the
    starting name repeated at the end (e.g. ['x', 'y', 'x']).
    """
    candidates = set(remaining)
    visited: Set[str] = set()

    for start in sorted(candidates):
        if start in visited:
            continue
        path: List[str] = []
        on_path: Dict[str, int] = {}
        stack = [(start, iter(sorted(n.id for n in adj[start] if n.id in candidates)))]
        path.append(start)
        on_path[start] = 0
        visited.add(start)

        while stack:
            node_id, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                on_path.pop(path.pop())
                continue
            if child in on_path:
                return path[on_path[child]:] + [child]
            if child in visited:
                continue
            visited.add(child)
            on_path[child] = len(path)
            path.append(child)
            stack.append(
                (child, iter(sorted(n.id for n in adj[child] if n.id in candidates)))
            )

    # Unreachable when Kahn's algorithm left nodes unprocessed
    return sorted(candidates)
