"""
Graph utilities for workflow traversal.

All functions operate on Node / Edge lists and are pure (no side effects,
no I/O) so they can be called safely from the validator, the CLI and the
execution engine alike.
"""

from __future__ import annotations

from collections import deque

from flowrun.types import Edge, Node, NodeKind, WorkflowGraph
from flowrun.workflows.template import sanitize_node_id

__all__ = [
    "sanitize_node_id",
    "get_trigger_nodes",
    "edges_by_source",
    "reachable_from",
    "find_cycles",
]


# ── Traversal helpers ─────────────────────────────────────────────────────────


def get_trigger_nodes(graph: WorkflowGraph) -> list[Node]:
    """Return trigger nodes with no incoming edge, in declaration order."""
    target_ids = {e.target for e in graph.edges}
    return [n for n in graph.nodes if n.kind == NodeKind.TRIGGER and n.id not in target_ids]


def edges_by_source(edges: list[Edge]) -> dict[str, list[Edge]]:
    """Index outgoing edges by source id, preserving edge order.

    Order matters: for a condition node the first edge is the true branch and
    the second the false branch.
    """
    index: dict[str, list[Edge]] = {}
    for edge in edges:
        index.setdefault(edge.source, []).append(edge)
    return index


def reachable_from(start_ids: list[str], edges: list[Edge]) -> set[str]:
    """BFS: every node id reachable from *start_ids* (inclusive)."""
    index = edges_by_source(edges)
    seen: set[str] = set()
    queue = deque(start_ids)
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        for edge in index.get(current, []):
            if edge.target not in seen:
                queue.append(edge.target)
    return seen


def find_cycles(graph: WorkflowGraph) -> list[list[str]]:
    """Return one representative path per back edge found by DFS.

    Cycles are legal: the engine's visited set runs each node at most once.
    Validation reports them as warnings.
    """
    index = edges_by_source(graph.edges)
    cycles: list[list[str]] = []
    state: dict[str, int] = {}  # 1 = on stack, 2 = done

    def _dfs(node_id: str, path: list[str]) -> None:
        state[node_id] = 1
        path.append(node_id)
        for edge in index.get(node_id, []):
            nxt = edge.target
            if state.get(nxt) == 1:
                cycles.append(path[path.index(nxt):] + [nxt])
            elif nxt not in state:
                _dfs(nxt, path)
        path.pop()
        state[node_id] = 2

    for node in graph.nodes:
        if node.id not in state:
            _dfs(node.id, [])
    return cycles
