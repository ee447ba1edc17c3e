"""
Topological sequencing of flowsheet blocks.

Depth-first search over process blocks only.  A re-entry into a block that
is still on the DFS path is a back edge: it is recorded and not followed,
so the traversal always terminates.  The reverse finish order is a valid
calculation order for the acyclic part of the graph.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from . import schemas
from .unit_operations import NON_PROCESS_TYPES

_VISITING = 1
_VISITED = 2


@dataclass
class SequenceResult:
    order: List[str]
    back_edges: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def has_cycle(self) -> bool:
        return bool(self.back_edges)


def build_adjacency(graph: schemas.FlowsheetGraph) -> Dict[str, List[str]]:
    process = [b.id for b in graph.blocks if b.type not in NON_PROCESS_TYPES]
    members = set(process)
    adj: Dict[str, List[str]] = {block_id: [] for block_id in process}
    for s in graph.streams:
        u, v = s.source.block_id, s.target.block_id
        if u in members and v in members and v not in adj[u]:
            adj[u].append(v)
    return adj


def sequence(graph: schemas.FlowsheetGraph) -> SequenceResult:
    """Order process blocks from feeds to products."""
    adj = build_adjacency(graph)
    state: Dict[str, int] = {}
    finished: List[str] = []
    back_edges: List[Tuple[str, str]] = []

    for root in adj:
        if root in state:
            continue
        state[root] = _VISITING
        stack = [(root, iter(adj[root]))]
        while stack:
            node, children = stack[-1]
            advanced = False
            for child in children:
                mark = state.get(child)
                if mark is None:
                    state[child] = _VISITING
                    stack.append((child, iter(adj[child])))
                    advanced = True
                    break
                if mark == _VISITING:
                    back_edges.append((node, child))
            if not advanced:
                state[node] = _VISITED
                finished.append(node)
                stack.pop()

    finished.reverse()
    return SequenceResult(order=finished, back_edges=back_edges)
