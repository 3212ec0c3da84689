"""Execution order for workflow graphs (Kahn's algorithm).

Ties between independent nodes go to the node declared first, so a graph
always runs in the same order. Cycles are rejected as a whole: nothing runs
when any node cannot be placed.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Sequence

from inspireflow.core.errors import CycleError
from inspireflow.graph.types import Edge, Node
from inspireflow.utils.logging import get_logger

log = get_logger(__name__)


def _known_edges(nodes: Sequence[Node], edges: Iterable[Edge]) -> list[Edge]:
    ids = {n.id for n in nodes}
    known: list[Edge] = []
    for edge in edges:
        if edge.source in ids and edge.target in ids:
            known.append(edge)
        else:
            log.warning("edge_ignored_unknown_node", source=edge.source, target=edge.target)
    return known


def _kahn(nodes: Sequence[Node], edges: list[Edge]) -> tuple[list[Node], list[str]]:
    index = {n.id: i for i, n in enumerate(nodes)}
    in_degree = {n.id: 0 for n in nodes}
    successors: dict[str, list[str]] = {n.id: [] for n in nodes}
    for edge in edges:
        in_degree[edge.target] += 1
        successors[edge.source].append(edge.target)

    ready = [index[nid] for nid, deg in in_degree.items() if deg == 0]
    heapq.heapify(ready)
    ordered: list[Node] = []

    while ready:
        node = nodes[heapq.heappop(ready)]
        ordered.append(node)
        for succ in successors[node.id]:
            in_degree[succ] -= 1
            if in_degree[succ] == 0:
                heapq.heappush(ready, index[succ])

    placed = {n.id for n in ordered}
    unplaced = [n.id for n in nodes if n.id not in placed]
    return ordered, unplaced


def topological_sort(nodes: Sequence[Node], edges: Iterable[Edge]) -> list[Node]:
    """Order ``nodes`` so every node follows all of its upstream nodes.

    Raises:
        CycleError: Some nodes sit on (or behind) a cycle, self loops included.
    """
    ordered, unplaced = _kahn(nodes, _known_edges(nodes, edges))
    if unplaced:
        raise CycleError(unplaced)
    return ordered


def find_cycle_members(nodes: Sequence[Node], edges: Iterable[Edge]) -> list[str]:
    """Ids of nodes that cannot be ordered (empty for an acyclic graph).

    Same ids as ``CycleError.node_ids`` from ``topological_sort``, without
    raising, for callers that mark the offending nodes before a run.
    """
    _, unplaced = _kahn(nodes, _known_edges(nodes, edges))
    return unplaced


def upstream_ids(node_id: str, edges: Iterable[Edge]) -> list[str]:
    """Direct upstream node ids of ``node_id`` in edge order, without duplicates."""
    seen: list[str] = []
    for edge in edges:
        if edge.target == node_id and edge.source not in seen:
            seen.append(edge.source)
    return seen
