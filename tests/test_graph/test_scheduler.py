"""Tests for inspireflow.graph.scheduler."""

from __future__ import annotations

import random

import pytest

from inspireflow.core.errors import CycleError
from inspireflow.graph.scheduler import find_cycle_members, topological_sort, upstream_ids
from inspireflow.graph.types import Edge, Node


def _nodes(*ids: str) -> list[Node]:
    return [Node(i, "textGen") for i in ids]


def _ids(nodes: list[Node]) -> list[str]:
    return [n.id for n in nodes]


class TestTopologicalSort:
    def test_chain(self) -> None:
        nodes = _nodes("c", "b", "a")
        edges = [Edge("a", "b"), Edge("b", "c")]
        assert _ids(topological_sort(nodes, edges)) == ["a", "b", "c"]

    def test_ties_follow_declaration_order(self) -> None:
        nodes = _nodes("x", "y", "z")
        assert _ids(topological_sort(nodes, [])) == ["x", "y", "z"]

    def test_diamond(self) -> None:
        nodes = _nodes("a", "b", "c", "d")
        edges = [Edge("a", "b"), Edge("a", "c"), Edge("b", "d"), Edge("c", "d")]
        assert _ids(topological_sort(nodes, edges)) == ["a", "b", "c", "d"]

    def test_unknown_edges_ignored(self) -> None:
        nodes = _nodes("a", "b")
        edges = [Edge("ghost", "a"), Edge("a", "b")]
        assert _ids(topological_sort(nodes, edges)) == ["a", "b"]

    def test_random_dags_respect_edges(self) -> None:
        rng = random.Random(7)
        for _ in range(50):
            count = rng.randint(2, 12)
            ids = [f"n{i}" for i in range(count)]
            edges = [
                Edge(ids[i], ids[j])
                for i in range(count)
                for j in range(i + 1, count)
                if rng.random() < 0.3
            ]
            shuffled = _nodes(*ids)
            rng.shuffle(shuffled)
            position = {n.id: i for i, n in enumerate(topological_sort(shuffled, edges))}
            assert len(position) == count
            for edge in edges:
                assert position[edge.source] < position[edge.target]


class TestCycles:
    def test_cycle_rejected(self) -> None:
        nodes = _nodes("a", "b", "c")
        edges = [Edge("a", "b"), Edge("b", "c"), Edge("c", "b")]
        with pytest.raises(CycleError) as exc_info:
            topological_sort(nodes, edges)
        assert exc_info.value.node_ids == ["b", "c"]

    def test_self_loop(self) -> None:
        with pytest.raises(CycleError):
            topological_sort(_nodes("a"), [Edge("a", "a")])

    def test_rejection_is_deterministic(self) -> None:
        nodes = _nodes("a", "b", "c", "d")
        edges = [Edge("a", "b"), Edge("b", "a"), Edge("b", "d")]
        first = find_cycle_members(nodes, edges)
        assert first == find_cycle_members(nodes, edges)
        # d sits behind the cycle and cannot be placed either
        assert first == ["a", "b", "d"]

    def test_members_match_error(self) -> None:
        nodes = _nodes("x", "a", "b", "c")
        edges = [Edge("x", "a"), Edge("a", "b"), Edge("b", "c"), Edge("c", "a")]
        with pytest.raises(CycleError) as exc_info:
            topological_sort(nodes, edges)
        assert exc_info.value.node_ids == find_cycle_members(nodes, edges) == ["a", "b", "c"]

    def test_acyclic_has_no_members(self) -> None:
        assert find_cycle_members(_nodes("a", "b"), [Edge("a", "b")]) == []


def test_upstream_ids() -> None:
    edges = [Edge("a", "c"), Edge("b", "c"), Edge("a", "c", "text", "image"), Edge("c", "d")]
    assert upstream_ids("c", edges) == ["a", "b"]
