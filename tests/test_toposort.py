"""Tests for topological sorting of engine node graphs."""

from __future__ import annotations

import pytest

from sfxgraph.toposort import cycle_members, toposort


class TestToposortOrdering:
    """Verify topological ordering constraints."""

    def test_chain(self) -> None:
        assert toposort(3, [(2, 1), (1, 0)]) == [2, 1, 0]

    def test_sources_before_sinks(self) -> None:
        # two sources into a gain, gain into destination 0
        order = toposort(4, [(1, 3), (2, 3), (3, 0)])
        assert order.index(1) < order.index(3)
        assert order.index(2) < order.index(3)
        assert order.index(3) < order.index(0)

    def test_lowest_index_tie_break(self) -> None:
        assert toposort(4, []) == [0, 1, 2, 3]
        assert toposort(4, [(3, 0)]) == [1, 2, 3, 0]

    def test_duplicate_edges_ignored(self) -> None:
        assert toposort(2, [(1, 0), (1, 0)]) == [1, 0]


class TestToposortEdgeCases:
    """Edge cases and error conditions."""

    def test_empty_graph(self) -> None:
        assert toposort(0, []) == []

    def test_cycle_raises(self) -> None:
        with pytest.raises(ValueError, match="cycle"):
            toposort(3, [(0, 1), (1, 2), (2, 1)])

    def test_self_loop_raises(self) -> None:
        with pytest.raises(ValueError, match="cycle"):
            toposort(1, [(0, 0)])

    def test_unknown_node_raises(self) -> None:
        with pytest.raises(ValueError, match="unknown node"):
            toposort(2, [(0, 5)])


class TestCycleMembers:
    def test_acyclic(self) -> None:
        assert cycle_members(3, [(0, 1), (1, 2)]) == set()

    def test_loop_and_downstream(self) -> None:
        # 1 <-> 2 loop feeding 3; 0 feeds the loop but is not on it
        assert cycle_members(4, [(0, 1), (1, 2), (2, 1), (2, 3)]) == {1, 2}

    def test_self_loop(self) -> None:
        assert cycle_members(2, [(1, 1), (0, 1)]) == {1}
