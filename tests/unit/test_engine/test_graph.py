"""Unit tests for dependency resolution and ordering.

Tests cover:
- Coverage: every affected key appears exactly once
- Ordering: dependencies come before dependents across components
- Cycle safety: cyclic keys are contiguous and the order is complete
- Provider failures and edges leaving the batch
- Deep chains without recursion
"""

import pytest

from tile_regen.engine.graph import (
    build_dependency_map,
    condense,
    strongly_connected_components,
    topological_order,
)
from tile_regen.models.chunk import ChunkKey


def key(cx: int, cy: int = 0, level: int = 1) -> ChunkKey:
    return ChunkKey(cx=cx, cy=cy, level=level)


class TestBuildDependencyMap:
    """Tests for build_dependency_map."""

    def test_no_provider_means_no_edges(self) -> None:
        affected = [key(0), key(1)]
        assert build_dependency_map(affected) == {key(0): set(), key(1): set()}

    def test_provider_called_once_with_affected(self) -> None:
        calls = []

        def provider(keys):
            calls.append(list(keys))
            return {key(1): {key(0)}}

        result = build_dependency_map([key(0), key(1)], provider)

        assert calls == [[key(0), key(1)]]
        assert result[key(1)] == {key(0)}

    def test_edges_outside_batch_are_dropped(self) -> None:
        def provider(keys):
            return {key(0): {key(9)}, key(1): {key(0), key(7)}}

        result = build_dependency_map([key(0), key(1)], provider)

        assert result == {key(0): set(), key(1): {key(0)}}

    def test_provider_failure_falls_back_to_no_dependencies(self, caplog) -> None:
        def provider(keys):
            raise RuntimeError("map not loaded")

        result = build_dependency_map([key(0), key(1)], provider)

        assert result == {key(0): set(), key(1): set()}
        assert "Dependency provider failed" in caplog.text


class TestStronglyConnectedComponents:
    """Tests for the iterative Tarjan implementation."""

    def test_acyclic_graph_gives_singletons_dependencies_first(self) -> None:
        # c depends on b, b depends on a
        edges = {"c": {"b"}, "b": {"a"}}
        components = strongly_connected_components(["c", "b", "a"], edges)
        assert components == [["a"], ["b"], ["c"]]

    def test_three_cycle_is_one_component(self) -> None:
        edges = {"a": {"b"}, "b": {"c"}, "c": {"a"}}
        components = strongly_connected_components(["a", "b", "c"], edges)
        assert components == [["a", "b", "c"]]

    def test_self_loop_is_singleton(self) -> None:
        components = strongly_connected_components(["a"], {"a": {"a"}})
        assert components == [["a"]]

    def test_unknown_neighbors_ignored(self) -> None:
        components = strongly_connected_components(["a"], {"a": {"zzz"}})
        assert components == [["a"]]


class TestCondense:
    """Tests for the component meta-graph."""

    def test_meta_edges_between_components_only(self) -> None:
        components = [["a", "b"], ["c"]]
        edges = {"a": {"b"}, "b": {"a"}, "c": {"a"}}
        assert condense(components, edges) == {0: set(), 1: {0}}


class TestTopologicalOrder:
    """Tests for topological_order."""

    def test_empty_input(self) -> None:
        order = topological_order([], {})
        assert order.keys == []
        assert order.components == []

    def test_no_dependencies_keeps_input_order(self) -> None:
        affected = [key(2), key(0), key(1)]
        order = topological_order(affected, {})
        assert order.keys == affected

    def test_duplicates_appear_once(self) -> None:
        order = topological_order([key(0), key(1), key(0)], {})
        assert order.keys == [key(0), key(1)]

    def test_dependency_precedes_dependent(self) -> None:
        # k0 depends on k2, k1 depends on k0
        deps = {key(0): {key(2)}, key(1): {key(0)}}
        order = topological_order([key(0), key(1), key(2)], deps)

        position = {k: i for i, k in enumerate(order.keys)}
        assert position[key(2)] < position[key(0)] < position[key(1)]

    def test_three_cycle_contiguous_and_complete(self) -> None:
        """A 3-cycle feeding an outside dependent stays contiguous."""
        a, b, c, d = key(0), key(1), key(2), key(3)
        deps = {a: {b}, b: {c}, c: {a}, d: {a}}

        order = topological_order([d, a, b, c], deps)

        assert sorted(order.keys, key=str) == sorted([a, b, c, d], key=str)
        assert len(order.keys) == 4
        cycle_positions = sorted(order.keys.index(k) for k in (a, b, c))
        assert cycle_positions == list(range(cycle_positions[0], cycle_positions[0] + 3))
        assert order.keys[-1] == d
        assert [len(comp) for comp in order.components] == [3, 1]

    def test_every_key_once_with_dense_cycles(self) -> None:
        keys = [key(i) for i in range(6)]
        deps = {k: {keys[(i + 1) % 6], keys[(i + 3) % 6]} for i, k in enumerate(keys)}

        order = topological_order(keys, deps)

        assert len(order.keys) == 6
        assert set(order.keys) == set(keys)

    def test_cross_component_edges_respected(self) -> None:
        a, b, c, d = key(0), key(1), key(2), key(3)
        # {a, b} cycle depends on {c, d} cycle
        deps = {a: {b, c}, b: {a}, c: {d}, d: {c}}

        order = topological_order([a, b, c, d], deps)

        position = {k: i for i, k in enumerate(order.keys)}
        assert max(position[c], position[d]) < min(position[a], position[b])

    @pytest.mark.slow
    def test_deep_chain_does_not_recurse(self) -> None:
        """A chain far longer than the recursion limit orders fine."""
        n = 5000
        keys = [key(i) for i in range(n)]
        deps = {keys[i]: {keys[i + 1]} for i in range(n - 1)}

        order = topological_order(keys, deps)

        assert order.keys == keys[::-1]
