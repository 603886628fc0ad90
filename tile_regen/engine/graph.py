"""
Dependency graph ordering for a scheduling cycle.

Pipeline:
    affected keys -> build_dependency_map (filtered to the batch)
                  -> strongly_connected_components (iterative Tarjan)
                  -> condense (meta-graph over components)
                  -> Kahn's algorithm, dependencies first
                  -> ProcessingOrder

Edges read "a depends on b". Whenever a and b sit in different
components, b's component is processed before a's. Nodes that share a
component are mutually dependent and appear contiguously.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Generic, Hashable, Iterable, Mapping, Sequence, TypeVar

from tile_regen.engine.protocols import DependencyProvider
from tile_regen.models.chunk import ChunkKey

logger = logging.getLogger(__name__)

N = TypeVar("N", bound=Hashable)


@dataclass
class ProcessingOrder(Generic[N]):
    """Linear processing sequence plus the components it was built from.

    Attributes:
        keys: Every affected node exactly once
        components: Strongly connected components in processing order
    """

    keys: list[N] = field(default_factory=list)
    components: list[list[N]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self):
        return iter(self.keys)


def build_dependency_map(
    affected: Sequence[ChunkKey],
    provider: DependencyProvider | None = None,
) -> dict[ChunkKey, set[ChunkKey]]:
    """
    Resolve dependencies for one cycle, restricted to the affected set.

    The provider is called once. Edges pointing outside the affected set
    are dropped: dependency is only meaningful inside the current batch.

    Args:
        affected: Keys drained for this cycle
        provider: Optional callable mapping keys to the keys they depend on

    Returns:
        Mapping with an entry (possibly empty) for every affected key
    """
    affected_set = set(affected)
    result: dict[ChunkKey, set[ChunkKey]] = {key: set() for key in affected}

    if provider is None:
        return result

    try:
        provided = provider(list(affected)) or {}
    except Exception as e:
        logger.warning(
            f"Dependency provider failed, using no dependencies: {type(e).__name__}: {e}"
        )
        return result

    dropped = 0
    for key in affected:
        for dep in provided.get(key, ()) or ():
            if dep in affected_set:
                result[key].add(dep)
            else:
                dropped += 1

    if dropped:
        logger.debug(f"Dropped {dropped} dependency edge(s) outside the batch")
    return result


def strongly_connected_components(
    nodes: Sequence[N],
    edges: Mapping[N, Iterable[N]],
) -> list[list[N]]:
    """
    Tarjan's strongly connected components, without recursion.

    A work stack of (node, neighbor iterator) frames replaces the call
    stack, so graph size is not bounded by the interpreter's recursion
    limit. Neighbors outside ``nodes`` are ignored.

    Args:
        nodes: All nodes, in the order roots are tried
        edges: Node -> nodes it depends on

    Returns:
        Components in completion order (a component always completes
        after every component it depends on). Nodes inside a component
        are listed in discovery order.
    """
    position = {node: i for i, node in enumerate(nodes)}

    def neighbors(node: N) -> list[N]:
        # Sorted by input position so the result is deterministic
        return sorted(
            (w for w in edges.get(node, ()) if w in position),
            key=position.__getitem__,
        )

    index: dict[N, int] = {}
    lowlink: dict[N, int] = {}
    stack: list[N] = []
    on_stack: set[N] = set()
    components: list[list[N]] = []
    counter = 0

    for root in nodes:
        if root in index:
            continue

        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(neighbors(root)))]

        while work:
            v, remaining = work[-1]
            descended = False

            for w in remaining:
                if w not in index:
                    index[w] = lowlink[w] = counter
                    counter += 1
                    stack.append(w)
                    on_stack.add(w)
                    work.append((w, iter(neighbors(w))))
                    descended = True
                    break
                if w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])

            if descended:
                continue

            # v is finished: fold its low-link into its caller
            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[v])

            if lowlink[v] == index[v]:
                component: list[N] = []
                while True:
                    w = stack.pop()
                    on_stack.discard(w)
                    component.append(w)
                    if w == v:
                        break
                component.sort(key=index.__getitem__)
                components.append(component)

    return components


def condense(
    components: Sequence[Sequence[N]],
    edges: Mapping[N, Iterable[N]],
) -> dict[int, set[int]]:
    """
    Build the meta-graph over components.

    Component A depends on component B (A != B) when any node in A
    depends on any node in B. Edges to unknown nodes are ignored.

    Returns:
        Component index -> indices of components it depends on
    """
    owner: dict[N, int] = {}
    for i, component in enumerate(components):
        for node in component:
            owner[node] = i

    meta: dict[int, set[int]] = {i: set() for i in range(len(components))}
    for node, deps in edges.items():
        a = owner.get(node)
        if a is None:
            continue
        for dep in deps:
            b = owner.get(dep)
            if b is not None and b != a:
                meta[a].add(b)
    return meta


def _kahn(meta: Mapping[int, set[int]], count: int) -> list[int]:
    """Order components so each comes after everything it depends on."""
    remaining = {i: len(meta.get(i, ())) for i in range(count)}
    dependents: dict[int, list[int]] = {i: [] for i in range(count)}
    for a, deps in meta.items():
        for b in deps:
            dependents[b].append(a)

    ready = deque(i for i in range(count) if remaining[i] == 0)
    order: list[int] = []
    while ready:
        current = ready.popleft()
        order.append(current)
        for dependent in sorted(dependents[current]):
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                ready.append(dependent)
    return order


def topological_order(
    affected: Sequence[N],
    dependencies: Mapping[N, Iterable[N]],
) -> ProcessingOrder[N]:
    """
    Linearize a dependency graph that may contain cycles.

    Cycles are collapsed into components first, so the component order is
    always complete. If bookkeeping ever leaves a component out, it is
    appended at the end rather than dropped.

    Args:
        affected: Nodes to order (duplicates are ignored)
        dependencies: Node -> nodes it depends on

    Returns:
        ProcessingOrder containing every affected node exactly once
    """
    nodes = list(dict.fromkeys(affected))
    if not nodes:
        return ProcessingOrder()

    components = strongly_connected_components(nodes, dependencies)
    meta = condense(components, dependencies)
    component_order = _kahn(meta, len(components))

    if len(component_order) != len(components):
        emitted = set(component_order)
        missing = [i for i in range(len(components)) if i not in emitted]
        logger.warning(
            f"Topological order missed {len(missing)} component(s); appending them"
        )
        component_order.extend(missing)

    ordered_components = [components[i] for i in component_order]
    keys = [node for component in ordered_components for node in component]

    cyclic = sum(1 for c in ordered_components if len(c) > 1)
    logger.debug(
        f"Ordered {len(keys)} node(s) in {len(ordered_components)} component(s), "
        f"{cyclic} cyclic"
    )
    return ProcessingOrder(keys=keys, components=ordered_components)
