"""Topological ordering for engine node graphs."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable


def toposort(count: int, edges: Iterable[tuple[int, int]]) -> list[int]:
    """Return node indices ``0..count-1`` in topological order (Kahn's algorithm).

    Uses lowest-index tie-breaking for deterministic output.
    Raises ValueError if an edge references an unknown node or the graph
    contains a cycle.
    """
    forward = _adjacency(count, edges)
    in_degree = [0] * count
    for targets in forward.values():
        for dst in targets:
            in_degree[dst] += 1

    queue = [i for i in range(count) if in_degree[i] == 0]
    result: list[int] = []

    while queue:
        current = queue.pop(0)
        result.append(current)
        for dependent in forward[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                # Insert into sorted position
                _insort(queue, dependent)

    if len(result) < count:
        cycle_nodes = [str(i) for i in range(count) if in_degree[i] > 0]
        raise ValueError(f"Graph contains a cycle through nodes: {', '.join(cycle_nodes)}")

    return result


def cycle_members(count: int, edges: Iterable[tuple[int, int]]) -> set[int]:
    """Return the indices of every node that can reach itself."""
    forward = _adjacency(count, edges)
    members: set[int] = set()
    for start in range(count):
        stack = list(forward[start])
        seen: set[int] = set()
        while stack:
            current = stack.pop()
            if current == start:
                members.add(start)
                break
            if current in seen:
                continue
            seen.add(current)
            stack.extend(forward[current])
    return members


def _adjacency(count: int, edges: Iterable[tuple[int, int]]) -> dict[int, list[int]]:
    forward: dict[int, list[int]] = defaultdict(list)
    for src, dst in sorted(set(edges)):
        if not (0 <= src < count and 0 <= dst < count):
            raise ValueError(f"Edge {src} -> {dst} references an unknown node")
        forward[src].append(dst)
    return forward


def _insort(lst: list[int], val: int) -> None:
    """Insert val into sorted list lst, maintaining sort order."""
    lo, hi = 0, len(lst)
    while lo < hi:
        mid = (lo + hi) // 2
        if lst[mid] < val:
            lo = mid + 1
        else:
            hi = mid
    lst.insert(lo, val)
