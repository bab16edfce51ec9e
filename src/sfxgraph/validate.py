from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

from pydantic import TypeAdapter

from sfxgraph.models import OUTPUT, Node, SoundDescription

_NODES_ADAPTER: TypeAdapter[tuple[Node, ...]] = TypeAdapter(tuple[Node, ...])


class ConnectionIssue(str):
    """A connection that building a SoundDescription would silently drop.

    Subclasses ``str`` so issues print and join like plain messages while
    still carrying structured fields.
    """

    kind: str  # "missing_node" | "not_an_input"
    source: int
    target: int

    def __new__(cls, kind: str, message: str, *, source: int, target: int) -> ConnectionIssue:
        return super().__new__(cls, message)

    def __init__(self, kind: str, message: str, *, source: int, target: int) -> None:
        self.kind = kind
        self.source = source
        self.target = target


def find_dropped_connections(nodes: Sequence[Node]) -> list[ConnectionIssue]:
    """Report every connection in *nodes* that is neither OUTPUT nor an input node.

    Issues are ordered by source node, then target.
    """
    issues: list[ConnectionIssue] = []
    for src, node in enumerate(nodes):
        for target in sorted(node.connections):
            if target == OUTPUT:
                continue
            if not 0 <= target < len(nodes):
                issues.append(
                    ConnectionIssue(
                        "missing_node",
                        f"Node {src} connects to missing node {target}",
                        source=src,
                        target=target,
                    )
                )
            elif not nodes[target].accepts_input():
                issues.append(
                    ConnectionIssue(
                        "not_an_input",
                        f"Node {src} connects to node {target} ({nodes[target].type}), "
                        "which accepts no input",
                        source=src,
                        target=target,
                    )
                )
    return issues


def load_sound(path: str | Path) -> tuple[SoundDescription, list[ConnectionIssue]]:
    """Load a sound JSON file, returning it with the connections it lost on load."""
    data = json.loads(Path(path).read_text())
    sound = SoundDescription.model_validate(data)
    raw_nodes = _NODES_ADAPTER.validate_python(data.get("nodes", []))
    return sound, find_dropped_connections(raw_nodes)
