from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Annotated, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

# Connection target meaning "the final output" rather than a node index.
OUTPUT = -1

RampKind = Literal["exponential", "linear", "instantaneous"]
Waveform = Literal["sine", "square", "sawtooth", "triangle"]
NodeKind = Literal["oscillator", "gain", "pink_noise"]

# Offset of the end time of a freshly added ramp past the current last ramp.
DEFAULT_RAMP_SPACING = 0.25


# ---------------------------------------------------------------------------
# Automation
# ---------------------------------------------------------------------------


class Ramp(BaseModel):
    """One automation segment: reach ``target_value`` at ``end_time`` seconds."""

    model_config = ConfigDict(frozen=True)

    kind: RampKind
    target_value: float
    end_time: float

    def with_kind(self, kind: RampKind) -> Ramp:
        return Ramp(kind=kind, target_value=self.target_value, end_time=self.end_time)

    def with_target_value(self, target_value: float) -> Ramp:
        return Ramp(kind=self.kind, target_value=target_value, end_time=self.end_time)

    def with_end_time(self, end_time: float) -> Ramp:
        return Ramp(kind=self.kind, target_value=self.target_value, end_time=end_time)


class Parameter(BaseModel):
    """An automated value: ``initial_value`` at time 0, then each ramp in turn.

    Ramps are always stored sorted by end time. The sort is stable, so ramps
    sharing an end time keep the order they were given in.
    """

    model_config = ConfigDict(frozen=True)

    initial_value: float
    ramps: tuple[Ramp, ...] = ()

    @field_validator("ramps")
    @classmethod
    def _sort_ramps(cls, ramps: tuple[Ramp, ...]) -> tuple[Ramp, ...]:
        return tuple(sorted(ramps, key=lambda ramp: ramp.end_time))

    def last_value(self) -> float:
        return self.ramps[-1].target_value if self.ramps else self.initial_value

    def last_end_time(self) -> float:
        return self.ramps[-1].end_time if self.ramps else 0.0

    def with_initial_value(self, initial_value: float) -> Parameter:
        return Parameter(initial_value=initial_value, ramps=self.ramps)

    def with_ramps(self, ramps: Iterable[Ramp]) -> Parameter:
        return Parameter(initial_value=self.initial_value, ramps=tuple(ramps))

    def add_ramp(self, ramp: Ramp | None = None) -> Parameter:
        """Append a ramp; by default one that holds the last value a little longer."""
        if ramp is None:
            ramp = Ramp(
                kind="exponential",
                target_value=self.last_value(),
                end_time=self.last_end_time() + DEFAULT_RAMP_SPACING,
            )
        return self.with_ramps((*self.ramps, ramp))

    def replace_ramp(self, index: int, ramp: Ramp) -> Parameter:
        ramps = list(self.ramps)
        ramps[index] = ramp
        return self.with_ramps(ramps)

    def remove_ramp(self, index: int) -> Parameter:
        ramps = list(self.ramps)
        del ramps[index]
        return self.with_ramps(ramps)


# ---------------------------------------------------------------------------
# Node types (discriminated union on "type")
# ---------------------------------------------------------------------------


_N = TypeVar("_N", bound="_NodeBase")


class _NodeBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Each target is OUTPUT or the index of another node in the owning sound.
    connections: frozenset[int] = frozenset()

    @field_serializer("connections")
    def _serialize_connections(self, connections: frozenset[int]) -> list[int]:
        return sorted(connections)

    def accepts_input(self) -> bool:
        """Whether other nodes may connect into this one."""
        return False

    def with_connections(self: _N, connections: Iterable[int]) -> _N:
        return self.model_copy(update={"connections": frozenset(connections)})


class Oscillator(_NodeBase):
    type: Literal["oscillator"] = "oscillator"
    waveform: Waveform = "sine"
    frequency: Parameter

    def with_waveform(self, waveform: Waveform) -> Oscillator:
        return Oscillator(
            waveform=waveform, frequency=self.frequency, connections=self.connections
        )

    def with_frequency(self, frequency: Parameter) -> Oscillator:
        return Oscillator(
            waveform=self.waveform, frequency=frequency, connections=self.connections
        )


class Gain(_NodeBase):
    type: Literal["gain"] = "gain"
    gain: Parameter

    def accepts_input(self) -> bool:
        return True

    def with_gain(self, gain: Parameter) -> Gain:
        return Gain(gain=gain, connections=self.connections)


class PinkNoise(_NodeBase):
    type: Literal["pink_noise"] = "pink_noise"


Node = Annotated[Union[Oscillator, Gain, PinkNoise], Field(discriminator="type")]


def default_node(kind: NodeKind = "oscillator", connections: Iterable[int] = ()) -> Node:
    """Return a fresh node of *kind* with editor defaults."""
    if kind == "oscillator":
        return Oscillator(
            waveform="sine",
            frequency=Parameter(initial_value=1000.0),
            connections=frozenset(connections),
        )
    if kind == "gain":
        return Gain(gain=Parameter(initial_value=0.5), connections=frozenset(connections))
    if kind == "pink_noise":
        return PinkNoise(connections=frozenset(connections))
    raise ValueError(f"Unknown node kind: {kind!r}")


def convert_node(node: Node, kind: NodeKind) -> Node:
    """Switch *node* to another kind, keeping its connections.

    Converting to the node's current kind returns it unchanged.
    """
    if node.type == kind:
        return node
    return default_node(kind, node.connections)


# ---------------------------------------------------------------------------
# Connection bookkeeping
# ---------------------------------------------------------------------------


def legal_targets(nodes: Sequence[Node]) -> frozenset[int]:
    """Every target a connection may point at: OUTPUT plus each input-accepting node."""
    return frozenset([OUTPUT, *(i for i, node in enumerate(nodes) if node.accepts_input())])


def prune_connections(nodes: Sequence[Node]) -> tuple[Node, ...]:
    """Drop every connection whose target is not in ``legal_targets(nodes)``."""
    legal = legal_targets(nodes)
    pruned: list[Node] = []
    for node in nodes:
        kept = node.connections & legal
        pruned.append(node if kept == node.connections else node.with_connections(kept))
    return tuple(pruned)


def remap_connections(connections: Iterable[int], removed: int) -> frozenset[int]:
    """Rewrite connection targets after the node at index *removed* is deleted.

    Targets pointing at the removed node are dropped, targets after it shift
    down by one, OUTPUT and earlier targets are untouched.
    """
    remapped: set[int] = set()
    for target in connections:
        if target == OUTPUT or target < removed:
            remapped.add(target)
        elif target > removed:
            remapped.add(target - 1)
    return frozenset(remapped)


# ---------------------------------------------------------------------------
# Top-level sound
# ---------------------------------------------------------------------------


class SoundDescription(BaseModel):
    """A named sound: a duration and an ordered list of nodes.

    A node's position in ``nodes`` is its address. Connections that do not
    point at OUTPUT or at an input-accepting node are silently dropped on
    every construction, so edits never leave dangling references behind.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    duration: float
    nodes: tuple[Node, ...] = ()

    @field_validator("nodes")
    @classmethod
    def _drop_invalid_connections(cls, nodes: tuple[Node, ...]) -> tuple[Node, ...]:
        return prune_connections(nodes)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.nodes):
            raise IndexError(f"Node index {index} out of range (0..{len(self.nodes) - 1})")

    def with_name(self, name: str) -> SoundDescription:
        return SoundDescription(name=name, duration=self.duration, nodes=self.nodes)

    def with_duration(self, duration: float) -> SoundDescription:
        return SoundDescription(name=self.name, duration=duration, nodes=self.nodes)

    def with_nodes(self, nodes: Iterable[Node]) -> SoundDescription:
        return SoundDescription(name=self.name, duration=self.duration, nodes=tuple(nodes))

    def add_node(self, node: Node | None = None) -> SoundDescription:
        """Append *node* (default: a 1 kHz sine oscillator) with no connections."""
        if node is None:
            node = default_node("oscillator")
        else:
            node = node.with_connections(())
        return self.with_nodes((*self.nodes, node))

    def replace_node(self, index: int, node: Node) -> SoundDescription:
        self._check_index(index)
        nodes = list(self.nodes)
        nodes[index] = node
        return self.with_nodes(nodes)

    def remove_node(self, index: int) -> SoundDescription:
        self._check_index(index)
        nodes = [
            node.with_connections(remap_connections(node.connections, index))
            for i, node in enumerate(self.nodes)
            if i != index
        ]
        return self.with_nodes(nodes)

    def set_connection(self, source: int, target: int, enabled: bool) -> SoundDescription:
        """Connect or disconnect ``nodes[source]`` and *target*.

        Illegal targets are ignored rather than rejected.
        """
        self._check_index(source)
        node = self.nodes[source]
        if enabled:
            connections = node.connections | {target}
        else:
            connections = node.connections - {target}
        return self.replace_node(source, node.with_connections(connections))

    def eligible_connections(self, index: int) -> frozenset[int]:
        """Targets the node at *index* may legally connect to (never itself)."""
        self._check_index(index)
        return legal_targets(self.nodes) - {index}
