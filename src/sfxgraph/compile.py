"""Build a live engine node graph from a sound description."""

from __future__ import annotations

from typing import Any, Protocol

from sfxgraph.models import (
    OUTPUT,
    Gain,
    Node,
    Oscillator,
    Parameter,
    PinkNoise,
    SoundDescription,
)


class PipelineInvariantError(AssertionError):
    """A connection target reached the compiler that the model should have dropped."""


# ---------------------------------------------------------------------------
# Engine surface the compiler drives
# ---------------------------------------------------------------------------


class AutomatableParam(Protocol):
    def set_value_at_time(self, value: float, time: float) -> Any: ...

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> Any: ...

    def exponential_ramp_to_value_at_time(self, value: float, end_time: float) -> Any: ...


class EngineContext(Protocol):
    @property
    def destination(self) -> Any: ...

    def create_oscillator(self) -> Any: ...

    def create_gain(self) -> Any: ...

    def create_buffer_source(self) -> Any: ...


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def schedule_parameter(target: AutomatableParam, param: Parameter) -> None:
    """Set ``param.initial_value`` at time 0, then apply each ramp in stored order."""
    target.set_value_at_time(param.initial_value, 0.0)
    for ramp in param.ramps:
        if ramp.kind == "exponential":
            target.exponential_ramp_to_value_at_time(ramp.target_value, ramp.end_time)
        elif ramp.kind == "linear":
            target.linear_ramp_to_value_at_time(ramp.target_value, ramp.end_time)
        elif ramp.kind == "instantaneous":
            target.set_value_at_time(ramp.target_value, ramp.end_time)


def compile_sound(
    ctx: EngineContext, sound: SoundDescription, noise_buffer: Any = None
) -> list[Any]:
    """Instantiate every node of *sound* on *ctx* and wire up its connections.

    Sources are started at time 0. *noise_buffer* is required when the sound
    contains a pink noise node. Returns the engine handles in node order.
    """
    handles = [_create_node(ctx, node, noise_buffer) for node in sound.nodes]

    for src_index, node in enumerate(sound.nodes):
        src = handles[src_index]
        for target in sorted(node.connections):
            if target == OUTPUT:
                src.connect(ctx.destination)
            else:
                _check_target(sound, src_index, target)
                src.connect(handles[target])

    return handles


def _create_node(ctx: EngineContext, node: Node, noise_buffer: Any) -> Any:
    if isinstance(node, Oscillator):
        osc = ctx.create_oscillator()
        osc.type = node.waveform
        schedule_parameter(osc.frequency, node.frequency)
        osc.start(0.0)
        return osc

    if isinstance(node, Gain):
        gain = ctx.create_gain()
        schedule_parameter(gain.gain, node.gain)
        return gain

    if isinstance(node, PinkNoise):
        if noise_buffer is None:
            raise ValueError("Pink noise node requires a noise buffer")
        source = ctx.create_buffer_source()
        source.buffer = noise_buffer
        source.loop = True
        source.start(0.0)
        return source

    raise PipelineInvariantError(f"Unknown node type: {type(node).__name__}")


def _check_target(sound: SoundDescription, src_index: int, target: int) -> None:
    if not 0 <= target < len(sound.nodes):
        raise PipelineInvariantError(
            f"Node {src_index} connects to missing node {target} "
            f"(sound has {len(sound.nodes)} nodes)"
        )
    if not sound.nodes[target].accepts_input():
        raise PipelineInvariantError(
            f"Node {src_index} connects to node {target}, which accepts no input"
        )
