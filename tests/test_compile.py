"""Tests for compiling sound descriptions onto an engine context."""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest

from sfxgraph import (
    OUTPUT,
    Gain,
    Oscillator,
    Parameter,
    PinkNoise,
    PipelineInvariantError,
    Ramp,
    SoundDescription,
    compile_sound,
    schedule_parameter,
)
from sfxgraph.engine import (
    AudioBuffer,
    AudioBufferSourceNode,
    GainNode,
    OfflineContext,
    OscillatorNode,
)

# ---------------------------------------------------------------------------
# Recording engine
# ---------------------------------------------------------------------------


class RecordingParam:
    def __init__(self, log: list[tuple[Any, ...]], name: str) -> None:
        self.log = log
        self.name = name

    def set_value_at_time(self, value: float, time: float) -> None:
        self.log.append((self.name, "set", value, time))

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self.log.append((self.name, "linear", value, end_time))

    def exponential_ramp_to_value_at_time(self, value: float, end_time: float) -> None:
        self.log.append((self.name, "exponential", value, end_time))


class RecordingNode:
    def __init__(self, log: list[tuple[Any, ...]], name: str) -> None:
        self.log = log
        self.name = name
        self.type = "sine"
        self.buffer: Any = None
        self.loop = False
        self.frequency = RecordingParam(log, f"{name}.frequency")
        self.gain = RecordingParam(log, f"{name}.gain")

    def start(self, when: float = 0.0) -> None:
        self.log.append((self.name, "start", when))

    def connect(self, destination: RecordingNode) -> RecordingNode:
        self.log.append((self.name, "connect", destination.name))
        return destination


class RecordingContext:
    def __init__(self) -> None:
        self.log: list[tuple[Any, ...]] = []
        self.destination = RecordingNode(self.log, "out")
        self._count = 0

    def _node(self, kind: str) -> RecordingNode:
        node = RecordingNode(self.log, f"{kind}{self._count}")
        self._count += 1
        self.log.append((node.name, "create"))
        return node

    def create_oscillator(self) -> RecordingNode:
        return self._node("osc")

    def create_gain(self) -> RecordingNode:
        return self._node("gain")

    def create_buffer_source(self) -> RecordingNode:
        return self._node("src")


# ---------------------------------------------------------------------------
# Parameter scheduling
# ---------------------------------------------------------------------------


class TestScheduleParameter:
    def test_initial_value_only(self) -> None:
        log: list[tuple[Any, ...]] = []
        schedule_parameter(RecordingParam(log, "p"), Parameter(initial_value=3.0))
        assert log == [("p", "set", 3.0, 0.0)]

    def test_ramp_kinds_in_stored_order(self) -> None:
        log: list[tuple[Any, ...]] = []
        param = Parameter(
            initial_value=1.0,
            ramps=[
                Ramp(kind="linear", target_value=4.0, end_time=0.3),
                Ramp(kind="exponential", target_value=2.0, end_time=0.1),
                Ramp(kind="instantaneous", target_value=3.0, end_time=0.2),
            ],
        )
        schedule_parameter(RecordingParam(log, "p"), param)
        assert log == [
            ("p", "set", 1.0, 0.0),
            ("p", "exponential", 2.0, 0.1),
            ("p", "set", 3.0, 0.2),
            ("p", "linear", 4.0, 0.3),
        ]


# ---------------------------------------------------------------------------
# Node creation & wiring
# ---------------------------------------------------------------------------


class TestCompileSound:
    def test_chirp_call_sequence(self, chirp_sound: SoundDescription) -> None:
        ctx = RecordingContext()
        handles = compile_sound(ctx, chirp_sound)
        assert [h.name for h in handles] == ["osc0", "gain1"]
        assert handles[0].type == "sine"
        assert ctx.log == [
            ("osc0", "create"),
            ("osc0.frequency", "set", 1000.0, 0.0),
            ("osc0.frequency", "exponential", 250.0, 0.2),
            ("osc0", "start", 0.0),
            ("gain1", "create"),
            ("gain1.gain", "set", 0.001, 0.0),
            ("gain1.gain", "exponential", 0.5, 0.01),
            ("gain1.gain", "linear", 0.001, 0.2),
            ("osc0", "connect", "gain1"),
            ("gain1", "connect", "out"),
        ]

    def test_waveform_applied(self) -> None:
        sound = SoundDescription(
            name="s",
            duration=0.1,
            nodes=[Oscillator(waveform="triangle", frequency=Parameter(initial_value=1.0))],
        )
        handles = compile_sound(RecordingContext(), sound)
        assert handles[0].type == "triangle"

    def test_pink_noise_source(self) -> None:
        ctx = RecordingContext()
        noise = object()
        sound = SoundDescription(
            name="s", duration=0.1, nodes=[PinkNoise(connections=frozenset([OUTPUT]))]
        )
        (src,) = compile_sound(ctx, sound, noise)
        assert src.buffer is noise
        assert src.loop is True
        assert ("src0", "start", 0.0) in ctx.log
        assert ("src0", "connect", "out") in ctx.log

    def test_pink_noise_requires_buffer(self) -> None:
        sound = SoundDescription(name="s", duration=0.1, nodes=[PinkNoise()])
        with pytest.raises(ValueError, match="noise buffer"):
            compile_sound(RecordingContext(), sound)

    def test_fan_out(self) -> None:
        sound = SoundDescription(
            name="s",
            duration=0.1,
            nodes=[
                Oscillator(frequency=Parameter(initial_value=1.0), connections=frozenset([1, 2, -1])),
                Gain(gain=Parameter(initial_value=1.0)),
                Gain(gain=Parameter(initial_value=1.0)),
            ],
        )
        ctx = RecordingContext()
        compile_sound(ctx, sound)
        connects = {entry[2] for entry in ctx.log if entry[1] == "connect"}
        assert connects == {"gain1", "gain2", "out"}

    def test_empty_sound(self) -> None:
        ctx = RecordingContext()
        assert compile_sound(ctx, SoundDescription(name="s", duration=0.1)) == []
        assert ctx.log == []


class TestInvariantViolations:
    def test_missing_target(self) -> None:
        # model_construct skips validation, so the bad target survives
        bad = SoundDescription.model_construct(
            name="bad",
            duration=0.1,
            nodes=(Oscillator(frequency=Parameter(initial_value=1.0), connections=frozenset([3])),),
        )
        with pytest.raises(PipelineInvariantError, match="missing node 3"):
            compile_sound(RecordingContext(), bad)

    def test_target_without_input(self) -> None:
        bad = SoundDescription.model_construct(
            name="bad",
            duration=0.1,
            nodes=(
                Oscillator(frequency=Parameter(initial_value=1.0), connections=frozenset([1])),
                PinkNoise(),
            ),
        )
        with pytest.raises(PipelineInvariantError, match="accepts no input"):
            compile_sound(RecordingContext(), bad, noise_buffer=object())

    def test_is_assertion_error(self) -> None:
        assert issubclass(PipelineInvariantError, AssertionError)


class TestCompileOnOfflineContext:
    def test_handles_are_engine_nodes(self, chain_sound: SoundDescription) -> None:
        ctx = OfflineContext(length=480, sample_rate=48000.0)
        noise = AudioBuffer(48000.0, np.ones(10))
        handles = compile_sound(ctx, chain_sound, noise)
        assert isinstance(handles[0], AudioBufferSourceNode)
        assert all(isinstance(h, GainNode) for h in handles[1:])
        assert handles[0].buffer is noise

    def test_oscillator_scheduled(self, chirp_sound: SoundDescription) -> None:
        ctx = OfflineContext(length=480, sample_rate=48000.0)
        osc, gain = compile_sound(ctx, chirp_sound)
        assert isinstance(osc, OscillatorNode)
        assert osc.start_time == 0.0
        assert osc.frequency.events == [(0.0, "set", 1000.0), (0.2, "exponential", 250.0)]
        assert gain.gain.events[0] == (0.0, "set", 0.001)
