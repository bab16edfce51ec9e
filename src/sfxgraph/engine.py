"""Offline (non-real-time) audio rendering engine built on numpy.

The engine mirrors the small slice of the Web Audio API a sound graph needs:
an :class:`OfflineContext` hands out oscillator, gain and buffer-source nodes,
their :class:`AudioParam` values are automated with timed events, nodes are
wired with ``connect`` and the whole graph is rendered in one pass by
``await ctx.start_rendering()``.

Rendering works on whole buffers rather than sample by sample: each node is
processed once, in topological order, over the full render length. Nodes on
a feedback cycle cannot be ordered and output silence.
"""

from __future__ import annotations

import asyncio
import bisect
import functools
import logging
import math

import numpy as np

from sfxgraph.toposort import cycle_members, toposort

logger = logging.getLogger(__name__)

MIN_SAMPLE_RATE = 3000.0
MAX_SAMPLE_RATE = 768000.0
# Ten minutes at 48 kHz.
MAX_FRAMES = 28_800_000


class EngineError(RuntimeError):
    """Raised when the engine cannot allocate, schedule or render."""


# ---------------------------------------------------------------------------
# Buffers
# ---------------------------------------------------------------------------


class AudioBuffer:
    """Rendered (or source) audio: float32 samples shaped ``(channels, length)``."""

    def __init__(self, sample_rate: float, channels: np.ndarray) -> None:
        data = np.asarray(channels, dtype=np.float32)
        if data.ndim == 1:
            data = data[np.newaxis, :]
        if data.ndim != 2 or data.shape[0] < 1:
            raise ValueError(f"Expected (channels, length) samples, got shape {data.shape}")
        self.sample_rate = float(sample_rate)
        self._data = data

    @property
    def number_of_channels(self) -> int:
        return int(self._data.shape[0])

    @property
    def length(self) -> int:
        return int(self._data.shape[1])

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate

    def get_channel_data(self, channel: int) -> np.ndarray:
        if not 0 <= channel < self.number_of_channels:
            raise IndexError(f"Channel {channel} out of range")
        return self._data[channel]

    def __repr__(self) -> str:
        return (
            f"AudioBuffer(sample_rate={self.sample_rate:g}, "
            f"channels={self.number_of_channels}, length={self.length})"
        )


# ---------------------------------------------------------------------------
# Parameter automation
# ---------------------------------------------------------------------------


class AudioParam:
    """A value that follows a timeline of set / linear / exponential events.

    Events are kept sorted by time; events sharing a time stay in the order
    they were scheduled. Each ramp starts from the previous event's time and
    value. After the last event the value holds.
    """

    def __init__(self, default_value: float) -> None:
        self.default_value = float(default_value)
        self._times: list[float] = []
        self._events: list[tuple[float, str, float]] = []

    @property
    def events(self) -> list[tuple[float, str, float]]:
        return list(self._events)

    def set_value_at_time(self, value: float, time: float) -> AudioParam:
        return self._insert("set", value, time)

    def linear_ramp_to_value_at_time(self, value: float, end_time: float) -> AudioParam:
        return self._insert("linear", value, end_time)

    def exponential_ramp_to_value_at_time(self, value: float, end_time: float) -> AudioParam:
        return self._insert("exponential", value, end_time)

    def _insert(self, kind: str, value: float, time: float) -> AudioParam:
        value = float(value)
        time = float(time)
        if not math.isfinite(value):
            raise EngineError(f"Automation value must be finite, got {value}")
        if not math.isfinite(time) or time < 0.0:
            raise EngineError(f"Automation time must be finite and >= 0, got {time}")
        pos = bisect.bisect_right(self._times, time)
        self._times.insert(pos, time)
        self._events.insert(pos, (time, kind, value))
        return self

    def render(self, length: int, sample_rate: float) -> np.ndarray:
        """Return the per-sample value curve for ``length`` samples."""
        times = np.arange(length, dtype=np.float64) / sample_rate
        values = np.full(length, self.default_value, dtype=np.float64)

        prev_time, prev_value = 0.0, self.default_value
        for time, kind, value in self._events:
            lo = int(np.searchsorted(times, prev_time, side="left"))
            hi = int(np.searchsorted(times, time, side="left"))
            span = times[lo:hi]
            if kind == "linear" and time > prev_time:
                frac = (span - prev_time) / (time - prev_time)
                values[lo:hi] = prev_value + (value - prev_value) * frac
            elif kind == "exponential" and time > prev_time and prev_value * value > 0.0:
                frac = (span - prev_time) / (time - prev_time)
                values[lo:hi] = prev_value * (value / prev_value) ** frac
            else:
                # set events, zero-length ramps and exponential ramps through zero
                values[lo:hi] = prev_value
            prev_time, prev_value = time, value

        if self._events:
            values[int(np.searchsorted(times, prev_time, side="left")) :] = prev_value
        return values


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


class AudioNode:
    """Base class for every node owned by an :class:`OfflineContext`."""

    number_of_inputs = 1

    def __init__(self, context: OfflineContext) -> None:
        self.context = context
        self.index = context._register(self)

    def connect(self, destination: AudioNode) -> AudioNode:
        """Route this node's output into *destination*; returns *destination*."""
        if destination.context is not self.context:
            raise EngineError("Cannot connect nodes from different contexts")
        if destination.number_of_inputs == 0:
            raise EngineError(f"{type(destination).__name__} has no inputs")
        self.context._connect(self.index, destination.index)
        return destination

    def process(self, signal: np.ndarray, length: int, sample_rate: float) -> np.ndarray:
        raise NotImplementedError


class AudioDestinationNode(AudioNode):
    def process(self, signal: np.ndarray, length: int, sample_rate: float) -> np.ndarray:
        return signal


class AudioScheduledSourceNode(AudioNode):
    number_of_inputs = 0

    def __init__(self, context: OfflineContext) -> None:
        super().__init__(context)
        self.start_time: float | None = None

    def start(self, when: float = 0.0) -> None:
        if self.start_time is not None:
            raise EngineError(f"{type(self).__name__} already started")
        if not math.isfinite(when) or when < 0.0:
            raise EngineError(f"Start time must be finite and >= 0, got {when}")
        self.start_time = float(when)

    def _start_index(self, length: int, sample_rate: float) -> int:
        assert self.start_time is not None
        return min(length, math.ceil(self.start_time * sample_rate))


def _sine(phase: np.ndarray) -> np.ndarray:
    return np.sin(2.0 * np.pi * phase)


def _square(phase: np.ndarray) -> np.ndarray:
    return np.where(phase < 0.5, 1.0, -1.0)


def _sawtooth(phase: np.ndarray) -> np.ndarray:
    return 2.0 * ((phase + 0.5) % 1.0) - 1.0


def _triangle(phase: np.ndarray) -> np.ndarray:
    return 1.0 - 4.0 * np.abs(((phase + 0.25) % 1.0) - 0.5)


_WAVEFORMS = {
    "sine": _sine,
    "square": _square,
    "sawtooth": _sawtooth,
    "triangle": _triangle,
}


class OscillatorNode(AudioScheduledSourceNode):
    """Periodic source whose frequency (Hz) is an automatable parameter."""

    def __init__(self, context: OfflineContext) -> None:
        super().__init__(context)
        self._type = "sine"
        self.frequency = AudioParam(440.0)

    @property
    def type(self) -> str:
        return self._type

    @type.setter
    def type(self, value: str) -> None:
        if value not in _WAVEFORMS:
            raise EngineError(f"Unknown oscillator type: {value!r}")
        self._type = value

    def process(self, signal: np.ndarray, length: int, sample_rate: float) -> np.ndarray:
        out = np.zeros(length)
        if self.start_time is None:
            return out
        start = self._start_index(length, sample_rate)
        if start >= length:
            return out
        freq = self.frequency.render(length, sample_rate)[start:]
        phase = np.concatenate(([0.0], np.cumsum(freq[:-1] / sample_rate))) % 1.0
        out[start:] = _WAVEFORMS[self._type](phase)
        return out


class GainNode(AudioNode):
    """Multiplies the sum of its inputs by an automatable gain."""

    def __init__(self, context: OfflineContext) -> None:
        super().__init__(context)
        self.gain = AudioParam(1.0)

    def process(self, signal: np.ndarray, length: int, sample_rate: float) -> np.ndarray:
        return signal * self.gain.render(length, sample_rate)


class AudioBufferSourceNode(AudioScheduledSourceNode):
    """Plays channel 0 of ``buffer`` once, or repeatedly when ``loop`` is set."""

    def __init__(self, context: OfflineContext) -> None:
        super().__init__(context)
        self.buffer: AudioBuffer | None = None
        self.loop = False

    def process(self, signal: np.ndarray, length: int, sample_rate: float) -> np.ndarray:
        out = np.zeros(length)
        if self.start_time is None or self.buffer is None or self.buffer.length == 0:
            return out
        start = self._start_index(length, sample_rate)
        data = self.buffer.get_channel_data(0).astype(np.float64)
        remaining = length - start
        if self.loop:
            out[start:] = np.resize(data, remaining)
        else:
            count = min(remaining, data.size)
            out[start : start + count] = data[:count]
        return out


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


class OfflineContext:
    """Owns a node graph and renders it once into an :class:`AudioBuffer`."""

    def __init__(self, length: int, sample_rate: float, number_of_channels: int = 1) -> None:
        if not MIN_SAMPLE_RATE <= sample_rate <= MAX_SAMPLE_RATE:
            raise EngineError(
                f"Sample rate {sample_rate} outside [{MIN_SAMPLE_RATE:g}, {MAX_SAMPLE_RATE:g}]"
            )
        if length <= 0:
            raise EngineError(f"Render length must be positive, got {length}")
        if length > MAX_FRAMES:
            raise EngineError(f"Render length {length} exceeds {MAX_FRAMES} frames")
        if number_of_channels < 1:
            raise EngineError(f"Channel count must be positive, got {number_of_channels}")
        self.length = int(length)
        self.sample_rate = float(sample_rate)
        self.number_of_channels = int(number_of_channels)
        self._nodes: list[AudioNode] = []
        self._edges: set[tuple[int, int]] = set()
        self._rendered = False
        self.destination = AudioDestinationNode(self)

    def create_oscillator(self) -> OscillatorNode:
        return OscillatorNode(self)

    def create_gain(self) -> GainNode:
        return GainNode(self)

    def create_buffer_source(self) -> AudioBufferSourceNode:
        return AudioBufferSourceNode(self)

    def _register(self, node: AudioNode) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def _connect(self, src: int, dst: int) -> None:
        self._edges.add((src, dst))

    async def start_rendering(self) -> AudioBuffer:
        """Render the graph in a worker thread and return the result."""
        if self._rendered:
            raise EngineError("Context has already been rendered")
        self._rendered = True
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._render)

    def _render(self) -> AudioBuffer:
        count = len(self._nodes)
        muted = cycle_members(count, self._edges)
        if muted:
            logger.warning("Muting %d node(s) on a feedback cycle: %s", len(muted), sorted(muted))
        live = sorted((s, d) for s, d in self._edges if s not in muted and d not in muted)
        order = toposort(count, live)

        targets: dict[int, list[int]] = {}
        for src, dst in live:
            targets.setdefault(src, []).append(dst)

        logger.debug(
            "Rendering %d node(s), %d connection(s), %d frames at %g Hz",
            count,
            len(live),
            self.length,
            self.sample_rate,
        )
        inputs: dict[int, np.ndarray] = {}
        mix = np.zeros(self.length)
        for index in order:
            if index in muted:
                continue
            node = self._nodes[index]
            signal = inputs.pop(index, None)
            if signal is None:
                signal = np.zeros(self.length)
            output = node.process(signal, self.length, self.sample_rate)
            if node is self.destination:
                mix = output
                continue
            for dst in targets.get(index, ()):
                if dst in inputs:
                    inputs[dst] += output
                else:
                    inputs[dst] = output.copy()

        channels = np.tile(mix, (self.number_of_channels, 1))
        return AudioBuffer(self.sample_rate, channels)


# ---------------------------------------------------------------------------
# Pink noise
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=8)
def _pink_noise(length: int, seed: int) -> np.ndarray:
    """Seeded pink noise via Paul Kellett's refined filter, peak-normalized."""
    white = np.random.default_rng(seed).standard_normal(length)
    pink = np.empty(length)
    b0 = b1 = b2 = b3 = b4 = b5 = b6 = 0.0
    for i, w in enumerate(white.tolist()):
        b0 = 0.99886 * b0 + w * 0.0555179
        b1 = 0.99332 * b1 + w * 0.0750759
        b2 = 0.96900 * b2 + w * 0.1538520
        b3 = 0.86650 * b3 + w * 0.3104856
        b4 = 0.55000 * b4 + w * 0.5329522
        b5 = -0.7616 * b5 - w * 0.0168980
        pink[i] = b0 + b1 + b2 + b3 + b4 + b5 + b6 + w * 0.5362
        b6 = w * 0.115926
    peak = float(np.max(np.abs(pink)))
    if peak > 0.0:
        pink /= peak
    samples = pink.astype(np.float32)
    samples.flags.writeable = False
    return samples


def create_pink_noise_buffer(
    context: OfflineContext, seconds: float = 1.0, seed: int = 0
) -> AudioBuffer:
    """Return a read-only mono pink noise buffer at the context's sample rate.

    Buffers are cached per (length, seed), so repeated renders share one.
    """
    length = max(1, round(seconds * context.sample_rate))
    return AudioBuffer(context.sample_rate, _pink_noise(length, seed))
