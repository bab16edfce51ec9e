"""Built-in example sounds."""

from __future__ import annotations

import re

from sfxgraph.models import OUTPUT, Gain, Oscillator, Parameter, PinkNoise, Ramp, SoundDescription

MAX_GAIN = 0.5
MIN_GAIN = 1e-3


def _envelope(*ramps: Ramp) -> Gain:
    """A gain node that starts near silence and feeds the output."""
    return Gain(
        gain=Parameter(initial_value=MIN_GAIN, ramps=ramps),
        connections=frozenset([OUTPUT]),
    )


def chirp(frequency: float = 1000.0) -> SoundDescription:
    return SoundDescription(
        name="Chirp",
        duration=0.2,
        nodes=(
            Oscillator(
                waveform="sine",
                frequency=Parameter(
                    initial_value=frequency,
                    ramps=(Ramp(kind="exponential", target_value=frequency / 4, end_time=0.2),),
                ),
                connections=frozenset([1]),
            ),
            _envelope(
                Ramp(kind="exponential", target_value=MAX_GAIN, end_time=0.01),
                Ramp(kind="linear", target_value=MIN_GAIN, end_time=0.2),
            ),
        ),
    )


def sweep(frequency: float = 440.0) -> SoundDescription:
    """A square wave stepping up an octave every 50 ms."""
    steps = tuple(
        Ramp(kind="instantaneous", target_value=frequency * 2**octave, end_time=0.05 * octave)
        for octave in range(1, 5)
    )
    return SoundDescription(
        name="Sweep",
        duration=0.25,
        nodes=(
            Oscillator(
                waveform="square",
                frequency=Parameter(initial_value=frequency, ramps=steps),
                connections=frozenset([1]),
            ),
            _envelope(
                Ramp(kind="exponential", target_value=MAX_GAIN, end_time=0.01),
                Ramp(kind="linear", target_value=MIN_GAIN, end_time=0.25),
            ),
        ),
    )


def shield_recharge(start_fraction: float = 0.0, duration: float = 2.0) -> SoundDescription:
    """A slow triangle rise over *duration* seconds followed by a one second fade."""
    min_freq = 55.0
    max_freq = min_freq * 2**0.75
    return SoundDescription(
        name="Shield Recharge",
        duration=duration + 1,
        nodes=(
            Oscillator(
                waveform="triangle",
                frequency=Parameter(
                    initial_value=min_freq + start_fraction * (max_freq - min_freq),
                    ramps=(Ramp(kind="exponential", target_value=max_freq, end_time=duration),),
                ),
                connections=frozenset([1]),
            ),
            _envelope(
                Ramp(kind="exponential", target_value=MAX_GAIN, end_time=0.01),
                Ramp(kind="exponential", target_value=MAX_GAIN, end_time=duration),
                Ramp(kind="linear", target_value=MIN_GAIN, end_time=duration + 1),
            ),
        ),
    )


def noise_pulse() -> SoundDescription:
    return SoundDescription(
        name="Noise Pulse",
        duration=0.1,
        nodes=(
            PinkNoise(connections=frozenset([1])),
            _envelope(
                Ramp(kind="exponential", target_value=MAX_GAIN, end_time=0.01),
                Ramp(kind="linear", target_value=MIN_GAIN, end_time=0.1),
            ),
        ),
    )


def create_presets() -> list[SoundDescription]:
    return [chirp(1000.0), sweep(), shield_recharge(0.0, 2.0), noise_pulse()]


def slugify(name: str) -> str:
    """'Shield Recharge' -> 'shield-recharge'."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def get_preset(name: str) -> SoundDescription:
    """Look up a preset by display name or slug, case-insensitively.

    Raises KeyError if no preset matches.
    """
    wanted = slugify(name)
    for preset in create_presets():
        if slugify(preset.name) == wanted:
            return preset
    raise KeyError(f"Unknown preset: {name!r}")
