from __future__ import annotations

import pytest

from sfxgraph import (
    OUTPUT,
    Gain,
    Oscillator,
    Parameter,
    PinkNoise,
    Ramp,
    SoundDescription,
)


def assert_connections_valid(sound: SoundDescription) -> None:
    """Every target is OUTPUT or an existing input-accepting node."""
    for node in sound.nodes:
        for target in node.connections:
            if target == OUTPUT:
                continue
            assert 0 <= target < len(sound.nodes)
            assert sound.nodes[target].accepts_input()


@pytest.fixture
def chirp_sound() -> SoundDescription:
    """Sine 1000 -> 250 Hz through a gain envelope into the output."""
    return SoundDescription(
        name="chirp",
        duration=0.2,
        nodes=(
            Oscillator(
                waveform="sine",
                frequency=Parameter(
                    initial_value=1000.0,
                    ramps=(Ramp(kind="exponential", target_value=250.0, end_time=0.2),),
                ),
                connections=frozenset([1]),
            ),
            Gain(
                gain=Parameter(
                    initial_value=0.001,
                    ramps=(
                        Ramp(kind="exponential", target_value=0.5, end_time=0.01),
                        Ramp(kind="linear", target_value=0.001, end_time=0.2),
                    ),
                ),
                connections=frozenset([OUTPUT]),
            ),
        ),
    )


@pytest.fixture
def chain_sound() -> SoundDescription:
    """Noise -> g1 -> g2 -> g3 -> output, with g1 also feeding g3 and the output.

    Indices: 0 noise, 1 g1, 2 g2, 3 g3.
    """
    return SoundDescription(
        name="chain",
        duration=0.1,
        nodes=(
            PinkNoise(connections=frozenset([1])),
            Gain(gain=Parameter(initial_value=0.5), connections=frozenset([2, 3, OUTPUT])),
            Gain(gain=Parameter(initial_value=0.5), connections=frozenset([3])),
            Gain(gain=Parameter(initial_value=0.5), connections=frozenset([OUTPUT])),
        ),
    )
