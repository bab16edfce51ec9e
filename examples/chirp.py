"""Descending sine chirp with an attack/decay envelope."""

from sfxgraph import (
    OUTPUT,
    Gain,
    Oscillator,
    Parameter,
    Ramp,
    SoundDescription,
    render_sound_sync,
    write_wav,
)

sound = SoundDescription(
    name="chirp",
    duration=0.2,
    nodes=[
        Oscillator(
            waveform="sine",
            frequency=Parameter(
                initial_value=1000.0,
                ramps=[Ramp(kind="exponential", target_value=250.0, end_time=0.2)],
            ),
            connections=frozenset([1]),
        ),
        Gain(
            gain=Parameter(
                initial_value=0.001,
                ramps=[
                    Ramp(kind="exponential", target_value=0.5, end_time=0.01),
                    Ramp(kind="linear", target_value=0.001, end_time=0.2),
                ],
            ),
            connections=frozenset([OUTPUT]),
        ),
    ],
)

if __name__ == "__main__":
    print(sound.model_dump_json(indent=2))
    buffer = render_sound_sync(sound)
    path = write_wav(buffer, "build/chirp.wav")
    print(f"\nRendered: {buffer}")
    print(f"WAV: {path}")
