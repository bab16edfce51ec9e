"""Build a noisy laser step by step with the editing operations."""

from sfxgraph import (
    OUTPUT,
    Parameter,
    Ramp,
    SoundDescription,
    default_node,
    render_sound_sync,
    write_wav,
)

sound = SoundDescription(name="laser", duration=0.3)
sound = sound.add_node(default_node("pink_noise"))  # 0
sound = sound.add_node(default_node("oscillator"))  # 1
sound = sound.add_node(default_node("gain"))  # 2

osc = sound.nodes[1]
sound = sound.replace_node(
    1,
    osc.with_waveform("sawtooth").with_frequency(
        Parameter(
            initial_value=2000.0,
            ramps=[Ramp(kind="exponential", target_value=200.0, end_time=0.3)],
        )
    ),
)

env = sound.nodes[2]
sound = sound.replace_node(
    2,
    env.with_gain(
        Parameter(initial_value=0.4).add_ramp(
            Ramp(kind="linear", target_value=0.001, end_time=0.3)
        )
    ),
)

sound = sound.set_connection(0, 2, True)
sound = sound.set_connection(1, 2, True)
sound = sound.set_connection(2, OUTPUT, True)

if __name__ == "__main__":
    for i, node in enumerate(sound.nodes):
        targets = sorted(sound.eligible_connections(i))
        print(f"{i}: {node.type:<10} -> {sorted(node.connections)} (may reach {targets})")

    # removing the noise shifts the other nodes down by one
    quieter = sound.remove_node(0).with_name("laser-clean")
    print(f"\nAfter removal: {[sorted(n.connections) for n in quieter.nodes]}")

    for s in (sound, quieter):
        path = write_wav(render_sound_sync(s), f"build/{s.name}.wav")
        print(f"WAV: {path}")
