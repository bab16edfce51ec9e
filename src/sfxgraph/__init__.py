"""Procedural sound graphs: describe, render offline, export as WAV."""

from sfxgraph.compile import PipelineInvariantError, compile_sound, schedule_parameter
from sfxgraph.config import RenderSettings
from sfxgraph.engine import AudioBuffer, EngineError, OfflineContext, create_pink_noise_buffer
from sfxgraph.models import (
    OUTPUT,
    Gain,
    Node,
    Oscillator,
    Parameter,
    PinkNoise,
    Ramp,
    SoundDescription,
    convert_node,
    default_node,
    remap_connections,
)
from sfxgraph.presets import create_presets, get_preset
from sfxgraph.render import RenderError, RenderSession, frame_count, render_sound, render_sound_sync
from sfxgraph.toposort import toposort
from sfxgraph.validate import ConnectionIssue, find_dropped_connections, load_sound
from sfxgraph.wav import WAV_MIME_TYPE, UnsupportedFormatError, encode_wav, write_wav

__all__ = [
    "OUTPUT",
    "WAV_MIME_TYPE",
    "AudioBuffer",
    "ConnectionIssue",
    "EngineError",
    "Gain",
    "Node",
    "OfflineContext",
    "Oscillator",
    "Parameter",
    "PinkNoise",
    "PipelineInvariantError",
    "Ramp",
    "RenderError",
    "RenderSession",
    "RenderSettings",
    "SoundDescription",
    "UnsupportedFormatError",
    "compile_sound",
    "convert_node",
    "create_pink_noise_buffer",
    "create_presets",
    "default_node",
    "encode_wav",
    "find_dropped_connections",
    "frame_count",
    "get_preset",
    "load_sound",
    "remap_connections",
    "render_sound",
    "render_sound_sync",
    "schedule_parameter",
    "toposort",
    "write_wav",
]
