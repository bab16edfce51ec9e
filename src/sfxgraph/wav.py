"""16-bit PCM WAV encoding for rendered buffers."""

from __future__ import annotations

import struct
from pathlib import Path

import numpy as np

from sfxgraph.engine import AudioBuffer

WAV_MIME_TYPE = "audio/wav"
HEADER_SIZE = 44


class UnsupportedFormatError(ValueError):
    """The buffer cannot be written in this container (only mono is supported)."""


def quantize(samples: np.ndarray) -> np.ndarray:
    """Map float samples to little-endian int16.

    Each sample becomes ``floor(s * 32767 + 0.5)`` clipped to the int16 range,
    with no dither. Full-scale negative input (``s <= -1``) lands on -32768;
    NaN becomes 0.
    """
    data = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0)
    scaled = np.floor(data * 32767.0 + 0.5)
    scaled[data <= -1.0] = -32768.0
    return np.clip(scaled, -32768, 32767).astype("<i2")


def encode_wav(buffer: AudioBuffer) -> bytes:
    """Serialize a mono buffer as a canonical 44-byte-header PCM WAV file."""
    if buffer.number_of_channels != 1:
        raise UnsupportedFormatError(
            f"Only mono buffers can be encoded, got {buffer.number_of_channels} channels"
        )

    sample_rate = int(buffer.sample_rate)
    data_size = 2 * buffer.length
    file_size = HEADER_SIZE + data_size

    header = b"".join(
        [
            # RIFF header
            b"RIFF",
            struct.pack("<I", file_size - 8),
            b"WAVE",
            # fmt chunk
            b"fmt ",
            struct.pack("<I", 16),  # chunk size
            struct.pack("<H", 1),  # PCM
            struct.pack("<H", 1),  # channel count
            struct.pack("<I", sample_rate),
            struct.pack("<I", 2 * sample_rate),  # byte rate
            struct.pack("<H", 2),  # block align
            struct.pack("<H", 16),  # bits per sample
            # data chunk
            b"data",
            struct.pack("<I", data_size),
        ]
    )
    return header + quantize(buffer.get_channel_data(0)).tobytes()


def write_wav(buffer: AudioBuffer, path: str | Path) -> Path:
    """Encode *buffer* and write it to *path*, creating parent directories."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(encode_wav(buffer))
    return out
