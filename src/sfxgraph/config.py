"""Render settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SAMPLE_RATE = 48000
# Longest sound the command line accepts, in seconds.
MAX_DURATION = 60.0


class RenderSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    sample_rate: int = Field(default=DEFAULT_SAMPLE_RATE, gt=0)
    # Length of the looped pink noise buffer, in seconds.
    noise_seconds: float = Field(default=1.0, gt=0.0)
    noise_seed: int = 0


def check_duration(duration: float) -> float:
    """Return *duration* if it is a usable sound length, else raise ValueError."""
    if not (0.0 < duration <= MAX_DURATION):
        raise ValueError(
            f"Duration must be greater than zero and at most {MAX_DURATION:g} seconds, "
            f"got {duration}"
        )
    return duration
