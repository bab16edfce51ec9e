"""One-shot offline rendering of sound descriptions."""

from __future__ import annotations

import asyncio
import logging
import math

from sfxgraph.compile import compile_sound
from sfxgraph.config import RenderSettings
from sfxgraph.engine import AudioBuffer, EngineError, OfflineContext, create_pink_noise_buffer
from sfxgraph.models import PinkNoise, SoundDescription

logger = logging.getLogger(__name__)


class RenderError(RuntimeError):
    """The engine failed to render a sound; the cause is chained."""


def frame_count(duration: float, sample_rate: float) -> int:
    """Number of samples a sound of *duration* seconds renders to.

    Rounds half up. Raises EngineError if the length is not finite.
    """
    frames = sample_rate * duration
    if not math.isfinite(frames):
        raise EngineError(f"Render length must be finite, got {duration} s at {sample_rate} Hz")
    return math.floor(frames + 0.5)


async def render_sound(
    sound: SoundDescription, settings: RenderSettings | None = None
) -> AudioBuffer:
    """Render *sound* to a mono buffer of ``frame_count(duration, sample_rate)`` samples.

    Raises RenderError if the engine rejects or fails the render.
    """
    if settings is None:
        settings = RenderSettings()

    try:
        length = frame_count(sound.duration, settings.sample_rate)
        logger.debug("Rendering %r: %d frames at %d Hz", sound.name, length, settings.sample_rate)
        ctx = OfflineContext(length=length, sample_rate=settings.sample_rate)
        noise_buffer = None
        if any(isinstance(node, PinkNoise) for node in sound.nodes):
            noise_buffer = create_pink_noise_buffer(
                ctx, seconds=settings.noise_seconds, seed=settings.noise_seed
            )
        compile_sound(ctx, sound, noise_buffer)
        return await ctx.start_rendering()
    except EngineError as e:
        raise RenderError(f"Failed to render {sound.name!r}: {e}") from e


def render_sound_sync(
    sound: SoundDescription, settings: RenderSettings | None = None
) -> AudioBuffer:
    """Blocking wrapper around :func:`render_sound` for scripts and the CLI."""
    return asyncio.run(render_sound(sound, settings))


class RenderSession:
    """Renders successive versions of a sound, keeping only the newest result.

    Each call to :meth:`render` supersedes the ones before it. A render that
    finishes, or fails, after a newer one has been requested returns ``None``
    instead of its buffer or error, and ``latest`` is left untouched.
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        self.settings = settings
        self.latest: AudioBuffer | None = None
        self._generation = 0

    async def render(self, sound: SoundDescription) -> AudioBuffer | None:
        self._generation += 1
        generation = self._generation
        # let requests made in the same tick supersede this one before it starts
        await asyncio.sleep(0)
        if generation != self._generation:
            logger.debug("Skipping superseded render of %r", sound.name)
            return None
        try:
            buffer = await render_sound(sound, self.settings)
        except RenderError:
            if generation != self._generation:
                logger.debug("Discarding failed stale render of %r", sound.name, exc_info=True)
                return None
            raise
        if generation != self._generation:
            logger.debug("Discarding stale render of %r", sound.name)
            return None
        self.latest = buffer
        return buffer
