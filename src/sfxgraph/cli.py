"""Command-line interface for sfxgraph."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from sfxgraph.config import DEFAULT_SAMPLE_RATE, RenderSettings, check_duration
from sfxgraph.models import SoundDescription
from sfxgraph.presets import create_presets, get_preset, slugify
from sfxgraph.render import RenderError, render_sound_sync
from sfxgraph.validate import load_sound
from sfxgraph.wav import HEADER_SIZE, write_wav

logger = logging.getLogger(__name__)


def _load_sound(path: str) -> SoundDescription:
    """Load a sound JSON file, warning about connections dropped on load."""
    sound, issues = load_sound(path)
    for issue in issues:
        print(f"warning: {issue} (dropped)", file=sys.stderr)
    return sound


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_presets(args: argparse.Namespace) -> int:
    for preset in create_presets():
        print(f"{slugify(preset.name):<16} {preset.name} ({preset.duration:g} s)")
    return 0


def _cmd_dump(args: argparse.Namespace) -> int:
    sound = get_preset(args.preset)
    text = sound.model_dump_json(indent=2) + "\n"
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(text)
        print(f"wrote {out}")
    else:
        sys.stdout.write(text)
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    _, issues = load_sound(args.file)
    for issue in issues:
        print(f"warning: {issue}", file=sys.stderr)
    if issues:
        print("valid (with warnings)")
    else:
        print("valid")
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    if args.preset and args.file:
        print("error: give either a sound file or --preset, not both", file=sys.stderr)
        return 1
    if args.preset:
        sound = get_preset(args.preset)
    elif args.file:
        sound = _load_sound(args.file)
    else:
        print("error: a sound file or --preset is required", file=sys.stderr)
        return 1

    if args.duration is not None:
        sound = sound.with_duration(check_duration(args.duration))

    try:
        settings = RenderSettings(
            sample_rate=DEFAULT_SAMPLE_RATE if args.sample_rate is None else args.sample_rate,
            noise_seed=args.noise_seed,
        )
    except ValidationError as e:
        print(f"error: invalid render settings: {e}", file=sys.stderr)
        return 1

    buffer = render_sound_sync(sound, settings)

    out = Path(args.output) if args.output else Path(f"{sound.name}.wav")
    write_wav(buffer, out)
    size = HEADER_SIZE + 2 * buffer.length
    print(f"wrote {out} ({buffer.length} samples, {int(buffer.sample_rate)} Hz, {size} bytes)")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the sfxgraph CLI."""
    parser = argparse.ArgumentParser(
        prog="sfxgraph",
        description="Render procedural sound graphs to WAV files.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # presets
    sub.add_parser("presets", help="List built-in presets")

    # dump
    p_dump = sub.add_parser("dump", help="Write a preset as sound JSON")
    p_dump.add_argument("preset", help="Preset name")
    p_dump.add_argument("-o", "--output", help="Output JSON file (default: stdout)")

    # validate
    p_validate = sub.add_parser("validate", help="Check a sound JSON file")
    p_validate.add_argument("file", help="Sound JSON file")

    # render
    p_render = sub.add_parser("render", help="Render a sound to WAV")
    p_render.add_argument("file", nargs="?", help="Sound JSON file")
    p_render.add_argument("-p", "--preset", help="Render a built-in preset instead of a file")
    p_render.add_argument("-o", "--output", help="Output WAV file (default: <name>.wav)")
    p_render.add_argument("--duration", type=float, help="Override the sound duration (seconds)")
    p_render.add_argument("--sample-rate", type=int, help="Override sample rate")
    p_render.add_argument("--noise-seed", type=int, default=0, help="Pink noise seed")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    try:
        if args.command == "presets":
            return _cmd_presets(args)
        elif args.command == "dump":
            return _cmd_dump(args)
        elif args.command == "validate":
            return _cmd_validate(args)
        elif args.command == "render":
            return _cmd_render(args)
    except FileNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"error: invalid JSON: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"error: invalid sound: {e}", file=sys.stderr)
        return 1
    except KeyError as e:
        print(f"error: {e.args[0]}", file=sys.stderr)
        return 1
    except RenderError as e:
        logger.debug("Render failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0  # pragma: no cover


if __name__ == "__main__":
    sys.exit(main())
