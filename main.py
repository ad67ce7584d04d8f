#!/usr/bin/env python3
"""
Remixer CLI
Slow down, speed up, pitch-shift and add reverb to an audio file.

Usage:
    python main.py song.wav --tempo 0.8 --reverb 50
    python main.py song.mp3 --preset nightcore-heavy --output-dir out/
    python main.py --list-presets
"""

import argparse
import logging
import os
import sys
import time
from typing import Optional

from tqdm import tqdm

from application.dto.processing_dto import EffectParameters
from infrastructure.audio.ffmpeg_engine import FfmpegEngine
from remixer.core import ProcessingOrchestrator
from remixer.errors import ProcessingError
from remixer.presets import get_preset, list_presets
from remixer.printer import OutputPrinter
from remixer.utils import DEFAULT_PARAMS, validate_input_file, validate_output_dir


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="remixer",
        description="Apply tempo, pitch and reverb to an audio file. Output is always MP3.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py song.wav --tempo 0.8 --reverb 50
  python main.py song.mp3 --tempo 1.35 --pitch 4 --reverb 25
  python main.py song.mp3 --preset slowed-heavy --output-dir renders/

Parameter guide:
  --tempo   0.5 = half speed  | 1.0 = unchanged | 2.0 = double speed
  --pitch   -12 = octave down | 0   = unchanged | 12  = octave up
  --reverb  0   = dry         | 50  = roomy     | 100 = drenched
        """,
    )

    parser.add_argument(
        "input",
        metavar="INPUT",
        nargs="?",
        default=None,
        help="Path to the input audio file (.mp3, .wav, .flac, .ogg, .aac, .m4a).",
    )

    # Effect parameters
    fx_group = parser.add_argument_group("Effect Parameters")
    fx_group.add_argument(
        "--tempo",
        "-t",
        type=float,
        default=DEFAULT_PARAMS["tempo"],
        metavar="FACTOR",
        help=f"Playback speed factor, 0.5–2.0 (default: {DEFAULT_PARAMS['tempo']}).",
    )
    fx_group.add_argument(
        "--pitch",
        "-p",
        type=int,
        default=DEFAULT_PARAMS["pitch"],
        metavar="SEMITONES",
        help=f"Pitch shift in semitones, -12–12 (default: {DEFAULT_PARAMS['pitch']}).",
    )
    fx_group.add_argument(
        "--reverb",
        "-r",
        type=int,
        default=DEFAULT_PARAMS["reverb"],
        metavar="PERCENT",
        help=f"Reverb amount, 0–100 (default: {DEFAULT_PARAMS['reverb']}).",
    )
    fx_group.add_argument(
        "--preset",
        type=str,
        default=None,
        metavar="ID",
        help="Use a named preset instead of --tempo/--pitch/--reverb.",
    )
    fx_group.add_argument(
        "--list-presets",
        action="store_true",
        help="Show the available presets and exit.",
    )

    # Output options
    out_group = parser.add_argument_group("Output Options")
    out_group.add_argument(
        "--output-dir",
        "-o",
        type=str,
        default=None,
        metavar="DIR",
        help="Directory for the result (default: next to INPUT).",
    )
    out_group.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Give up if ffmpeg runs longer than this.",
    )
    out_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress all output except errors.",
    )
    out_group.add_argument(
        "--no-color",
        "-n",
        action="store_true",
        help="Disable colored output (also auto-disabled when NO_COLOR env var is set).",
    )
    out_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log engine commands and filter graphs.",
    )

    return parser


def resolve_params(args: argparse.Namespace) -> EffectParameters:
    """Preset wins over the individual flags. Raises KeyError / ValueError."""
    if args.preset:
        return get_preset(args.preset).params
    return EffectParameters(
        tempo=args.tempo,
        pitch_semitones=args.pitch,
        reverb_percent=args.reverb,
    )


def print_presets() -> None:
    for preset in list_presets():
        p: EffectParameters = preset.params
        print(
            f"  {preset.preset_id:<16} {preset.name:<26} "
            f"tempo={p.tempo:<5} pitch={p.pitch_semitones:+d} reverb={p.reverb_percent}%"
        )


def run_job(
    engine: FfmpegEngine,
    input_path: str,
    params: EffectParameters,
    quiet: bool,
):
    """Read INPUT, run the orchestrator, return the artifact."""
    with open(input_path, "rb") as f:
        input_bytes: bytes = f.read()

    orchestrator = ProcessingOrchestrator(engine)
    name: str = os.path.basename(input_path)

    if quiet:
        return orchestrator.run(input_bytes, name, params)

    with tqdm(total=100, desc="Starting", unit="%") as pbar:

        def cli_callback(percent: int, status: str) -> None:
            pbar.set_description(status.rstrip("."))
            pbar.update(percent - pbar.n)

        return orchestrator.run(input_bytes, name, params, cli_callback)


def main(argv: Optional[list] = None) -> None:
    parser: argparse.ArgumentParser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    printer: OutputPrinter = OutputPrinter(
        quiet=args.quiet,
        no_color=args.no_color,
    )

    if args.list_presets:
        print_presets()
        return

    if args.input is None:
        parser.error("Provide an INPUT file, or use --list-presets.")
        return  # unreachable but satisfies type checkers

    output_dir: str = args.output_dir or os.path.dirname(os.path.abspath(args.input))

    start_time = time.time()
    try:
        validate_input_file(args.input)
        validate_output_dir(output_dir)
        params: EffectParameters = resolve_params(args)
        printer.effects(params)

        if not FfmpegEngine.is_available():
            printer.error("FFmpeg not found.", hint="Install FFmpeg or set FFMPEG_BINARY.")
            sys.exit(1)

        with FfmpegEngine(timeout=args.timeout) as engine:
            artifact = run_job(engine, args.input, params, args.quiet)

        output_path: str = os.path.join(output_dir, artifact.file_name)
        with open(output_path, "wb") as f:
            f.write(artifact.data)

        size_mb: float = artifact.size_bytes / (1024 * 1024)
        elapsed: float = time.time() - start_time
        printer.success(
            title=output_path,
            details={
                "Format": "MP3",
                "Size": f"{size_mb:.2f} MB",
                "Time": f"{elapsed:.1f}s",
            },
        )

    except KeyError as exc:
        printer.error(str(exc.args[0]), hint="Run with --list-presets to see valid ids.")
        sys.exit(1)
    except (FileNotFoundError, ValueError, ProcessingError) as exc:
        printer.error(str(exc))
        sys.exit(1)
    except KeyboardInterrupt:
        printer.warning("Processing cancelled.", hint="Output file was not saved.")
        sys.exit(130)


if __name__ == "__main__":
    main()
