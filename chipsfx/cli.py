from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import IO

import numpy as np
from rich.console import Console

from . import codec
from .errors import ChipSfxError, FormatError
from .logging_utils import configure_logging, is_debug, log_exception
from .params import PARAMS_ORDER, ParameterSet, params_from_json, parse_params
from .presets import PRESETS, generate
from .spinner import Spinner, render_error
from .synth import RenderResult, render

_LOGGER = logging.getLogger("chipsfx.cli")
_CONSOLE = Console(stderr=True)

DEFAULT_OUTPUT = "sfxr-sound.wav"
DEFAULT_VOLUME = 0.25
DEFAULT_SAMPLE_RATE = 44_100
DEFAULT_SAMPLE_SIZE = 8


def _add_output_settings(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--volume", type=float, default=DEFAULT_VOLUME)
    parser.add_argument("--sample-rate", type=int, default=DEFAULT_SAMPLE_RATE)
    parser.add_argument("--bits", type=int, choices=(8, 16), default=DEFAULT_SAMPLE_SIZE)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chipsfx",
        description="Render 8-bit sound effects from sfxr parameter tokens.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render_cmd = sub.add_parser(
        "render",
        help="Render a token (or JSON parameters on stdin) to a WAV file.",
    )
    render_cmd.add_argument("token", nargs="?", help="Base58 synth definition.")
    render_cmd.add_argument("-o", "--output", type=str, default=None)
    render_cmd.add_argument("--float-wav", type=str, default=None, help="Also write a float WAV.")
    render_cmd.add_argument("--play", action="store_true", help="Play the sound after rendering.")
    render_cmd.add_argument("--seed", type=int, default=None, help="Seed for the noise generator.")
    _add_output_settings(render_cmd)

    sub.add_parser("encode", help="Read JSON parameters on stdin and print the token.")

    decode_cmd = sub.add_parser("decode", help="Print the JSON parameters of a token.")
    decode_cmd.add_argument("token")

    preset_cmd = sub.add_parser("preset", help="Generate a randomized preset.")
    preset_cmd.add_argument("name", choices=sorted(PRESETS))
    preset_cmd.add_argument("--seed", type=int, default=None)
    preset_cmd.add_argument("-o", "--output", type=str, default=None)
    _add_output_settings(preset_cmd)
    return parser


def _output_settings(args: argparse.Namespace) -> ParameterSet:
    return parse_params(
        {
            "sound_vol": args.volume,
            "sample_rate": args.sample_rate,
            "sample_size": args.bits,
        }
    )


def _read_stdin_params(stdin: IO[str], base: ParameterSet | None = None) -> ParameterSet:
    if stdin.isatty():
        raise FormatError("No synth definition provided and no data piped to stdin.")
    try:
        text = stdin.read().strip()
    except OSError as exc:
        raise FormatError(f"Could not read parameters from stdin: {exc}") from exc
    if not text:
        raise FormatError("No JSON parameters received on stdin.")
    return params_from_json(text, base=base)


def _render_and_save(params: ParameterSet, output: str, *, seed: int | None) -> RenderResult:
    _CONSOLE.print(
        f"Generating sound with sample rate: {params.sample_rate}Hz, bits: {params.sample_size}"
    )
    with Spinner("Rendering sound"):
        result = render(params, rng=np.random.default_rng(seed))
    path = result.save(output)
    size_kb = path.stat().st_size / 1024
    _CONSOLE.print(f"✅ WAV file successfully written to: {path}")
    _CONSOLE.print(f"📊 File size: {size_kb:.1f} KB")
    if result.clipped:
        _LOGGER.warning("%d samples clipped during quantization", result.clipped)
    return result


def _run_render(args: argparse.Namespace, stdin: IO[str]) -> int:
    base = _output_settings(args)
    if args.token:
        _CONSOLE.print(f"Decoding synth definition: {args.token}")
        params = codec.decode(args.token, base=base)
        output = args.output or f"{args.token.lstrip('#')}.wav"
    else:
        _CONSOLE.print("Reading JSON parameters from stdin...")
        params = _read_stdin_params(stdin, base=base)
        output = args.output or DEFAULT_OUTPUT

    result = _render_and_save(params, output, seed=args.seed)
    if args.float_wav:
        path = result.save_float(args.float_wav)
        _CONSOLE.print(f"Wrote float WAV to {path}")
    if args.play:
        result.play()
    return 0


def _run_encode(stdin: IO[str], stdout: IO[str]) -> int:
    params = _read_stdin_params(stdin)
    stdout.write(codec.encode(params) + "\n")
    return 0


def _run_decode(args: argparse.Namespace, stdout: IO[str]) -> int:
    params = codec.decode(args.token)
    payload = params.model_dump(include=set(PARAMS_ORDER))
    stdout.write(json.dumps(payload, indent=2) + "\n")
    return 0


def _run_preset(args: argparse.Namespace, stdout: IO[str]) -> int:
    params = generate(
        args.name,
        np.random.default_rng(args.seed),
        sound_vol=args.volume,
        sample_rate=args.sample_rate,
        sample_size=args.bits,
    )
    stdout.write(codec.encode(params) + "\n")
    if args.output:
        _render_and_save(params, args.output, seed=args.seed)
    return 0


def main(
    argv: list[str] | None = None,
    *,
    stdin: IO[str] | None = None,
    stdout: IO[str] | None = None,
) -> int:
    configure_logging()
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "render":
            return _run_render(args, stdin)
        if args.command == "encode":
            return _run_encode(stdin, stdout)
        if args.command == "decode":
            return _run_decode(args, stdout)
        if args.command == "preset":
            return _run_preset(args, stdout)
        parser.print_help()
        return 1
    except ChipSfxError as exc:
        _LOGGER.warning("chipsfx %s failed: %s", args.command, exc, exc_info=is_debug())
        log_exception(f"chipsfx {args.command}", exc)
        render_error(f"chipsfx {args.command}", exc)
        return 1


def _entrypoint() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    _entrypoint()
