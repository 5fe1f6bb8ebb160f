from __future__ import annotations

from .codec import decode, encode
from .errors import AudioWriteError, ChipSfxError, FormatError, InvalidParamsError, PlaybackError
from .logging_utils import configure_logging as _configure_logging
from .params import (
    NOISE,
    PARAMS_ORDER,
    SAWTOOTH,
    SIGNED_PARAMS,
    SINE,
    SQUARE,
    ParameterSet,
    WaveType,
    params_from_json,
    parse_params,
)
from .presets import PRESETS, generate
from .sliders import SLIDERS, SLIDERS_INVERSE, from_engine_units, to_engine_units
from .sound import SoundEffect, b58decode, b58encode, play, to_buffer, to_wave
from .synth import (
    INTERNAL_SAMPLE_RATE,
    OVERSAMPLING,
    RenderResult,
    get_master_volume,
    render,
    set_master_volume,
)

__all__ = [
    "INTERNAL_SAMPLE_RATE",
    "NOISE",
    "OVERSAMPLING",
    "PARAMS_ORDER",
    "PRESETS",
    "SAWTOOTH",
    "SIGNED_PARAMS",
    "SLIDERS",
    "SLIDERS_INVERSE",
    "SINE",
    "SQUARE",
    "AudioWriteError",
    "ChipSfxError",
    "FormatError",
    "InvalidParamsError",
    "ParameterSet",
    "PlaybackError",
    "RenderResult",
    "SoundEffect",
    "WaveType",
    "b58decode",
    "b58encode",
    "decode",
    "encode",
    "from_engine_units",
    "generate",
    "get_master_volume",
    "params_from_json",
    "parse_params",
    "play",
    "render",
    "set_master_volume",
    "to_engine_units",
    "to_buffer",
    "to_wave",
]

__version__ = "0.1.0"

_configure_logging()
del _configure_logging
