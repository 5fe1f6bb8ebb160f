from __future__ import annotations

import base64
import logging
import struct
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np
import soundfile as sf  # type: ignore[import]
from numpy.typing import NDArray

from .errors import AudioWriteError, InvalidParamsError

_LOGGER = logging.getLogger("chipsfx.audio")

FloatArray = NDArray[np.float32]
AudioNumbers = NDArray[np.floating[Any]] | Sequence[float] | FloatArray

WAV_HEADER_SIZE = 44
_PCM_FORMAT = 1
_CHANNELS = 1
_FMT_CHUNK_SIZE = 16
_DATA_URI_PREFIX = "data:audio/wav;base64,"


def riff_wave(data: bytes, *, sample_rate: int, bits_per_sample: int) -> bytes:
    """Wrap mono PCM bytes in a canonical 44-byte RIFF/WAVE header.

    8-bit data is unsigned (0..255); 16-bit data is signed little-endian.
    """

    if bits_per_sample not in (8, 16):
        raise InvalidParamsError(f"Unsupported bit depth: {bits_per_sample}")
    if sample_rate <= 0:
        raise InvalidParamsError(f"Sample rate must be positive, got {sample_rate}")
    byte_rate = (sample_rate * _CHANNELS * bits_per_sample) >> 3
    block_align = (_CHANNELS * bits_per_sample) >> 3
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        36 + len(data),
        b"WAVE",
        b"fmt ",
        _FMT_CHUNK_SIZE,
        _PCM_FORMAT,
        _CHANNELS,
        sample_rate,
        byte_rate,
        block_align,
        bits_per_sample,
        b"data",
        len(data),
    )
    return header + bytes(data)


def to_data_uri(wav: bytes) -> str:
    return _DATA_URI_PREFIX + base64.b64encode(wav).decode("ascii")


def write_wav(
    path: str | Path,
    data: bytes,
    *,
    sample_rate: int,
    bits_per_sample: int,
) -> Path:
    """Write quantized PCM bytes as a WAV file."""

    target = Path(path)
    wav = riff_wave(data, sample_rate=sample_rate, bits_per_sample=bits_per_sample)
    try:
        target.write_bytes(wav)
    except OSError as exc:
        _LOGGER.warning("Failed to write %s: %s", target, exc, exc_info=True)
        raise AudioWriteError(f"Could not write {target}: {exc}") from exc
    _LOGGER.debug("Wrote %d bytes to %s", len(wav), target)
    return target


def ensure_audio_contract(audio: AudioNumbers) -> FloatArray:
    """Normalize dtype/range/shape to mono float32 within [-1, 1]."""

    mono: FloatArray = np.asarray(audio, dtype=np.float32).reshape(-1)
    if mono.size == 0:
        return mono
    peak = float(np.max(np.abs(mono)))
    if peak > 1.0:
        mono = mono / peak
    return mono


def write_float_wav(
    path: str | Path,
    samples: AudioNumbers,
    *,
    sample_rate: int,
) -> Path:
    """Write normalized samples as a 32-bit float WAV through soundfile."""

    target = Path(path)
    normalized = ensure_audio_contract(samples)
    try:
        sf.write(target, normalized, sample_rate, subtype="FLOAT")
    except (OSError, RuntimeError) as exc:
        # libsndfile reports unwritable targets as RuntimeError subclasses.
        _LOGGER.warning("Failed to write %s: %s", target, exc, exc_info=True)
        raise AudioWriteError(f"Could not write {target}: {exc}") from exc
    return target
