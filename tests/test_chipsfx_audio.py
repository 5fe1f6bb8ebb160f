import base64
import struct
from pathlib import Path

import numpy as np
import pytest
import soundfile as sf  # type: ignore[import]

from chipsfx.audio import (
    WAV_HEADER_SIZE,
    ensure_audio_contract,
    riff_wave,
    to_data_uri,
    write_float_wav,
    write_wav,
)
from chipsfx.errors import AudioWriteError, InvalidParamsError


def _header(wav: bytes) -> tuple:
    return struct.unpack("<4sI4s4sIHHIIHH4sI", wav[:WAV_HEADER_SIZE])


def test_riff_header_8bit() -> None:
    data = bytes([128] * 10)
    wav = riff_wave(data, sample_rate=44_100, bits_per_sample=8)
    header = _header(wav)
    assert header == (
        b"RIFF",
        36 + 10,
        b"WAVE",
        b"fmt ",
        16,
        1,
        1,
        44_100,
        44_100,
        1,
        8,
        b"data",
        10,
    )
    assert wav[WAV_HEADER_SIZE:] == data


def test_riff_header_16bit() -> None:
    data = b"\x00\x01" * 4
    wav = riff_wave(data, sample_rate=22_050, bits_per_sample=16)
    header = _header(wav)
    assert header[7] == 22_050
    assert header[8] == 44_100
    assert header[9] == 2
    assert header[10] == 16
    assert header[12] == len(data)


def test_riff_rejects_bad_settings() -> None:
    with pytest.raises(InvalidParamsError):
        riff_wave(b"", sample_rate=44_100, bits_per_sample=24)
    with pytest.raises(InvalidParamsError):
        riff_wave(b"", sample_rate=0, bits_per_sample=8)


def test_empty_data_is_valid_wav() -> None:
    wav = riff_wave(b"", sample_rate=44_100, bits_per_sample=8)
    assert len(wav) == WAV_HEADER_SIZE
    assert _header(wav)[1] == 36


def test_data_uri() -> None:
    wav = riff_wave(b"\x80", sample_rate=8_000, bits_per_sample=8)
    uri = to_data_uri(wav)
    assert uri.startswith("data:audio/wav;base64,")
    assert base64.b64decode(uri.split(",", 1)[1]) == wav


def test_write_wav_is_readable(tmp_path: Path) -> None:
    samples = np.array([0, 1000, -1000, 32767], dtype="<i2")
    target = tmp_path / "pcm.wav"
    write_wav(target, samples.tobytes(), sample_rate=22_050, bits_per_sample=16)
    data, rate = sf.read(target, dtype="int16")
    assert rate == 22_050
    assert np.array_equal(data, samples)


def test_write_wav_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(AudioWriteError):
        write_wav(tmp_path / "nope" / "x.wav", b"\x80", sample_rate=44_100, bits_per_sample=8)


def test_write_float_wav(tmp_path: Path) -> None:
    target = tmp_path / "float.wav"
    write_float_wav(target, [0.0, 0.5, -0.5], sample_rate=11_025)
    assert sf.info(str(target)).subtype == "FLOAT"
    data, rate = sf.read(target, dtype="float32")
    assert rate == 11_025
    assert np.allclose(data, [0.0, 0.5, -0.5])


def test_write_float_wav_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(AudioWriteError):
        write_float_wav(tmp_path / "nope" / "x.wav", [0.0], sample_rate=44_100)


def test_ensure_audio_contract_normalizes_peak() -> None:
    out = ensure_audio_contract(np.array([[2.0], [-4.0]]))
    assert out.dtype == np.float32
    assert out.shape == (2,)
    assert np.allclose(out, [0.5, -1.0])


def test_ensure_audio_contract_empty() -> None:
    assert ensure_audio_contract([]).size == 0
