import math
import struct

import pytest

from chipsfx import codec
from chipsfx.errors import FormatError, InvalidParamsError
from chipsfx.params import FLOAT_PARAMS, ParameterSet, WaveType


class TestPackFloat32:
    def test_exact_values(self) -> None:
        assert codec.pack_float32(1.0) == 0x3F800000
        assert codec.pack_float32(-2.0) == 0xC0000000
        assert codec.pack_float32(0.5) == 0x3F000000

    def test_truncates_instead_of_rounding(self) -> None:
        # IEEE round-to-nearest would give 0x3DCCCCCD.
        assert codec.pack_float32(0.1) == 0x3DCCCCCC

    def test_signed_zero(self) -> None:
        assert codec.pack_float32(0.0) == 0
        assert codec.pack_float32(-0.0) == 0x80000000

    def test_nan_pattern(self) -> None:
        assert codec.pack_float32(math.nan) == 0x7F801337

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (1e40, 0x7F800000),
            (-1e40, 0xFF800000),
            (math.inf, 0x7F800000),
            (-math.inf, 0xFF800000),
            (1e-40, 0x7F800000),
        ],
    )
    def test_out_of_range_saturates(self, value: float, expected: int) -> None:
        assert codec.pack_float32(value) == expected

    def test_unpack_matches_struct(self) -> None:
        for value in (0.25, -0.75, 3.0):
            bits = codec.pack_float32(value)
            assert bits == struct.unpack("<I", struct.pack("<f", value))[0]
            assert codec.unpack_float32(bits) == value


class TestBase58:
    def test_leading_zeros_become_ones(self) -> None:
        assert codec.b58encode(b"\x00\x00\x01") == "112"
        assert codec.b58decode("112") == b"\x00\x00\x01"

    def test_small_values(self) -> None:
        assert codec.b58encode(b"\x39") == "z"
        assert codec.b58encode(b"\x3a") == "21"
        assert codec.b58decode("21") == b"\x3a"

    def test_empty(self) -> None:
        assert codec.b58encode(b"") == ""
        assert codec.b58decode("") == b""

    def test_invalid_character(self) -> None:
        with pytest.raises(FormatError, match="position 2"):
            codec.b58decode("11O1")

    def test_bytes_roundtrip(self) -> None:
        data = bytes(range(0, 256, 7)) + b"\x00\xff"
        assert codec.b58decode(codec.b58encode(data)) == data


def test_payload_size() -> None:
    assert codec.PAYLOAD_SIZE == 89
    assert len(codec.params_to_bytes(ParameterSet())) == 89


def test_payload_layout() -> None:
    params = ParameterSet(wave_type=WaveType.NOISE, p_env_attack=0.5)
    payload = codec.params_to_bytes(params)
    assert payload[0] == 3
    assert struct.unpack_from("<f", payload, 1)[0] == 0.5


def test_encode_decode_roundtrip() -> None:
    params = ParameterSet(
        wave_type=WaveType.SAWTOOTH,
        p_base_freq=0.35,
        p_freq_ramp=-0.2,
        p_duty=0.1,
        p_pha_offset=-0.33,
        p_hpf_ramp=0.07,
    )
    decoded = codec.decode(codec.encode(params))
    assert decoded.wave_type == WaveType.SAWTOOTH
    for name in FLOAT_PARAMS:
        assert getattr(decoded, name) == pytest.approx(getattr(params, name), abs=1e-6)


def test_token_is_stable_after_one_pass() -> None:
    token = codec.encode(ParameterSet(p_base_freq=0.123456789))
    assert codec.encode(codec.decode(token)) == token


def test_all_zero_token() -> None:
    token = codec.encode(ParameterSet.model_validate({name: 0.0 for name in FLOAT_PARAMS}))
    assert token == "1" * 89
    decoded = codec.decode(token)
    assert decoded.wave_type == 0
    assert all(getattr(decoded, name) == 0.0 for name in FLOAT_PARAMS)


def test_decode_accepts_hash_prefix_and_whitespace() -> None:
    token = codec.encode(ParameterSet(p_duty=0.5))
    assert codec.decode(f"  #{token}\n") == codec.decode(token)


def test_decode_keeps_output_settings_from_base() -> None:
    token = codec.encode(ParameterSet(sound_vol=0.9))
    base = ParameterSet(sound_vol=0.2, sample_rate=11_025, sample_size=16)
    decoded = codec.decode(token, base=base)
    assert decoded.sound_vol == 0.2
    assert decoded.sample_rate == 11_025
    assert decoded.sample_size == 16


def test_decode_short_token_zero_pads() -> None:
    decoded = codec.decode("2")
    assert decoded.wave_type == 1
    assert decoded.p_env_sustain == 0.0


@pytest.mark.parametrize("token", ["", "#", "   "])
def test_decode_empty_token(token: str) -> None:
    with pytest.raises(FormatError):
        codec.decode(token)


def test_decode_invalid_token() -> None:
    with pytest.raises(FormatError):
        codec.decode("not-a-token!")


def test_encode_rejects_wave_type_outside_byte() -> None:
    with pytest.raises(InvalidParamsError):
        codec.encode(ParameterSet(wave_type=300))


def test_nan_survives_token() -> None:
    token = codec.encode(ParameterSet(p_duty=math.nan))
    assert math.isnan(codec.decode(token).p_duty)
