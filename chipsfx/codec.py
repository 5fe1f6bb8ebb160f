"""
Token codec for parameter sets.

A token is the base58 rendition of an 89-byte payload: the wave type as one
byte, followed by every ``p_*`` field as a little-endian float32 word in
``PARAMS_ORDER``. The float packing truncates instead of rounding and has two
non-IEEE quirks that existing tokens depend on:

* NaN is stored as the fixed pattern ``0x7F801337``.
* Magnitudes whose binary exponent falls outside [-126, 127] (including
  float64 subnormals and infinities) saturate to ``sign | 0x7F800000``.
"""

from __future__ import annotations

import logging
import math
import struct
from types import MappingProxyType
from typing import Mapping

from .errors import FormatError, InvalidParamsError
from .params import FLOAT_PARAMS, ParameterSet

_LOGGER = logging.getLogger("chipsfx.codec")

B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_B58_INDEX: Mapping[str, int] = MappingProxyType(
    {char: index for index, char in enumerate(B58_ALPHABET)}
)
_BASE = len(B58_ALPHABET)

PAYLOAD_SIZE = 1 + 4 * len(FLOAT_PARAMS)

NAN_PATTERN = 0x7F801337
_EXPONENT_BIAS = 127
_EXPONENT_MIN = -126
_EXPONENT_MAX = 127


def _assemble_float32(sign: int, exponent: int, mantissa: int) -> int:
    return (sign << 31) | (exponent << 23) | mantissa


def pack_float32(value: float) -> int:
    """Pack a float into a 32-bit binary32 pattern, truncating the mantissa."""

    if math.isnan(value):
        return NAN_PATTERN
    sign = 1 if math.copysign(1.0, value) < 0 else 0
    magnitude = abs(value)
    if magnitude == 0.0:
        return _assemble_float32(sign, 0, 0)

    (bits,) = struct.unpack("<Q", struct.pack("<d", magnitude))
    exponent = ((bits >> 52) & 0x7FF) - 1023
    if exponent > _EXPONENT_MAX or exponent < _EXPONENT_MIN:
        return _assemble_float32(sign, 0xFF, 0)
    # Top 23 of the 52 float64 fraction bits.
    mantissa = (bits >> 29) & 0x7FFFFF
    return _assemble_float32(sign, exponent + _EXPONENT_BIAS, mantissa)


def unpack_float32(bits: int) -> float:
    """Reinterpret a 32-bit pattern as an IEEE-754 binary32 value."""

    (value,) = struct.unpack("<f", struct.pack("<I", bits & 0xFFFFFFFF))
    return float(value)


def b58encode(data: bytes) -> str:
    """Encode bytes as base58, one leading ``'1'`` per leading zero byte."""

    digits: list[int] = []  # little-endian, base 58
    for byte in data:
        carry = byte
        for index, digit in enumerate(digits):
            carry += digit * 256
            digits[index] = carry % _BASE
            carry //= _BASE
        while carry:
            digits.append(carry % _BASE)
            carry //= _BASE

    leading_zeros = len(data) - len(data.lstrip(b"\x00"))
    return B58_ALPHABET[0] * leading_zeros + "".join(
        B58_ALPHABET[digit] for digit in reversed(digits)
    )


def b58decode(text: str) -> bytes:
    """Decode a base58 string, restoring one zero byte per leading ``'1'``."""

    digits: list[int] = []  # little-endian, base 256
    for position, char in enumerate(text):
        try:
            carry = _B58_INDEX[char]
        except KeyError as exc:
            raise FormatError(
                f"Invalid base58 character {char!r} at position {position}"
            ) from exc
        for index, digit in enumerate(digits):
            carry += digit * _BASE
            digits[index] = carry & 0xFF
            carry >>= 8
        while carry:
            digits.append(carry & 0xFF)
            carry >>= 8

    leading_zeros = len(text) - len(text.lstrip(B58_ALPHABET[0]))
    return bytes(leading_zeros) + bytes(reversed(digits))


def params_to_bytes(params: ParameterSet) -> bytes:
    if not 0 <= params.wave_type <= 0xFF:
        raise InvalidParamsError(f"wave_type {params.wave_type} does not fit in one byte")
    payload = bytearray((params.wave_type,))
    for name in FLOAT_PARAMS:
        payload += struct.pack("<I", pack_float32(getattr(params, name)))
    return bytes(payload)


def params_from_bytes(data: bytes, *, base: ParameterSet | None = None) -> ParameterSet:
    """Rebuild a ParameterSet from a payload; missing trailing bytes read as zero."""

    if not data:
        raise FormatError("Parameter payload is empty")
    padded = data.ljust(PAYLOAD_SIZE, b"\x00")
    fields: dict[str, object] = {"wave_type": padded[0]}
    for index, name in enumerate(FLOAT_PARAMS):
        offset = 1 + 4 * index
        (bits,) = struct.unpack_from("<I", padded, offset)
        fields[name] = unpack_float32(bits)
    merged = base.model_dump() if base is not None else {}
    merged.update(fields)
    return ParameterSet.model_validate(merged)


def encode(params: ParameterSet) -> str:
    """Serialize ``params`` to a base58 token."""

    return b58encode(params_to_bytes(params))


def decode(token: str, *, base: ParameterSet | None = None) -> ParameterSet:
    """Parse a token (optionally ``#``-prefixed) back into a ParameterSet.

    Only the wire fields are carried by a token; ``sound_vol``,
    ``sample_rate`` and ``sample_size`` come from ``base`` or the defaults.
    """

    cleaned = token.strip().removeprefix("#")
    if not cleaned:
        raise FormatError("Token is empty")
    payload = b58decode(cleaned)
    if len(payload) != PAYLOAD_SIZE:
        _LOGGER.debug("Token payload is %d bytes, expected %d", len(payload), PAYLOAD_SIZE)
    return params_from_bytes(payload, base=base)
