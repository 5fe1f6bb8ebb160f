from __future__ import annotations

import json
import logging
from enum import IntEnum
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import FormatError

_LOGGER = logging.getLogger("chipsfx.params")


class WaveType(IntEnum):
    SQUARE = 0
    SAWTOOTH = 1
    SINE = 2
    NOISE = 3


SQUARE = WaveType.SQUARE
SAWTOOTH = WaveType.SAWTOOTH
SINE = WaveType.SINE
NOISE = WaveType.NOISE

# Wire order of the token payload: one byte of wave_type, then one
# little-endian float32 word per p_* field.
PARAMS_ORDER: tuple[str, ...] = (
    "wave_type",
    "p_env_attack",
    "p_env_sustain",
    "p_env_punch",
    "p_env_decay",
    "p_base_freq",
    "p_freq_limit",
    "p_freq_ramp",
    "p_freq_dramp",
    "p_vib_strength",
    "p_vib_speed",
    "p_arp_mod",
    "p_arp_speed",
    "p_duty",
    "p_duty_ramp",
    "p_repeat_speed",
    "p_pha_offset",
    "p_pha_ramp",
    "p_lpf_freq",
    "p_lpf_ramp",
    "p_lpf_resonance",
    "p_hpf_freq",
    "p_hpf_ramp",
)

FLOAT_PARAMS: tuple[str, ...] = PARAMS_ORDER[1:]

SIGNED_PARAMS: frozenset[str] = frozenset(
    {
        "p_freq_ramp",
        "p_freq_dramp",
        "p_arp_mod",
        "p_duty_ramp",
        "p_pha_offset",
        "p_pha_ramp",
        "p_lpf_ramp",
        "p_hpf_ramp",
    }
)

SampleSize = Literal[8, 16]


class ParameterSet(BaseModel):
    """Declarative description of one sound effect.

    Slider fields are normalized scalars; unsigned ones live in [0, 1] and the
    ones listed in ``SIGNED_PARAMS`` in [-1, 1]. Ranges are not enforced here:
    the randomizers in ``chipsfx.presets`` deliberately overshoot them and the
    render engine clamps the quantities it derives.
    """

    wave_type: int = WaveType.SQUARE

    # Envelope
    p_env_attack: float = 0.0
    p_env_sustain: float = 0.3
    p_env_punch: float = 0.0
    p_env_decay: float = 0.4

    # Frequency
    p_base_freq: float = 0.3
    p_freq_limit: float = 0.0
    p_freq_ramp: float = 0.0
    p_freq_dramp: float = 0.0

    # Vibrato
    p_vib_strength: float = 0.0
    p_vib_speed: float = 0.0

    # Arpeggio
    p_arp_mod: float = 0.0
    p_arp_speed: float = 0.0

    # Duty cycle
    p_duty: float = 0.0
    p_duty_ramp: float = 0.0

    # Repeat
    p_repeat_speed: float = 0.0

    # Phaser
    p_pha_offset: float = 0.0
    p_pha_ramp: float = 0.0

    # Filters
    p_lpf_freq: float = 1.0
    p_lpf_ramp: float = 0.0
    p_lpf_resonance: float = 0.0
    p_hpf_freq: float = 0.0
    p_hpf_ramp: float = 0.0

    # Output
    sound_vol: float = 0.5
    sample_rate: int = Field(default=44_100, gt=0)
    sample_size: SampleSize = 8

    model_config = ConfigDict(frozen=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()

    def with_updates(self, **changes: Any) -> "ParameterSet":
        """Return a validated copy with ``changes`` applied."""
        return type(self).model_validate({**self.model_dump(), **changes})


def parse_params(
    payload: Mapping[str, Any],
    *,
    base: ParameterSet | None = None,
) -> ParameterSet:
    """Build a ParameterSet from the structured form.

    Unknown keys are ignored; keys that are missing keep the value from
    ``base`` (or the defaults).
    """

    if not isinstance(payload, Mapping):
        raise FormatError(f"Expected a mapping of parameters, got {type(payload).__name__}")
    merged: dict[str, Any] = base.model_dump() if base is not None else {}
    merged.update(payload)
    try:
        return ParameterSet.model_validate(merged)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse parameter payload: %s", exc, exc_info=True)
        raise FormatError(str(exc)) from exc


def params_from_json(text: str, *, base: ParameterSet | None = None) -> ParameterSet:
    """Parse the JSON rendition of the structured form."""

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(f"Failed to parse JSON parameters: {exc}") from exc
    if not isinstance(payload, dict):
        raise FormatError("JSON parameters must be an object")
    return parse_params(payload, base=base)
