"""
Randomized parameter presets.

Each preset is a pure function of a ``numpy.random.Generator`` and an
optional base parameter set; a seeded generator always yields the same
sound. Presets only touch the fields they care about, so the remaining
values come from ``base`` (or the ParameterSet defaults).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import MappingProxyType
from typing import Any, Mapping, TypeAlias

import numpy as np

from .errors import InvalidParamsError
from .params import NOISE, SAWTOOTH, SINE, SQUARE, ParameterSet, parse_params

_LOGGER = logging.getLogger("chipsfx.presets")

Fields: TypeAlias = dict[str, Any]
_Mutator: TypeAlias = Callable[[Fields, np.random.Generator], None]
Preset: TypeAlias = Callable[..., ParameterSet]

# Fields nudged by mutate(), in draw order.
_MUTABLE_FIELDS = (
    "p_base_freq",
    "p_freq_ramp",
    "p_freq_dramp",
    "p_duty",
    "p_duty_ramp",
    "p_vib_strength",
    "p_vib_speed",
    "p_env_attack",
    "p_env_sustain",
    "p_env_decay",
    "p_env_punch",
    "p_lpf_resonance",
    "p_lpf_freq",
    "p_lpf_ramp",
    "p_hpf_freq",
    "p_hpf_ramp",
    "p_pha_offset",
    "p_pha_ramp",
    "p_repeat_speed",
    "p_arp_speed",
    "p_arp_mod",
)


def _frnd(rng: np.random.Generator, span: float) -> float:
    return float(rng.random()) * span


def _rndr(rng: np.random.Generator, low: float, high: float) -> float:
    return float(rng.random()) * (high - low) + low


def _rnd(rng: np.random.Generator, upper: int) -> int:
    """Uniform integer in [0, upper]."""
    return int(rng.integers(0, upper + 1))


def _pickup_coin(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = SAWTOOTH
    p["p_base_freq"] = 0.4 + _frnd(rng, 0.5)
    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = _frnd(rng, 0.1)
    p["p_env_decay"] = 0.1 + _frnd(rng, 0.4)
    p["p_env_punch"] = 0.3 + _frnd(rng, 0.3)
    if _rnd(rng, 1):
        p["p_arp_speed"] = 0.5 + _frnd(rng, 0.2)
        p["p_arp_mod"] = 0.2 + _frnd(rng, 0.4)


def _laser_shoot(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = _rnd(rng, 2)
    if p["wave_type"] == SINE and _rnd(rng, 1):
        p["wave_type"] = _rnd(rng, 1)

    if _rnd(rng, 2) == 0:
        p["p_base_freq"] = 0.3 + _frnd(rng, 0.6)
        p["p_freq_limit"] = _frnd(rng, 0.1)
        p["p_freq_ramp"] = -0.35 - _frnd(rng, 0.3)
    else:
        p["p_base_freq"] = 0.5 + _frnd(rng, 0.5)
        p["p_freq_limit"] = max(0.2, p["p_base_freq"] - 0.2 - _frnd(rng, 0.6))
        p["p_freq_ramp"] = -0.15 - _frnd(rng, 0.2)

    if p["wave_type"] == SAWTOOTH:
        p["p_duty"] = 1.0
    if _rnd(rng, 1):
        p["p_duty"] = _frnd(rng, 0.5)
        p["p_duty_ramp"] = _frnd(rng, 0.2)
    else:
        p["p_duty"] = 0.4 + _frnd(rng, 0.5)
        p["p_duty_ramp"] = -_frnd(rng, 0.7)

    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = 0.1 + _frnd(rng, 0.2)
    p["p_env_decay"] = _frnd(rng, 0.4)
    if _rnd(rng, 1):
        p["p_env_punch"] = _frnd(rng, 0.3)

    if _rnd(rng, 2) == 0:
        p["p_pha_offset"] = _frnd(rng, 0.2)
        p["p_pha_ramp"] = -_frnd(rng, 0.2)

    p["p_hpf_freq"] = _frnd(rng, 0.3)


def _explosion(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = NOISE
    if _rnd(rng, 1):
        p["p_base_freq"] = (0.1 + _frnd(rng, 0.4)) ** 2
        p["p_freq_ramp"] = -0.1 + _frnd(rng, 0.4)
    else:
        p["p_base_freq"] = (0.2 + _frnd(rng, 0.7)) ** 2
        p["p_freq_ramp"] = -0.2 - _frnd(rng, 0.2)
    if _rnd(rng, 4) == 0:
        p["p_freq_ramp"] = 0.0
    if _rnd(rng, 2) == 0:
        p["p_repeat_speed"] = 0.3 + _frnd(rng, 0.5)

    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = 0.1 + _frnd(rng, 0.3)
    p["p_env_decay"] = _frnd(rng, 0.5)
    if _rnd(rng, 1):
        p["p_pha_offset"] = -0.3 + _frnd(rng, 0.9)
        p["p_pha_ramp"] = -_frnd(rng, 0.3)
    p["p_env_punch"] = 0.2 + _frnd(rng, 0.6)
    if _rnd(rng, 1):
        p["p_vib_strength"] = _frnd(rng, 0.7)
        p["p_vib_speed"] = _frnd(rng, 0.6)
    if _rnd(rng, 2) == 0:
        p["p_arp_speed"] = 0.6 + _frnd(rng, 0.3)
        p["p_arp_mod"] = 0.8 - _frnd(rng, 1.6)


def _power_up(p: Fields, rng: np.random.Generator) -> None:
    if _rnd(rng, 1):
        p["wave_type"] = SAWTOOTH
        p["p_duty"] = 1.0
    else:
        p["p_duty"] = _frnd(rng, 0.6)
    p["p_base_freq"] = 0.2 + _frnd(rng, 0.3)
    if _rnd(rng, 1):
        p["p_freq_ramp"] = 0.1 + _frnd(rng, 0.4)
        p["p_repeat_speed"] = 0.4 + _frnd(rng, 0.4)
    else:
        p["p_freq_ramp"] = 0.05 + _frnd(rng, 0.2)
        if _rnd(rng, 1):
            p["p_vib_strength"] = _frnd(rng, 0.7)
            p["p_vib_speed"] = _frnd(rng, 0.6)
    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = _frnd(rng, 0.4)
    p["p_env_decay"] = 0.1 + _frnd(rng, 0.4)


def _hit_hurt(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = _rnd(rng, 2)
    if p["wave_type"] == SINE:
        p["wave_type"] = NOISE
    if p["wave_type"] == SQUARE:
        p["p_duty"] = _frnd(rng, 0.6)
    if p["wave_type"] == SAWTOOTH:
        p["p_duty"] = 1.0
    p["p_base_freq"] = 0.2 + _frnd(rng, 0.6)
    p["p_freq_ramp"] = -0.3 - _frnd(rng, 0.4)
    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = _frnd(rng, 0.1)
    p["p_env_decay"] = 0.1 + _frnd(rng, 0.2)
    if _rnd(rng, 1):
        p["p_hpf_freq"] = _frnd(rng, 0.3)


def _jump(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = SQUARE
    p["p_duty"] = _frnd(rng, 0.6)
    p["p_base_freq"] = 0.3 + _frnd(rng, 0.3)
    p["p_freq_ramp"] = 0.1 + _frnd(rng, 0.2)
    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = 0.1 + _frnd(rng, 0.3)
    p["p_env_decay"] = 0.1 + _frnd(rng, 0.2)
    if _rnd(rng, 1):
        p["p_hpf_freq"] = _frnd(rng, 0.3)
    if _rnd(rng, 1):
        p["p_lpf_freq"] = 1 - _frnd(rng, 0.6)


def _blip_select(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = _rnd(rng, 1)
    if p["wave_type"] == SQUARE:
        p["p_duty"] = _frnd(rng, 0.6)
    else:
        p["p_duty"] = 1.0
    p["p_base_freq"] = 0.2 + _frnd(rng, 0.4)
    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = 0.1 + _frnd(rng, 0.1)
    p["p_env_decay"] = _frnd(rng, 0.2)
    p["p_hpf_freq"] = 0.1


_SYNTH_BASE_FREQS = (0.2723171360931539, 0.19255692561524382, 0.13615778746815113)
_SYNTH_ARP_MODS = (0.0, 0.0, 0.0, 0.0, -0.3162, 0.7454, 0.7454)


def _synth(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = _rnd(rng, 1)
    p["p_base_freq"] = _SYNTH_BASE_FREQS[_rnd(rng, 2)]
    p["p_env_attack"] = _frnd(rng, 0.5) if _rnd(rng, 4) > 3 else 0.0
    p["p_env_sustain"] = _frnd(rng, 1)
    p["p_env_punch"] = _frnd(rng, 1)
    p["p_env_decay"] = _frnd(rng, 0.9) + 0.1
    p["p_arp_mod"] = _SYNTH_ARP_MODS[_rnd(rng, 6)]
    p["p_arp_speed"] = _frnd(rng, 0.5) + 0.4
    p["p_duty"] = _frnd(rng, 1)
    p["p_duty_ramp"] = _frnd(rng, 1) if _rnd(rng, 2) == 2 else 0.0
    lpf_choices = (1.0, 0.9 * _frnd(rng, 1) * _frnd(rng, 1) + 0.1)
    p["p_lpf_freq"] = lpf_choices[_rnd(rng, 1)]
    p["p_lpf_ramp"] = _rndr(rng, -1, 1)
    p["p_lpf_resonance"] = _frnd(rng, 1)
    p["p_hpf_freq"] = _frnd(rng, 1) if _rnd(rng, 3) == 3 else 0.0
    p["p_hpf_ramp"] = _frnd(rng, 1) if _rnd(rng, 3) == 3 else 0.0


def _tone(p: Fields, rng: np.random.Generator) -> None:
    _ = rng
    p["wave_type"] = SINE
    p["p_base_freq"] = 0.35173364  # 440 Hz
    p["p_env_attack"] = 0.0
    p["p_env_sustain"] = 0.6641  # 1 sec
    p["p_env_decay"] = 0.0
    p["p_env_punch"] = 0.0


def _click(p: Fields, rng: np.random.Generator) -> None:
    base = (_explosion, _hit_hurt)[_rnd(rng, 1)]
    base(p, rng)
    if _rnd(rng, 1):
        p["p_freq_ramp"] = -0.5 + _frnd(rng, 1.0)
    if _rnd(rng, 1):
        p["p_env_sustain"] = (_frnd(rng, 0.4) + 0.2) * p["p_env_sustain"]
        p["p_env_decay"] = (_frnd(rng, 0.4) + 0.2) * p["p_env_decay"]
    if _rnd(rng, 3) == 0:
        p["p_env_attack"] = _frnd(rng, 0.3)
    p["p_base_freq"] = 1 - _frnd(rng, 0.25)
    p["p_hpf_freq"] = 1 - _frnd(rng, 0.1)


def _random(p: Fields, rng: np.random.Generator) -> None:
    p["wave_type"] = _rnd(rng, 3)
    if _rnd(rng, 1):
        p["p_base_freq"] = (_frnd(rng, 2) - 1) ** 3 + 0.5
    else:
        p["p_base_freq"] = _frnd(rng, 1) ** 2
    p["p_freq_limit"] = 0.0
    p["p_freq_ramp"] = (_frnd(rng, 2) - 1) ** 5
    if p["p_base_freq"] > 0.7 and p["p_freq_ramp"] > 0.2:
        p["p_freq_ramp"] = -p["p_freq_ramp"]
    if p["p_base_freq"] < 0.2 and p["p_freq_ramp"] < -0.05:
        p["p_freq_ramp"] = -p["p_freq_ramp"]
    p["p_freq_dramp"] = (_frnd(rng, 2) - 1) ** 3
    p["p_duty"] = _frnd(rng, 2) - 1
    p["p_duty_ramp"] = (_frnd(rng, 2) - 1) ** 3
    p["p_vib_strength"] = (_frnd(rng, 2) - 1) ** 3
    p["p_vib_speed"] = _rndr(rng, -1, 1)
    p["p_env_attack"] = _rndr(rng, -1, 1) ** 3
    p["p_env_sustain"] = _rndr(rng, -1, 1) ** 2
    p["p_env_decay"] = _rndr(rng, -1, 1)
    p["p_env_punch"] = _frnd(rng, 0.8) ** 2
    if p["p_env_attack"] + p["p_env_sustain"] + p["p_env_decay"] < 0.2:
        p["p_env_sustain"] += 0.2 + _frnd(rng, 0.3)
        p["p_env_decay"] += 0.2 + _frnd(rng, 0.3)
    p["p_lpf_resonance"] = _rndr(rng, -1, 1)
    p["p_lpf_freq"] = 1 - _frnd(rng, 1) ** 3
    p["p_lpf_ramp"] = (_frnd(rng, 2) - 1) ** 3
    if p["p_lpf_freq"] < 0.1 and p["p_lpf_ramp"] < -0.05:
        p["p_lpf_ramp"] = -p["p_lpf_ramp"]
    p["p_hpf_freq"] = _frnd(rng, 1) ** 5
    p["p_hpf_ramp"] = (_frnd(rng, 2) - 1) ** 5
    p["p_pha_offset"] = (_frnd(rng, 2) - 1) ** 3
    p["p_pha_ramp"] = (_frnd(rng, 2) - 1) ** 3
    p["p_repeat_speed"] = _frnd(rng, 2) - 1
    p["p_arp_speed"] = _frnd(rng, 2) - 1
    p["p_arp_mod"] = _frnd(rng, 2) - 1


def _mutate(p: Fields, rng: np.random.Generator) -> None:
    for name in _MUTABLE_FIELDS:
        if _rnd(rng, 1):
            p[name] = p[name] + _frnd(rng, 0.1) - 0.05


def _apply(
    mutator: _Mutator,
    rng: np.random.Generator,
    base: ParameterSet | None,
) -> ParameterSet:
    fields: Fields = (base or ParameterSet()).model_dump()
    mutator(fields, rng)
    return ParameterSet.model_validate(fields)


def pickup_coin(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_pickup_coin, rng, base)


def laser_shoot(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_laser_shoot, rng, base)


def explosion(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_explosion, rng, base)


def power_up(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_power_up, rng, base)


def hit_hurt(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_hit_hurt, rng, base)


def jump(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_jump, rng, base)


def blip_select(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_blip_select, rng, base)


def synth(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    """Melodic patch: one of three base notes, optional arpeggio and lpf sweep."""
    return _apply(_synth, rng, base)


def tone(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    """One second of a 440 Hz sine; ``rng`` is accepted for signature parity."""
    return _apply(_tone, rng, base)


def click(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    return _apply(_click, rng, base)


def random_sound(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    """Fully random patch; values may fall outside the nominal slider ranges."""
    return _apply(_random, rng, base)


def mutate(rng: np.random.Generator, base: ParameterSet | None = None) -> ParameterSet:
    """Nudge roughly half of the sliders of ``base`` by up to +/-0.05."""
    return _apply(_mutate, rng, base)


PRESETS: Mapping[str, Preset] = MappingProxyType(
    {
        "pickupCoin": pickup_coin,
        "laserShoot": laser_shoot,
        "explosion": explosion,
        "powerUp": power_up,
        "hitHurt": hit_hurt,
        "jump": jump,
        "blipSelect": blip_select,
        "synth": synth,
        "tone": tone,
        "click": click,
        "random": random_sound,
        "mutate": mutate,
    }
)


def generate(
    name: str,
    rng: np.random.Generator | None = None,
    *,
    sound_vol: float = 0.25,
    sample_rate: int = 44_100,
    sample_size: int = 8,
) -> ParameterSet:
    """Run preset ``name`` on a fresh parameter set with the given output settings."""

    try:
        preset = PRESETS[name]
    except KeyError as exc:
        valid = ", ".join(PRESETS)
        raise InvalidParamsError(f"Unknown preset {name!r}. Valid: {valid}") from exc
    generator = rng if rng is not None else np.random.default_rng()
    base = parse_params(
        {"sound_vol": sound_vol, "sample_rate": sample_rate, "sample_size": sample_size}
    )
    _LOGGER.debug("Generating %s preset", name)
    return preset(generator, base)
