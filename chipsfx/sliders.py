"""
Slider transforms.

``SLIDERS`` maps a normalized slider value to the engine quantity it drives
(ticks, Hz, per-tick multipliers, ...); ``SLIDERS_INVERSE`` maps back. Useful
for editors that display physical units next to each slider.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from types import MappingProxyType
from typing import Mapping

import numpy as np

from .errors import InvalidParamsError

Transform = Callable[[float], float]

_OVERSAMPLED_RATE = 8 * 44100


def _sign(value: float) -> float:
    return -1.0 if value < 0 else 1.0


def _cbrt(value: float) -> float:
    return float(np.cbrt(value))


SLIDERS: Mapping[str, Transform] = MappingProxyType(
    {
        "p_env_attack": lambda v: v * v * 100000.0,
        "p_env_sustain": lambda v: v * v * 100000.0,
        "p_env_punch": lambda v: v,
        "p_env_decay": lambda v: v * v * 100000.0,
        "p_base_freq": lambda v: _OVERSAMPLED_RATE * (v * v + 0.001) / 100,
        "p_freq_limit": lambda v: _OVERSAMPLED_RATE * (v * v + 0.001) / 100,
        "p_freq_ramp": lambda v: 1.0 - v**3 * 0.01,
        "p_freq_dramp": lambda v: -(v**3) * 0.000001,
        "p_vib_speed": lambda v: v**2 * 0.01,
        "p_vib_strength": lambda v: v * 0.5,
        "p_arp_mod": lambda v: 1.0 - v**2 * 0.9 if v >= 0 else 1.0 + v**2 * 10,
        "p_arp_speed": lambda v: 0 if v == 1.0 else math.floor((1.0 - v) ** 2 * 20000 + 32),
        "p_duty": lambda v: 0.5 - v * 0.5,
        "p_duty_ramp": lambda v: -v * 0.00005,
        "p_repeat_speed": lambda v: 0 if v == 0 else math.floor((1 - v) ** 2 * 20000) + 32,
        "p_pha_offset": lambda v: _sign(v) * v**2 * 1020,
        "p_pha_ramp": lambda v: _sign(v) * v**2,
        "p_lpf_freq": lambda v: v**3 * 0.1,
        "p_lpf_ramp": lambda v: 1.0 + v * 0.0001,
        "p_lpf_resonance": lambda v: 5.0 / (1.0 + v**2 * 20),
        "p_hpf_freq": lambda v: v**2 * 0.1,
        "p_hpf_ramp": lambda v: 1.0 + v * 0.0003,
        "sound_vol": lambda v: math.exp(v) - 1,
    }
)

SLIDERS_INVERSE: Mapping[str, Transform] = MappingProxyType(
    {
        "p_env_attack": lambda v: math.sqrt(v / 100000.0),
        "p_env_sustain": lambda v: math.sqrt(v / 100000.0),
        "p_env_punch": lambda v: v,
        "p_env_decay": lambda v: math.sqrt(v / 100000.0),
        "p_base_freq": lambda v: math.sqrt(v * 100 / 8 / 44100 - 0.001),
        "p_freq_limit": lambda v: math.sqrt(v * 100 / 8 / 44100 - 0.001),
        "p_freq_ramp": lambda v: _cbrt((1.0 - v) / 0.01),
        "p_freq_dramp": lambda v: _cbrt(v / -0.000001),
        "p_vib_speed": lambda v: math.sqrt(v / 0.01),
        "p_vib_strength": lambda v: v / 0.5,
        "p_arp_mod": lambda v: (
            math.sqrt((1.0 - v) / 0.9) if v < 1 else -math.sqrt((v - 1.0) / 10.0)
        ),
        "p_arp_speed": lambda v: (
            1.0 if v == 0 else 1.0 - math.sqrt((v - (30 if v < 100 else 32)) / 20000)
        ),
        "p_duty": lambda v: (v - 0.5) / -0.5,
        "p_duty_ramp": lambda v: v / -0.00005,
        "p_repeat_speed": lambda v: 0.0 if v == 0 else -(math.sqrt((v - 32) / 20000) - 1.0),
        "p_pha_offset": lambda v: _sign(v) * math.sqrt(abs(v) / 1020),
        "p_pha_ramp": lambda v: _sign(v) * math.sqrt(abs(v)),
        "p_lpf_freq": lambda v: _cbrt(v / 0.1),
        "p_lpf_ramp": lambda v: (v - 1.0) / 0.0001,
        "p_lpf_resonance": lambda v: math.sqrt((1.0 / (v / 5.0) - 1) / 20),
        "p_hpf_freq": lambda v: math.sqrt(v / 0.1),
        "p_hpf_ramp": lambda v: (v - 1.0) / 0.0003,
        "sound_vol": lambda v: math.log(v + 1),
    }
)


def to_engine_units(name: str, value: float) -> float:
    try:
        transform = SLIDERS[name]
    except KeyError as exc:
        raise InvalidParamsError(f"No slider named {name!r}") from exc
    return transform(value)


def from_engine_units(name: str, value: float) -> float:
    try:
        transform = SLIDERS_INVERSE[name]
    except KeyError as exc:
        raise InvalidParamsError(f"No slider named {name!r}") from exc
    return transform(value)
