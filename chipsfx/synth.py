"""
Render engine.

One render call owns all of its working state: the oscillator group (reset
on every repeat boundary), the filters, the envelope, the phaser delay line
and the noise table. The only shared state is the master volume, which is
read once when a render starts.

Every output tick runs the oscillator ``OVERSAMPLING`` times, averages
``44100 // sample_rate`` ticks per emitted sample and quantizes the result
to unsigned 8-bit or signed little-endian 16-bit PCM.
"""

from __future__ import annotations

import itertools
import logging
import math
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict

from .audio import riff_wave, to_data_uri, write_float_wav, write_wav
from .errors import InvalidParamsError
from .params import FLOAT_PARAMS, ParameterSet, WaveType

_LOGGER = logging.getLogger("chipsfx.synth")

FloatArray: TypeAlias = NDArray[np.float64]

INTERNAL_SAMPLE_RATE = 44_100
OVERSAMPLING = 8
PHASER_BUFFER_SIZE = 1024
NOISE_BUFFER_SIZE = 32
_PHASER_MASK = PHASER_BUFFER_SIZE - 1

_master_volume = 1.0
_master_volume_lock = threading.Lock()


def set_master_volume(volume: float) -> None:
    """Set the process-wide output level, clamped to [0, 1]."""
    global _master_volume
    with _master_volume_lock:
        _master_volume = max(0.0, min(1.0, float(volume)))


def get_master_volume() -> float:
    with _master_volume_lock:
        return _master_volume


class RenderResult(BaseModel):
    """Quantized PCM bytes plus the float samples they were quantized from."""

    buffer: bytes
    normalized: FloatArray
    clipped: int = 0
    sample_rate: int = INTERNAL_SAMPLE_RATE
    sample_size: int = 8

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @property
    def duration(self) -> float:
        return len(self.normalized) / self.sample_rate

    def to_wav(self) -> bytes:
        return riff_wave(
            self.buffer,
            sample_rate=self.sample_rate,
            bits_per_sample=self.sample_size,
        )

    def to_data_uri(self) -> str:
        return to_data_uri(self.to_wav())

    def save(self, path: str | Path) -> Path:
        return write_wav(
            path,
            self.buffer,
            sample_rate=self.sample_rate,
            bits_per_sample=self.sample_size,
        )

    def save_float(self, path: str | Path) -> Path:
        return write_float_wav(path, self.normalized, sample_rate=self.sample_rate)

    def play(self) -> None:
        from .playback import play_samples

        play_samples(self.normalized, sample_rate=self.sample_rate)


@dataclass(slots=True)
class _Oscillator:
    """Pitch, duty and arpeggio state; rebuilt on every repeat boundary."""

    params: ParameterSet
    elapsed_since_repeat: int = 0
    period: float = 0.0
    period_max: float = 0.0
    enable_frequency_cutoff: bool = False
    period_mult: float = 0.0
    period_mult_slide: float = 0.0
    duty_cycle: float = 0.0
    duty_cycle_slide: float = 0.0
    arpeggio_multiplier: float = 0.0
    arpeggio_time: int = 0

    def reset(self) -> None:
        ps = self.params
        self.elapsed_since_repeat = 0

        self.period = 100 / (ps.p_base_freq * ps.p_base_freq + 0.001)
        self.period_max = 100 / (ps.p_freq_limit * ps.p_freq_limit + 0.001)
        self.enable_frequency_cutoff = ps.p_freq_limit > 0
        self.period_mult = 1 - ps.p_freq_ramp**3 * 0.01
        self.period_mult_slide = -(ps.p_freq_dramp**3) * 0.000001

        self.duty_cycle = 0.5 - ps.p_duty * 0.5
        self.duty_cycle_slide = -ps.p_duty_ramp * 0.00005

        if ps.p_arp_mod >= 0:
            self.arpeggio_multiplier = 1 - ps.p_arp_mod**2 * 0.9
        else:
            self.arpeggio_multiplier = 1 + ps.p_arp_mod**2 * 10
        self.arpeggio_time = math.floor((1 - ps.p_arp_speed) ** 2 * 20000 + 32)
        if ps.p_arp_speed == 1:
            self.arpeggio_time = 0


def _resolve_wave_type(value: int) -> WaveType:
    try:
        return WaveType(value)
    except ValueError as exc:
        raise InvalidParamsError(f"Bad wave type: {value!r}") from exc


def validate_params(params: ParameterSet) -> WaveType:
    """Reject parameter sets the engine cannot render; return the wave type."""

    wave = _resolve_wave_type(params.wave_type)
    for name in (*FLOAT_PARAMS, "sound_vol"):
        value = getattr(params, name)
        if not math.isfinite(value):
            raise InvalidParamsError(f"{name} must be finite, got {value!r}")
    return wave


def envelope_lengths(params: ParameterSet) -> tuple[int, int, int]:
    """Attack, sustain and decay stage lengths in ticks."""
    return (
        math.floor(params.p_env_attack * params.p_env_attack * 100000),
        math.floor(params.p_env_sustain * params.p_env_sustain * 100000),
        math.floor(params.p_env_decay * params.p_env_decay * 100000),
    )


def render(
    params: ParameterSet,
    *,
    rng: np.random.Generator | None = None,
) -> RenderResult:
    """Synthesize ``params`` into quantized PCM and normalized float samples.

    ``rng`` feeds the noise table; pass a seeded generator for reproducible
    noise. Raises ``InvalidParamsError`` before any synthesis for an unknown
    wave type or non-finite parameter values.
    """

    wave = validate_params(params)
    generator = rng if rng is not None else np.random.default_rng()
    master_volume = get_master_volume()
    ps = params

    osc = _Oscillator(params=ps)
    osc.reset()

    # Low-pass filter
    fltw = ps.p_lpf_freq**3 * 0.1
    enable_low_pass = ps.p_lpf_freq != 1
    fltw_d = 1 + ps.p_lpf_ramp * 0.0001
    fltdmp = min(0.8, 5 / (1 + ps.p_lpf_resonance**2 * 20) * (0.01 + fltw))
    # High-pass filter
    flthp = ps.p_hpf_freq**2 * 0.1
    flthp_d = 1 + ps.p_hpf_ramp * 0.0003

    vibrato_speed = ps.p_vib_speed**2 * 0.01
    vibrato_amplitude = ps.p_vib_strength * 0.5

    envelope_length = envelope_lengths(ps)
    envelope_punch = ps.p_env_punch

    flanger_offset = ps.p_pha_offset**2 * 1020
    if ps.p_pha_offset < 0:
        flanger_offset = -flanger_offset
    flanger_offset_slide = ps.p_pha_ramp**2 * 1
    if ps.p_pha_ramp < 0:
        flanger_offset_slide = -flanger_offset_slide

    repeat_time = math.floor((1 - ps.p_repeat_speed) ** 2 * 20000 + 32)
    if ps.p_repeat_speed == 0:
        repeat_time = 0

    gain = math.exp(ps.sound_vol) - 1
    sample_size = ps.sample_size
    summands = max(1, INTERNAL_SAMPLE_RATE // ps.sample_rate)

    fltp = 0.0
    fltdp = 0.0
    fltphp = 0.0
    noise: list[float] = generator.uniform(-1.0, 1.0, NOISE_BUFFER_SIZE).tolist()
    flanger_buffer = [0.0] * PHASER_BUFFER_SIZE
    ipp = 0
    envelope_stage = 0
    envelope_elapsed = 0
    vibrato_phase = 0.0
    phase = 0

    buffer = bytearray()
    normalized: list[float] = []
    clipped = 0
    sample_sum = 0.0
    num_summed = 0

    for t in itertools.count():
        if repeat_time != 0:
            osc.elapsed_since_repeat += 1
            if osc.elapsed_since_repeat >= repeat_time:
                osc.reset()

        if osc.arpeggio_time != 0 and t >= osc.arpeggio_time:
            osc.arpeggio_time = 0
            osc.period *= osc.arpeggio_multiplier

        osc.period_mult += osc.period_mult_slide
        osc.period *= osc.period_mult
        if osc.period > osc.period_max:
            osc.period = osc.period_max
            if osc.enable_frequency_cutoff:
                _LOGGER.debug("Frequency cutoff reached at tick %d", t)
                break

        rfperiod = osc.period
        if vibrato_amplitude > 0:
            vibrato_phase += vibrato_speed
            rfperiod = osc.period * (1 + math.sin(vibrato_phase) * vibrato_amplitude)
        iperiod = max(math.floor(rfperiod), OVERSAMPLING)

        osc.duty_cycle += osc.duty_cycle_slide
        osc.duty_cycle = min(max(osc.duty_cycle, 0.0), 0.5)
        duty_cycle = osc.duty_cycle

        envelope_elapsed += 1
        if envelope_elapsed > envelope_length[envelope_stage]:
            envelope_elapsed = 0
            envelope_stage += 1
            # Zero-length stages are passed over on the tick they are entered.
            while envelope_stage < 3 and envelope_length[envelope_stage] == 0:
                envelope_stage += 1
            if envelope_stage > 2:
                break
        envf = envelope_elapsed / envelope_length[envelope_stage]
        if envelope_stage == 0:
            env_vol = envf
        elif envelope_stage == 1:
            env_vol = 1 + (1 - envf) * 2 * envelope_punch
        else:
            env_vol = 1 - envf

        flanger_offset += flanger_offset_slide
        iphase = min(abs(math.floor(flanger_offset)), _PHASER_MASK)

        if flthp_d != 0:
            flthp *= flthp_d
            flthp = min(max(flthp, 0.00001), 0.1)

        sample = 0.0
        for _ in range(OVERSAMPLING):
            phase += 1
            if phase >= iperiod:
                phase %= iperiod
                if wave is WaveType.NOISE:
                    noise = generator.uniform(-1.0, 1.0, NOISE_BUFFER_SIZE).tolist()

            fp = phase / iperiod
            if wave is WaveType.SQUARE:
                sub_sample = 0.5 if fp < duty_cycle else -0.5
            elif wave is WaveType.SAWTOOTH:
                if fp < duty_cycle:
                    sub_sample = -1 + 2 * fp / duty_cycle
                else:
                    sub_sample = 1 - 2 * (fp - duty_cycle) / (1 - duty_cycle)
            elif wave is WaveType.SINE:
                sub_sample = math.sin(fp * 2 * math.pi)
            else:
                sub_sample = noise[phase * NOISE_BUFFER_SIZE // iperiod]

            # Low-pass filter
            pp = fltp
            fltw *= fltw_d
            fltw = min(max(fltw, 0.0), 0.1)
            if enable_low_pass:
                fltdp += (sub_sample - fltp) * fltw
                fltdp -= fltdp * fltdmp
            else:
                fltp = sub_sample
                fltdp = 0.0
            fltp += fltdp

            # High-pass filter
            fltphp += fltp - pp
            fltphp -= fltphp * flthp
            sub_sample = fltphp

            # Phaser
            flanger_buffer[ipp & _PHASER_MASK] = sub_sample
            sub_sample += flanger_buffer[(ipp - iphase + PHASER_BUFFER_SIZE) & _PHASER_MASK]
            ipp = (ipp + 1) & _PHASER_MASK

            sample += sub_sample * env_vol

        sample_sum += sample
        num_summed += 1
        if num_summed < summands:
            continue
        num_summed = 0
        sample = sample_sum / summands
        sample_sum = 0.0

        sample = sample / OVERSAMPLING * master_volume
        sample *= gain
        normalized.append(sample)

        if sample_size == 8:
            # [-1, 1) -> [0, 256)
            quantized = math.floor((sample + 1) * 128)
            if quantized > 255:
                quantized = 255
                clipped += 1
            elif quantized < 0:
                quantized = 0
                clipped += 1
            buffer.append(quantized)
        else:
            # [-1, 1) -> [-32768, 32768)
            quantized = math.floor(sample * 32768)
            if quantized >= 32768:
                quantized = 32767
                clipped += 1
            elif quantized < -32768:
                quantized = -32768
                clipped += 1
            buffer.append(quantized & 0xFF)
            buffer.append((quantized >> 8) & 0xFF)

    _LOGGER.debug(
        "Rendered %d samples (%s, %d Hz, %d-bit, %d clipped)",
        len(normalized),
        wave.name.lower(),
        ps.sample_rate,
        sample_size,
        clipped,
    )
    return RenderResult(
        buffer=bytes(buffer),
        normalized=np.asarray(normalized, dtype=np.float64),
        clipped=clipped,
        sample_rate=ps.sample_rate,
        sample_size=sample_size,
    )
