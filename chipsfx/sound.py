from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import numpy as np

from . import codec
from .errors import FormatError
from .params import PARAMS_ORDER, ParameterSet, parse_params
from .synth import RenderResult, render


SoundSource = ParameterSet | str | Mapping[str, Any]


def coerce_params(source: SoundSource) -> ParameterSet:
    """Accept a ParameterSet, a token (``#`` prefix allowed) or the structured form."""

    match source:
        case ParameterSet():
            return source
        case str():
            return codec.decode(source)
        case Mapping():
            return parse_params(source)
        case _:
            raise FormatError(f"Unsupported sound source: {type(source).__name__}")


class SoundEffect:
    def __init__(self, source: SoundSource) -> None:
        self.params = coerce_params(source)

    @property
    def sample_rate(self) -> int:
        return self.params.sample_rate

    def render(self, *, rng: np.random.Generator | None = None) -> RenderResult:
        return render(self.params, rng=rng)

    def to_wav(self, *, rng: np.random.Generator | None = None) -> bytes:
        return self.render(rng=rng).to_wav()

    def save(self, path: str | Path, *, rng: np.random.Generator | None = None) -> Path:
        return self.render(rng=rng).save(path)

    def play(self, *, rng: np.random.Generator | None = None) -> RenderResult:
        result = self.render(rng=rng)
        result.play()
        return result

    def to_token(self) -> str:
        return codec.encode(self.params)


def to_buffer(source: SoundSource) -> bytes:
    """Quantized PCM bytes for ``source``."""
    return SoundEffect(source).render().buffer


def to_wave(source: SoundSource) -> bytes:
    """A complete WAV file for ``source``."""
    return SoundEffect(source).to_wav()


def play(source: SoundSource) -> RenderResult:
    return SoundEffect(source).play()


def b58encode(source: ParameterSet | Mapping[str, Any]) -> str:
    """Token for a ParameterSet or a (possibly partial) structured form."""
    return codec.encode(coerce_params(source))


def b58decode(token: str) -> dict[str, Any]:
    """Structured form of the wire fields carried by ``token``."""
    params = codec.decode(token)
    return params.model_dump(include=set(PARAMS_ORDER))
