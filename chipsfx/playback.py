from __future__ import annotations

import logging
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict

from .audio import AudioNumbers, FloatArray, ensure_audio_contract
from .errors import PlaybackError
from .spinner import Spinner

_LOGGER = logging.getLogger("chipsfx.playback")
_MUSIC_FRAMES = "♪♫♬♩"


class PlaybackBackend(BaseModel):
    name: str
    play_audio: Callable[[FloatArray, int], None]

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )


def _load_backend() -> PlaybackBackend | None:
    return _load_sounddevice() or _load_simpleaudio() or _load_ipython()


def resolve_backend() -> PlaybackBackend:
    backend = _load_backend()
    if backend is None:
        raise PlaybackError(
            "Playback requires sounddevice or simpleaudio. "
            "Install one of them (or save a .wav instead); "
            "for notebook playback install ipython."
        )
    return backend


def play_samples(samples: AudioNumbers, *, sample_rate: int) -> None:
    """Play normalized mono samples through the first available backend."""

    normalized = ensure_audio_contract(samples)
    if normalized.size == 0:
        _LOGGER.info("Nothing to play: rendered sound is empty.")
        return
    backend = resolve_backend()
    _LOGGER.debug("Playing %d samples via %s", normalized.size, backend.name)
    with Spinner(f"Playing sound {_MUSIC_FRAMES[0]}", spinner="dots"):
        backend.play_audio(normalized, sample_rate)


def _load_sounddevice() -> PlaybackBackend | None:
    try:
        import sounddevice as sd_module  # type: ignore[import]
    except (ImportError, OSError) as exc:
        # sounddevice raises OSError when PortAudio itself is missing.
        _LOGGER.info("sounddevice not available: %s", exc)
        return None
    sd: Any = sd_module

    def _play_audio(samples: FloatArray, sample_rate: int) -> None:
        sd.play(samples, sample_rate)
        sd.wait()

    return PlaybackBackend(name="sounddevice", play_audio=_play_audio)


def _load_simpleaudio() -> PlaybackBackend | None:
    try:
        import simpleaudio as sa_module  # type: ignore[import]
    except ImportError as exc:
        _LOGGER.info("simpleaudio not available: %s", exc)
        return None
    sa: Any = sa_module

    def _to_int16(samples: FloatArray) -> NDArray[np.int16]:
        clipped = np.clip(samples, -1.0, 1.0)
        return (clipped * 32_767).astype(np.int16)

    def _play_audio(samples: FloatArray, sample_rate: int) -> None:
        play = sa.play_buffer(_to_int16(samples), 1, 2, sample_rate)
        play.wait_done()

    return PlaybackBackend(name="simpleaudio", play_audio=_play_audio)


def _load_ipython() -> PlaybackBackend | None:
    try:
        from IPython import get_ipython  # type: ignore[import]
    except ImportError as exc:
        _LOGGER.info("IPython not available: %s", exc)
        return None
    if get_ipython() is None:
        _LOGGER.info("IPython shell not active; skipping IPython playback backend.")
        return None
    import IPython.display as ipy_display  # type: ignore[import]

    ipy_display_any: Any = ipy_display

    def _play_audio(samples: FloatArray, sample_rate: int) -> None:
        ipy_display_any.display(ipy_display_any.Audio(samples, rate=sample_rate))

    return PlaybackBackend(name="ipython", play_audio=_play_audio)
