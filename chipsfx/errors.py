from __future__ import annotations


class ChipSfxError(Exception):
    """Base error for the chipsfx library."""


class FormatError(ChipSfxError):
    """Raised when a token or structured payload cannot be parsed."""


class InvalidParamsError(ChipSfxError):
    """Raised when a parameter set cannot be rendered as given."""


class AudioWriteError(ChipSfxError):
    """Raised when a rendered sound cannot be written out."""


class PlaybackError(ChipSfxError):
    """Raised when no audio playback backend is available."""
