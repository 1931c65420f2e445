from __future__ import annotations


class FrameSynthError(Exception):
    """Base error for the framesynth library."""


class InvalidTrackError(FrameSynthError):
    """Raised when a track description cannot be read or validated."""


class WavFormatError(FrameSynthError):
    """Raised when bytes are not a canonical 16-bit PCM WAV container."""
