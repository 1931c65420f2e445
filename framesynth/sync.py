"""Beat-sync helpers for driving frame-based animation from the track tempo.

All functions are pure frame arithmetic; ``bpm`` and ``fps`` must be positive.
"""

from __future__ import annotations

import math

from .timing import round_half_up


def _frames_per_beat(bpm: float, fps: float) -> float:
    return fps * 60.0 / bpm


def _frames_per_bar(bpm: float, beats_per_bar: int, fps: float) -> float:
    return fps * 60.0 * beats_per_bar / bpm


def _on_grid(position: float, period: float) -> bool:
    return position < 0.5 or position > period - 0.5


def is_beat(bpm: float, frame: float, fps: float) -> bool:
    """True on beat frames (within half a frame)."""
    period = _frames_per_beat(bpm, fps)
    return _on_grid(math.fmod(frame, period), period)


def beat_progress(bpm: float, frame: float, fps: float) -> float:
    """Progress through the current beat in [0, 1)."""
    period = _frames_per_beat(bpm, fps)
    return math.fmod(frame, period) / period


def beat_pulse(bpm: float, frame: float, fps: float, decay: float = 0.15) -> float:
    """1.0 on the beat, falling linearly to 0 after ``decay`` of a beat."""
    return max(0.0, 1.0 - beat_progress(bpm, frame, fps) / decay)


def bar_progress(bpm: float, beats_per_bar: int, frame: float, fps: float) -> float:
    period = _frames_per_bar(bpm, beats_per_bar, fps)
    return math.fmod(frame, period) / period


def current_beat(bpm: float, frame: float, fps: float) -> int:
    return math.floor(frame / _frames_per_beat(bpm, fps))


def current_bar(bpm: float, beats_per_bar: int, frame: float, fps: float) -> int:
    return math.floor(frame / _frames_per_bar(bpm, beats_per_bar, fps))


def beat_to_frame(bpm: float, beat: float, fps: float) -> int:
    return round_half_up(beat * fps * 60.0 / bpm)


def bar_to_frame(bpm: float, beats_per_bar: int, bar: float, fps: float) -> int:
    return round_half_up(bar * beats_per_bar * fps * 60.0 / bpm)


def subdivision_progress(bpm: float, frame: float, fps: float, subdivisions: int = 4) -> float:
    """Progress within the current subdivision (16ths by default)."""
    period = _frames_per_beat(bpm, fps) / subdivisions
    return math.fmod(frame, period) / period


def is_subdivision(bpm: float, frame: float, fps: float, subdivisions: int = 4) -> bool:
    period = _frames_per_beat(bpm, fps) / subdivisions
    return _on_grid(math.fmod(frame, period), period)
