"""Tempo-relative time model.

Positions are expressed either as absolute video frames or as
Bar/Beat/Tick triples (0-indexed bar and beat, ticks in pulses per quarter
note). Every conversion to an integer sample or frame count rounds half-up,
matching how the rendered video resolves the same positions.

Tempo values are not validated here: ``bpm <= 0`` yields non-finite results
and must be rejected by the caller (``framesynth.config.Track`` does).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import NamedTuple, Protocol


class BBTPosition(NamedTuple):
    """Plain Bar/Beat/Tick value returned by :func:`seconds_to_bbt`."""

    bar: int
    beat: int
    tick: int


@dataclass(frozen=True, slots=True)
class TimeConfig:
    bpm: float = 120.0
    beats_per_bar: int = 4
    ppq: int = 480

    @property
    def seconds_per_beat(self) -> float:
        return 60.0 / self.bpm


DEFAULT_TIME_CONFIG = TimeConfig()


class SupportsBBT(Protocol):
    @property
    def bar(self) -> float: ...

    @property
    def beat(self) -> float: ...

    @property
    def tick(self) -> float: ...


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties towards +inf."""
    return int(math.floor(value + 0.5))


def bbt_to_beats(bbt: SupportsBBT, config: TimeConfig = DEFAULT_TIME_CONFIG) -> float:
    return bbt.bar * config.beats_per_bar + bbt.beat + bbt.tick / config.ppq


def beats_to_seconds(beats: float, bpm: float) -> float:
    return beats * (60.0 / bpm)


def bbt_to_seconds(bbt: SupportsBBT, config: TimeConfig = DEFAULT_TIME_CONFIG) -> float:
    return beats_to_seconds(bbt_to_beats(bbt, config), config.bpm)


def bbt_to_samples(
    bbt: SupportsBBT,
    sample_rate: int,
    config: TimeConfig = DEFAULT_TIME_CONFIG,
) -> int:
    return round_half_up(bbt_to_seconds(bbt, config) * sample_rate)


def bbt_to_frames(bbt: SupportsBBT, fps: float, config: TimeConfig = DEFAULT_TIME_CONFIG) -> int:
    return round_half_up(bbt_to_seconds(bbt, config) * fps)


def frames_to_samples(frames: float, fps: float, sample_rate: int) -> int:
    return round_half_up(frames / fps * sample_rate)


def seconds_to_bbt(seconds: float, config: TimeConfig = DEFAULT_TIME_CONFIG) -> BBTPosition:
    """Inverse of :func:`bbt_to_seconds` (floor bar/beat, rounded tick)."""
    total_beats = seconds / config.seconds_per_beat
    bar = math.floor(total_beats / config.beats_per_bar)
    remaining = math.fmod(total_beats, config.beats_per_bar)
    beat = math.floor(remaining)
    tick = round_half_up((remaining - beat) * config.ppq)
    return BBTPosition(bar=int(bar), beat=int(beat), tick=tick)
