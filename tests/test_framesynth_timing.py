from __future__ import annotations

import pytest

from framesynth.config import BBT
from framesynth.timing import (
    DEFAULT_TIME_CONFIG,
    BBTPosition,
    TimeConfig,
    bbt_to_beats,
    bbt_to_frames,
    bbt_to_samples,
    bbt_to_seconds,
    frames_to_samples,
    round_half_up,
    seconds_to_bbt,
)


def test_default_time_config() -> None:
    assert DEFAULT_TIME_CONFIG == TimeConfig(bpm=120.0, beats_per_bar=4, ppq=480)
    assert DEFAULT_TIME_CONFIG.seconds_per_beat == pytest.approx(0.5)


def test_bbt_to_beats_counts_bars_beats_and_ticks() -> None:
    assert bbt_to_beats(BBT(bar=1, beat=2, tick=240)) == pytest.approx(6.5)


def test_bbt_to_seconds_uses_tempo() -> None:
    assert bbt_to_seconds(BBT(bar=1, beat=2, tick=240)) == pytest.approx(3.25)

    config = TimeConfig(bpm=90.0, beats_per_bar=3, ppq=96)
    assert bbt_to_seconds(BBT(bar=2, beat=1, tick=48), config) == pytest.approx(5.0)


def test_bbt_to_samples_and_frames_round_half_up() -> None:
    position = BBT(bar=1, beat=2, tick=240)
    assert bbt_to_samples(position, 44_100) == 143_325
    # 3.25 s * 30 fps = 97.5 frames
    assert bbt_to_frames(position, 30) == 98


def test_plain_tuple_positions_are_accepted() -> None:
    assert bbt_to_beats(BBTPosition(bar=0, beat=3, tick=120)) == pytest.approx(3.25)


def test_round_half_up_is_not_bankers_rounding() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4999) == 2
    assert round_half_up(-0.5) == 0
    assert round_half_up(-1.5) == -1


def test_frames_to_samples() -> None:
    assert frames_to_samples(30, 30, 44_100) == 44_100
    assert frames_to_samples(1, 30, 48_000) == 1_600
    assert frames_to_samples(0, 30, 44_100) == 0


def test_seconds_to_bbt_inverse() -> None:
    assert seconds_to_bbt(3.25) == BBTPosition(bar=1, beat=2, tick=240)
    assert seconds_to_bbt(0.0) == BBTPosition(bar=0, beat=0, tick=0)


def test_seconds_to_bbt_roundtrips_whole_positions() -> None:
    config = TimeConfig(bpm=140.0, beats_per_bar=4, ppq=480)
    for bar, beat, tick in ((0, 1, 0), (3, 2, 120), (7, 3, 360)):
        seconds = bbt_to_seconds(BBT(bar=bar, beat=beat, tick=tick), config)
        assert seconds_to_bbt(seconds, config) == BBTPosition(bar=bar, beat=beat, tick=tick)
