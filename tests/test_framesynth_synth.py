from __future__ import annotations

import numpy as np
import pytest

from framesynth.config import BBT, Event, FilterSpec
from framesynth.filters import apply_biquad_filter
from framesynth.synth import (
    NoiseGenerator,
    envelope,
    event_sample_count,
    oscillator,
    poly_blep,
    render_event,
    soft_clip,
)

SR = 44_100
FPS = 30


def _zero_crossings(samples: np.ndarray) -> int:
    return int(np.count_nonzero(np.diff(np.signbit(samples))))


class TestNoiseGenerator:
    """Seeded LCG used by the noise waveform."""

    def test_seed_from_frame(self) -> None:
        assert NoiseGenerator.seed_for(Event(frame=2)) == 24_690

    def test_seed_from_bbt_wins(self) -> None:
        event = Event(frame=2, bbt=BBT(bar=1, beat=2, tick=3))
        assert NoiseGenerator.seed_for(event) == 125_956_035

    def test_fill_matches_next(self) -> None:
        a = NoiseGenerator(state=99)
        b = NoiseGenerator(state=99)
        values = a.fill(16)
        assert np.array_equal(values, np.array([b.next() for _ in range(16)]))
        assert a.state == b.state

    def test_values_in_range(self) -> None:
        values = NoiseGenerator.for_event(Event(frame=7)).fill(10_000)
        assert np.all(values >= -1.0)
        assert np.all(values <= 1.0)


class TestOscillators:
    def test_poly_blep_regions(self) -> None:
        residual = poly_blep(np.array([0.05, 0.5, 0.97]), 0.1)
        assert np.allclose(residual, [-0.25, 0.0, 0.49])

    def test_poly_blep_without_increment_is_zero(self) -> None:
        assert np.all(poly_blep(np.array([0.0, 0.01, 0.99]), 0.0) == 0.0)

    def test_naive_shapes(self) -> None:
        phase = np.array([0.0, 0.25, 0.5, 0.75, 1.25])
        assert np.allclose(oscillator(phase, "sine"), [0.0, 1.0, 0.0, -1.0, 1.0], atol=1e-12)
        assert np.allclose(oscillator(phase, "triangle"), [-1.0, 0.0, 1.0, 0.0, 0.0])
        assert np.allclose(oscillator(phase, "saw"), [-1.0, -0.5, 0.0, 0.5, -0.5])
        assert np.allclose(oscillator(phase, "square"), [1.0, 1.0, -1.0, -1.0, 1.0])

    def test_band_limited_edges_hit_midpoint(self) -> None:
        phase = np.array([0.0])
        assert np.allclose(oscillator(phase, "square", 0.01), [0.0])
        assert np.allclose(oscillator(phase, "saw", 0.01), [0.0])


class TestEnvelope:
    """Exponential ADSR with the release anchored to the last sample."""

    def test_stage_levels(self) -> None:
        env = envelope(100, attack=0.01, decay=0.02, sustain=0.4, release=0.02, sample_rate=1000)
        assert env[0] == 0.0
        assert env[15] == pytest.approx(0.4 + 0.6 * np.exp(-1.25))
        assert env[40] == pytest.approx(0.4)
        assert env[80] == pytest.approx(0.4)
        assert env[99] == pytest.approx(0.4 * np.exp(-5.0 * 19 / 20))

    def test_without_stages_is_flat(self) -> None:
        env = envelope(50, 0.0, 0.0, 1.0, 0.0, 1000)
        assert np.all(env == 1.0)

    def test_release_longer_than_event_stays_in_range(self) -> None:
        env = envelope(50, 0.0, 0.0, 1.0, 0.1, 1000)
        assert env[0] == pytest.approx(np.exp(-2.5))
        assert np.all(np.diff(env) < 0)
        assert np.all((env >= 0.0) & (env <= 1.0))

    def test_envelope_is_bounded(self) -> None:
        env = envelope(4410, 0.03, 0.05, 0.6, 0.04, SR)
        assert np.all((env >= 0.0) & (env <= 1.0))


def test_soft_clip_preserves_full_scale() -> None:
    samples = np.array([1.0, -1.0, 0.0, 0.01])
    clipped = soft_clip(samples, 0.5)
    assert np.allclose(clipped[:3], [1.0, -1.0, 0.0])
    assert clipped[3] > 0.01
    assert soft_clip(samples, 0.0) is samples


def test_event_sample_count_prefers_beats() -> None:
    event = Event(duration=30, duration_beats=1.0)
    assert event_sample_count(event, SR, FPS, 120.0) == 22_050
    assert event_sample_count(event, SR, FPS, None) == 44_100


def test_render_sine_event() -> None:
    out = render_event(Event(frame=0, duration=30, volume=1.0), SR, FPS)
    assert out.size == 44_100
    assert out[0] == 0.0
    assert np.max(np.abs(out)) <= 1.0
    assert np.max(np.abs(out)) == pytest.approx(1.0, abs=1e-3)


def test_zero_length_and_silent_events() -> None:
    assert render_event(Event(frame=0, duration=0), SR, FPS).size == 0
    silent = render_event(Event(frame=0, duration=10, volume=0.0), SR, FPS)
    assert np.all(silent == 0.0)


def test_noise_render_is_deterministic() -> None:
    event = Event(frame=12, duration=5, waveform="noise", volume=1.0)
    first = render_event(event, SR, FPS)
    second = render_event(event, SR, FPS, noise=NoiseGenerator.for_event(event))
    assert np.array_equal(first, second)

    moved = render_event(event.model_copy(update={"frame": 13.0}), SR, FPS)
    assert not np.array_equal(first, moved)


def test_pitch_slide_sweeps_frequency() -> None:
    steady = render_event(Event(duration=30, frequency=100.0, volume=1.0), 8000, FPS)
    sweep = render_event(
        Event(duration=30, frequency=100.0, pitch_slide=1000.0, volume=1.0), 8000, FPS
    )
    assert _zero_crossings(sweep) > 3 * _zero_crossings(steady)


def test_filter_runs_after_shaping() -> None:
    event = Event(
        duration=10,
        waveform="square",
        frequency=220.0,
        distortion=0.4,
        filter=FilterSpec(kind="lowpass", cutoff=800.0),
    )
    filtered = render_event(event, SR, FPS)
    expected = render_event(event.model_copy(update={"filter": None}), SR, FPS)
    apply_biquad_filter(expected, "lowpass", 800.0, 0.707, SR)
    assert np.allclose(filtered, expected)
