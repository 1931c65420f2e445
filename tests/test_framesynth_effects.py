from __future__ import annotations

import numpy as np
import pytest

from framesynth.audio import StereoBuffer
from framesynth.config import CompressorSpec, ReverbSpec
from framesynth.effects import (
    allpass_filter,
    apply_compressor,
    apply_reverb,
    comb_filter,
    compute_gain_reduction,
    normalize_peak,
)


def _reference_comb(signal: np.ndarray, delay: int, feedback: float, damping: float) -> np.ndarray:
    buf = [0.0] * delay
    store = 0.0
    out = np.empty_like(signal)
    for i, x in enumerate(signal):
        value = buf[i % delay]
        store = value * (1.0 - damping) + store * damping
        buf[i % delay] = x + store * feedback
        out[i] = value
    return out


def _reference_allpass(signal: np.ndarray, delay: int, feedback: float) -> np.ndarray:
    buf = [0.0] * delay
    out = np.empty_like(signal)
    for i, x in enumerate(signal):
        value = buf[i % delay]
        out[i] = -x + value
        buf[i % delay] = x + value * feedback
    return out


def _impulse(length: int) -> StereoBuffer:
    signal = np.zeros(length)
    signal[0] = 1.0
    return StereoBuffer(left=signal, right=signal.copy(), sample_rate=44_100)


class TestReverb:
    """Schroeder comb/allpass reverb."""

    def test_comb_matches_ring_buffer(self) -> None:
        signal = np.random.default_rng(0).normal(size=200)
        assert np.allclose(
            comb_filter(signal, 7, 0.8, 0.3), _reference_comb(signal, 7, 0.8, 0.3), atol=1e-12
        )

    def test_allpass_matches_ring_buffer(self) -> None:
        signal = np.random.default_rng(1).normal(size=200)
        assert np.allclose(
            allpass_filter(signal, 9, 0.5), _reference_allpass(signal, 9, 0.5), atol=1e-12
        )

    def test_impulse_tail_rings_past_input(self) -> None:
        dry = _impulse(4_410)
        wet = apply_reverb(dry, ReverbSpec(wet=1.0, room_size=0.5, damping=0.5))

        assert len(wet) == 4_410 + 44_100
        assert float(np.sum(wet.left[4_410:] ** 2)) > 0.0
        assert np.max(np.abs(wet.left[-4_410:])) > 1e-9
        assert not np.allclose(wet.left, wet.right)
        assert dry.left[0] == 1.0
        assert np.all(dry.left[1:] == 0.0)

    def test_zero_wet_passes_dry_signal(self) -> None:
        dry = _impulse(1_000)
        out = apply_reverb(dry, ReverbSpec(wet=0.0))
        assert np.array_equal(out.left[:1_000], dry.left)
        assert np.all(out.left[1_000:] == 0.0)


class TestCompressor:
    def test_static_curve(self) -> None:
        hard = compute_gain_reduction(np.array([-20.0, -10.0, 0.0]), -10.0, 4.0, 0.0)
        assert np.allclose(hard, [0.0, 0.0, 7.5])

        soft = compute_gain_reduction(np.array([-13.0, -10.0, -7.0]), -10.0, 4.0, 6.0)
        assert np.allclose(soft, [0.0, 0.5625, 2.25])

    def test_silence_stays_silent(self) -> None:
        spec = CompressorSpec(threshold=-12.0, ratio=4.0, attack=0.01, release=0.1, makeup_gain=6.0)
        out = apply_compressor(StereoBuffer.silent(1_000), spec)
        assert np.all(np.isfinite(out.left))
        assert np.all(out.left == 0.0)
        assert np.all(out.right == 0.0)

    def test_steady_state_gain(self) -> None:
        loud = StereoBuffer(left=np.ones(2_000), right=np.ones(2_000), sample_rate=1_000)
        spec = CompressorSpec(threshold=-6.0, ratio=4.0, attack=0.001, release=0.1)
        out = apply_compressor(loud, spec)
        assert out.left[-1] == pytest.approx(10 ** (-4.5 / 20))
        assert out.left[0] > out.left[-1]
        assert np.all(loud.left == 1.0)

    def test_zero_attack_is_instant(self) -> None:
        loud = StereoBuffer(left=np.ones(10), right=np.ones(10), sample_rate=1_000)
        spec = CompressorSpec(threshold=-6.0, ratio=4.0, attack=0.0, release=0.0)
        out = apply_compressor(loud, spec)
        assert out.left[0] == pytest.approx(10 ** (-4.5 / 20))

    def test_makeup_gain_below_threshold(self) -> None:
        quiet = StereoBuffer(left=np.full(100, 0.1), right=np.full(100, -0.1))
        spec = CompressorSpec(threshold=-6.0, ratio=4.0, attack=0.01, release=0.1, makeup_gain=6.0)
        out = apply_compressor(quiet, spec)
        assert out.left == pytest.approx(np.full(100, 0.1 * 10 ** (6.0 / 20)))
        assert out.right == pytest.approx(-out.left)


def test_normalize_only_when_clipping() -> None:
    hot = StereoBuffer(left=np.array([2.0, -1.0]), right=np.array([0.5, 0.0]))
    scaled = normalize_peak(hot)
    assert np.allclose(scaled.left, [0.95, -0.475])
    assert np.allclose(scaled.right, [0.2375, 0.0])

    calm = StereoBuffer(left=np.array([0.5]), right=np.array([-1.0]))
    assert normalize_peak(calm) is calm
