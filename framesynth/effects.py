"""Master bus processing: Schroeder reverb, soft-knee compressor, peak normalizer.

Every stage takes a :class:`StereoBuffer` and returns a new one; the reverb
result is longer than its input by the decay tail.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.signal import lfilter  # type: ignore[import]

from .audio import FloatArray, StereoBuffer
from .config import CompressorSpec, ReverbSpec
from .timing import round_half_up

_LOGGER = logging.getLogger("framesynth.effects")

# =============================================================================
# REVERB
# =============================================================================

# Mutually prime delay lengths at 44.1 kHz
COMB_DELAYS: tuple[int, ...] = (1557, 1617, 1491, 1422)
ALLPASS_DELAYS: tuple[int, ...] = (225, 556)
STEREO_OFFSET = 23
ALLPASS_FEEDBACK = 0.5
REFERENCE_RATE = 44_100
TAIL_SECONDS = 1.0


def _scaled_delay(delay: int, sample_rate: int) -> int:
    return max(1, round_half_up(delay * sample_rate / REFERENCE_RATE))


def comb_filter(signal: FloatArray, delay: int, feedback: float, damping: float) -> FloatArray:
    """Feedback comb with a one-pole lowpass in the loop.

    Equivalent to the per-sample ring buffer::

        out = buf[i]; store = out*(1-damping) + store*damping
        buf[i] = x + store*feedback

    processed one delay-length block at a time, since each block only depends
    on the previous one.
    """
    n = signal.size
    out = np.zeros(n, dtype=np.float64)
    store = np.zeros(n, dtype=np.float64)
    b = np.array([1.0 - damping])
    a = np.array([1.0, -damping])
    for start in range(delay, n, delay):
        end = min(start + delay, n)
        src = slice(start - delay, end - delay)
        out[start:end] = signal[src] + feedback * store[src]
        zi = np.array([damping * store[start - 1]])
        store[start:end], _ = lfilter(b, a, out[start:end], zi=zi)
    return out


def allpass_filter(signal: FloatArray, delay: int, feedback: float = ALLPASS_FEEDBACK) -> FloatArray:
    """Schroeder allpass: ``out = -x + buf[i]``, ``buf[i] = x + buf[i]*feedback``."""
    n = signal.size
    buffered = signal.copy()
    for start in range(delay, n, delay):
        end = min(start + delay, n)
        buffered[start:end] += feedback * buffered[start - delay : end - delay]
    delayed = np.zeros(n, dtype=np.float64)
    if delay < n:
        delayed[delay:] = buffered[: n - delay]
    return delayed - signal


def _reverb_channel(
    signal: FloatArray,
    comb_delays: tuple[int, ...],
    allpass_delays: tuple[int, ...],
    feedback: float,
    damping: float,
) -> FloatArray:
    combined = np.zeros_like(signal)
    for delay in comb_delays:
        combined += comb_filter(signal, delay, feedback, damping)
    combined *= 1.0 / len(comb_delays)
    for delay in allpass_delays:
        combined = allpass_filter(combined, delay)
    return combined


def apply_reverb(stereo: StereoBuffer, spec: ReverbSpec) -> StereoBuffer:
    """Stereo Schroeder reverb; the result carries an extra ~1 s decay tail."""
    sr = stereo.sample_rate
    wet = spec.wet
    dry = 1.0 - wet
    # 0.7-0.98 range
    feedback = 0.7 + spec.room_size * 0.28

    combs_left = tuple(_scaled_delay(d, sr) for d in COMB_DELAYS)
    combs_right = tuple(_scaled_delay(d + STEREO_OFFSET, sr) for d in COMB_DELAYS)
    allpass_left = tuple(_scaled_delay(d, sr) for d in ALLPASS_DELAYS)
    allpass_right = tuple(_scaled_delay(d + STEREO_OFFSET, sr) for d in ALLPASS_DELAYS)

    tail = round_half_up(sr * TAIL_SECONDS)
    total = len(stereo) + tail
    left = np.zeros(total, dtype=np.float64)
    right = np.zeros(total, dtype=np.float64)
    left[: len(stereo)] = stereo.left
    right[: len(stereo)] = stereo.right

    wet_left = _reverb_channel(left, combs_left, allpass_left, feedback, spec.damping)
    wet_right = _reverb_channel(right, combs_right, allpass_right, feedback, spec.damping)
    _LOGGER.debug(
        "Reverb wet=%.2f room=%.2f damping=%.2f extended %d -> %d samples",
        wet,
        spec.room_size,
        spec.damping,
        len(stereo),
        total,
    )
    return StereoBuffer(
        left=left * dry + wet_left * wet,
        right=right * dry + wet_right * wet,
        sample_rate=sr,
    )


# =============================================================================
# COMPRESSOR
# =============================================================================

_DB_FLOOR_LINEAR = 1e-10


def db_to_linear(db: float) -> float:
    return float(10.0 ** (db / 20.0))


def linear_to_db(linear: FloatArray | float) -> FloatArray:
    return 20.0 * np.log10(np.maximum(linear, _DB_FLOOR_LINEAR))


def compute_gain_reduction(
    input_db: FloatArray | float,
    threshold: float,
    ratio: float,
    knee: float,
) -> FloatArray:
    """Soft-knee static curve: dB of reduction for each input level."""
    level = np.asarray(input_db, dtype=np.float64)
    half_knee = knee / 2.0
    slope = 1.0 - 1.0 / ratio
    reduction = np.zeros_like(level)

    above = level >= threshold + half_knee
    reduction[above] = (level[above] - threshold) * slope

    inside = (level > threshold - half_knee) & ~above
    x = level[inside] - threshold + half_knee
    reduction[inside] = x * x * slope / (2.0 * knee)
    return reduction


def _ballistics_coeff(seconds: float, sample_rate: int) -> float:
    window = seconds * sample_rate
    if window <= 0:
        return 0.0
    return float(np.exp(-1.0 / window))


def apply_compressor(stereo: StereoBuffer, spec: CompressorSpec) -> StereoBuffer:
    """Linked-stereo feed-forward compressor working in the dB domain."""
    sr = stereo.sample_rate
    peak = np.maximum(np.abs(stereo.left), np.abs(stereo.right))
    target = compute_gain_reduction(linear_to_db(peak), spec.threshold, spec.ratio, spec.knee)

    attack = _ballistics_coeff(spec.attack, sr)
    release = _ballistics_coeff(spec.release, sr)
    smoothed = np.empty(target.size, dtype=np.float64)
    env_db = 0.0
    for i, goal in enumerate(target.tolist()):
        coeff = attack if goal > env_db else release
        env_db = coeff * env_db + (1.0 - coeff) * goal
        smoothed[i] = env_db

    gain = 10.0 ** (-smoothed / 20.0) * db_to_linear(spec.makeup_gain)
    if smoothed.size:
        _LOGGER.debug("Compressor max reduction %.2f dB", float(np.max(smoothed)))
    return StereoBuffer(
        left=stereo.left * gain,
        right=stereo.right * gain,
        sample_rate=sr,
    )


# =============================================================================
# FALLBACK NORMALIZER
# =============================================================================

NORMALIZE_TARGET = 0.95


def normalize_peak(stereo: StereoBuffer) -> StereoBuffer:
    """Scale both channels to 0.95 peak, only when the buffer clips."""
    peak = stereo.peak()
    if peak <= 1.0:
        return stereo
    scale = NORMALIZE_TARGET / peak
    _LOGGER.debug("Peak %.3f exceeds full scale; scaling by %.4f", peak, scale)
    return StereoBuffer(
        left=stereo.left * scale,
        right=stereo.right * scale,
        sample_rate=stereo.sample_rate,
    )
