"""
Per-event renderer:

1. Oscillators: sine, PolyBLEP square/saw, triangle, seeded LCG noise
2. Envelope: exponential ADSR with the release anchored to the end of the event
3. Shaping: volume, tanh soft clip, optional biquad over the whole event
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from .audio import FloatArray
from .config import Event, Waveform
from .filters import apply_biquad_filter
from .timing import round_half_up

_LOGGER = logging.getLogger("framesynth.synth")

# Exponential curve steepness shared by every envelope stage.
_ENV_CURVE = 5.0
# Soft clip drive at distortion amount 1.0.
_MAX_DRIVE = 50.0

_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223
_LCG_MASK = 0xFFFFFFFF
_SEED_SCALE = 12345


# =============================================================================
# NOISE
# =============================================================================


@dataclass(slots=True)
class NoiseGenerator:
    """32-bit linear congruential generator used by the "noise" waveform.

    Each event gets its own instance, seeded from the event position, so events
    can be rendered in any order (or concurrently) with identical output.
    """

    state: int = 0

    @staticmethod
    def seed_for(event: Event) -> int:
        if event.bbt is not None:
            bbt = event.bbt
            return int((bbt.bar * 10000 + bbt.beat * 100 + bbt.tick) * _SEED_SCALE)
        frame = event.frame if event.frame is not None else 0.0
        return round_half_up(frame * _SEED_SCALE)

    @classmethod
    def for_event(cls, event: Event) -> "NoiseGenerator":
        return cls(state=cls.seed_for(event) & _LCG_MASK)

    def next(self) -> float:
        self.state = (self.state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _LCG_MASK
        return self.state / _LCG_MASK * 2.0 - 1.0

    def fill(self, count: int) -> FloatArray:
        out = np.empty(count, dtype=np.float64)
        state = self.state
        for i in range(count):
            state = (state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _LCG_MASK
            out[i] = state / _LCG_MASK * 2.0 - 1.0
        self.state = state
        return out


# =============================================================================
# OSCILLATORS
# =============================================================================


def poly_blep(t: FloatArray, dt: FloatArray | float) -> FloatArray:
    """PolyBLEP residual for normalized phase ``t`` and per-sample increment ``dt``.

    Rising side (t < dt): n + n - n^2 - 1 with n = t/dt.
    Wrapped side (t > 1 - dt): n^2 + n + n + 1 with n = (t - 1)/dt.
    Samples with dt <= 0 get no correction.
    """
    phase = np.asarray(t, dtype=np.float64)
    step = np.broadcast_to(np.asarray(dt, dtype=np.float64), phase.shape)
    out = np.zeros_like(phase)

    active = step > 0
    rising = active & (phase < step)
    falling = active & ~rising & (phase > 1.0 - step)

    n = phase[rising] / step[rising]
    out[rising] = n + n - n * n - 1.0

    n = (phase[falling] - 1.0) / step[falling]
    out[falling] = n * n + n + n + 1.0
    return out


def oscillator(
    phase: FloatArray,
    waveform: Waveform,
    dt: FloatArray | float = 0.0,
    noise: NoiseGenerator | None = None,
) -> FloatArray:
    """Evaluate ``waveform`` at accumulated ``phase`` (cycles, any magnitude)."""
    phase = np.asarray(phase, dtype=np.float64)
    p = phase - np.floor(phase)
    band_limited = np.any(np.asarray(dt) > 0)

    match waveform:
        case "sine":
            return np.sin(p * 2.0 * np.pi)
        case "square":
            value = np.where(p < 0.5, 1.0, -1.0)
            if band_limited:
                value = value + poly_blep(p, dt) - poly_blep(np.mod(p + 0.5, 1.0), dt)
            return value
        case "saw":
            value = 2.0 * p - 1.0
            if band_limited:
                value = value - poly_blep(p, dt)
            return value
        case "triangle":
            return np.where(p < 0.5, 4.0 * p - 1.0, 3.0 - 4.0 * p)
        case "noise":
            generator = noise if noise is not None else NoiseGenerator()
            return generator.fill(p.size)
        case _:
            return np.zeros_like(p)


# =============================================================================
# ENVELOPE
# =============================================================================


def _ads_level(
    index: FloatArray,
    attack_samples: float,
    decay_samples: float,
    sustain: float,
) -> FloatArray:
    level = np.full(index.shape, sustain, dtype=np.float64)
    if decay_samples > 0:
        in_decay = index < attack_samples + decay_samples
        t = (index[in_decay] - attack_samples) / decay_samples
        level[in_decay] = sustain + (1.0 - sustain) * np.exp(-_ENV_CURVE * t)
    if attack_samples > 0:
        in_attack = index < attack_samples
        level[in_attack] = 1.0 - np.exp(-_ENV_CURVE * index[in_attack] / attack_samples)
    return level


def envelope(
    total_samples: int,
    attack: float,
    decay: float,
    sustain: float,
    release: float,
    sample_rate: int,
) -> FloatArray:
    """Exponential ADSR gain curve for an event of ``total_samples``.

    Stage lengths are in seconds. The release window always ends on the last
    sample; it starts from whatever level attack/decay/sustain reached there.
    """
    index = np.arange(total_samples, dtype=np.float64)
    attack_samples = attack * sample_rate
    decay_samples = decay * sample_rate
    release_samples = release * sample_rate

    level = _ads_level(index, attack_samples, decay_samples, sustain)
    if release_samples > 0:
        release_start = total_samples - release_samples
        # A release longer than the event starts before sample 0; capture the
        # level at the first real sample so the curve stays within [0, 1].
        captured = _ads_level(
            np.array([max(release_start, 0.0)]), attack_samples, decay_samples, sustain
        )[0]
        in_release = index >= release_start
        progress = (index[in_release] - release_start) / release_samples
        level[in_release] = captured * np.exp(-_ENV_CURVE * progress)
    return level


def soft_clip(samples: FloatArray, amount: float) -> FloatArray:
    """tanh saturation normalized so that +/-1 maps to +/-1."""
    if amount <= 0:
        return samples
    drive = amount * _MAX_DRIVE
    return np.tanh(drive * samples) / math.tanh(drive)


# =============================================================================
# EVENT RENDER
# =============================================================================


def event_sample_count(event: Event, sample_rate: int, fps: float, bpm: float | None) -> int:
    seconds = event.duration_spec(bpm).seconds(fps)
    return max(0, round_half_up(seconds * sample_rate))


def render_event(
    event: Event,
    sample_rate: int,
    fps: float,
    bpm: float | None = None,
    *,
    noise: NoiseGenerator | None = None,
) -> FloatArray:
    """Render one event to a mono buffer.

    oscillator -> envelope -> volume -> distortion -> filter. ``noise`` is only
    consumed by the "noise" waveform; when omitted a generator seeded from the
    event position is created.
    """
    total = event_sample_count(event, sample_rate, fps, bpm)
    if total == 0:
        _LOGGER.debug("Skipping zero-length %s event", event.waveform)
        return np.zeros(0, dtype=np.float64)

    t = np.arange(total, dtype=np.float64) / total
    freq = event.frequency + (event.end_frequency - event.frequency) * t
    dt = freq / sample_rate
    phase = np.zeros(total, dtype=np.float64)
    np.cumsum(dt[:-1], out=phase[1:])

    generator = noise if noise is not None else NoiseGenerator.for_event(event)
    samples = oscillator(phase, event.waveform, dt, noise=generator)
    samples = samples * envelope(
        total,
        event.attack,
        event.decay,
        event.sustain,
        event.release,
        sample_rate,
    )
    samples = samples * event.volume
    samples = soft_clip(samples, event.distortion)

    if event.filter is not None:
        apply_biquad_filter(
            samples,
            event.filter.kind,
            event.filter.cutoff,
            event.filter.q,
            sample_rate,
        )
    return samples
