"""Biquad filter: RBJ Audio-EQ-Cookbook coefficients, Direct Form II Transposed.

``q <= 0`` and non-positive sample rates are caller errors and are not checked.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter  # type: ignore[import]

from .audio import FloatArray
from .config import FilterKind


@dataclass(frozen=True, slots=True)
class BiquadCoefficients:
    b0: float
    b1: float
    b2: float
    a1: float
    a2: float

    def ba(self) -> tuple[FloatArray, FloatArray]:
        return (
            np.array([self.b0, self.b1, self.b2], dtype=np.float64),
            np.array([1.0, self.a1, self.a2], dtype=np.float64),
        )


@dataclass(slots=True)
class BiquadState:
    """Filter memory; reuse one instance to stream across buffer boundaries."""

    z1: float = 0.0
    z2: float = 0.0


def compute_coefficients(
    kind: FilterKind,
    cutoff: float,
    q: float,
    sample_rate: int,
) -> BiquadCoefficients:
    w0 = 2.0 * math.pi * cutoff / sample_rate
    cos_w0 = math.cos(w0)
    alpha = math.sin(w0) / (2.0 * q)

    match kind:
        case "lowpass":
            b0 = (1.0 - cos_w0) / 2.0
            b1 = 1.0 - cos_w0
            b2 = (1.0 - cos_w0) / 2.0
        case "highpass":
            b0 = (1.0 + cos_w0) / 2.0
            b1 = -(1.0 + cos_w0)
            b2 = (1.0 + cos_w0) / 2.0
        case "bandpass":
            # constant 0 dB peak gain
            b0 = alpha
            b1 = 0.0
            b2 = -alpha
        case _:
            raise ValueError(f"Unknown filter kind: {kind!r}")

    a0 = 1.0 + alpha
    a1 = -2.0 * cos_w0
    a2 = 1.0 - alpha
    return BiquadCoefficients(
        b0=b0 / a0,
        b1=b1 / a0,
        b2=b2 / a0,
        a1=a1 / a0,
        a2=a2 / a0,
    )


def process_biquad(
    samples: FloatArray,
    coeffs: BiquadCoefficients,
    state: BiquadState | None = None,
) -> BiquadState:
    """Filter ``samples`` in place and return the (updated) state.

    Per sample: ``y = b0*x + z1; z1 = b1*x - a1*y + z2; z2 = b2*x - a2*y``.
    """
    current = state if state is not None else BiquadState()
    if samples.size == 0:
        return current

    b, a = coeffs.ba()
    zi = np.array([current.z1, current.z2], dtype=np.float64)
    filtered, zf = lfilter(b, a, samples, zi=zi)
    samples[:] = filtered
    current.z1 = float(zf[0])
    current.z2 = float(zf[1])
    return current


def apply_biquad_filter(
    samples: FloatArray,
    kind: FilterKind,
    cutoff: float,
    q: float,
    sample_rate: int,
) -> None:
    """Compute coefficients and filter in place from a zeroed state."""
    process_biquad(samples, compute_coefficients(kind, cutoff, q, sample_rate))
