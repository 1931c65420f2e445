"""Stereo mixdown: per-event mono render, equal-power pan, summed master bus."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from .audio import SAMPLE_RATE, FloatArray, StereoBuffer
from .config import BBT, Event, Track
from .effects import NORMALIZE_TARGET, apply_compressor, apply_reverb, normalize_peak
from .synth import NoiseGenerator, render_event
from .timing import TimeConfig, bbt_to_frames, frames_to_samples
from .wav import samples_to_wav, stereo_to_wav

_LOGGER = logging.getLogger("framesynth.mix")


def pan_gains(pan: float) -> tuple[float, float]:
    """Equal-power law: -1 -> (1, 0), 0 -> (cos pi/4, sin pi/4), +1 -> (0, 1)."""
    theta = (math.pi / 4.0) * (pan + 1.0)
    return math.cos(theta), math.sin(theta)


def event_start_sample(event: Event, fps: float, sample_rate: int, time_config: TimeConfig) -> int:
    """Absolute start sample; BBT positions are quantized to a video frame first."""
    position = event.position()
    if isinstance(position, BBT):
        start_frame: float = bbt_to_frames(position, fps, time_config)
    else:
        start_frame = position.frame
    return frames_to_samples(start_frame, fps, sample_rate)


def add_event(left: FloatArray, right: FloatArray, mono: FloatArray, start: int, pan: float) -> None:
    """Accumulate ``mono`` at ``start``; samples outside the buffer are dropped."""
    total = left.size
    lo = max(0, start)
    hi = min(total, start + mono.size)
    if hi <= lo:
        return
    gain_left, gain_right = pan_gains(pan)
    segment = mono[lo - start : hi - start]
    left[lo:hi] += segment * gain_left
    right[lo:hi] += segment * gain_right


def _render_all(
    track: Track,
    fps: float,
    sample_rate: int,
    max_workers: int | None,
) -> list[FloatArray]:
    def _render(event: Event) -> FloatArray:
        return render_event(
            event,
            sample_rate,
            fps,
            track.bpm,
            noise=NoiseGenerator.for_event(event),
        )

    if max_workers is not None and max_workers > 1 and len(track.events) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(_render, track.events))
    return [_render(event) for event in track.events]


def mix_track(
    track: Track,
    total_frames: int,
    fps: float,
    sample_rate: int = SAMPLE_RATE,
    *,
    max_workers: int | None = None,
) -> StereoBuffer:
    """Render a full track into a mastered stereo buffer.

    The buffer spans ``total_frames`` of video; with a reverb configured it is
    returned longer by the reverb tail. ``max_workers`` renders events on a
    thread pool; the result is identical to the serial render.
    """
    total_samples = frames_to_samples(total_frames, fps, sample_rate)
    left = np.zeros(max(0, total_samples), dtype=np.float64)
    right = np.zeros(max(0, total_samples), dtype=np.float64)
    time_config = track.time_config()

    renders = _render_all(track, fps, sample_rate, max_workers)
    for event, mono in zip(track.events, renders):
        start = event_start_sample(event, fps, sample_rate, time_config)
        add_event(left, right, mono, start, event.pan)
    _LOGGER.debug(
        "Mixed %d events into %d samples at %d Hz", len(track.events), left.size, sample_rate
    )

    stereo = StereoBuffer(left=left, right=right, sample_rate=sample_rate)
    if track.reverb is not None:
        stereo = apply_reverb(stereo, track.reverb)
    if track.compressor is not None:
        stereo = apply_compressor(stereo, track.compressor)
    else:
        stereo = normalize_peak(stereo)
    return stereo


def normalize_mono(samples: FloatArray) -> FloatArray:
    """Independent peak safety net for the mono path."""
    if samples.size == 0:
        return samples
    peak = float(np.max(np.abs(samples)))
    if peak > 1.0:
        return samples * (NORMALIZE_TARGET / peak)
    return samples


def render_track(
    track: Track,
    total_frames: int,
    fps: float,
    sample_rate: int = SAMPLE_RATE,
) -> FloatArray:
    """Backward-compatible mono render: (L + R) / 2 of the stereo mix."""
    stereo = mix_track(track, total_frames, fps, sample_rate)
    return normalize_mono(stereo.to_mono())


def render_wav(
    track: Track,
    total_frames: int,
    fps: float,
    sample_rate: int = SAMPLE_RATE,
    *,
    mono: bool = False,
    max_workers: int | None = None,
) -> bytes:
    """Render straight to WAV bytes (stereo by default)."""
    if mono:
        return samples_to_wav(render_track(track, total_frames, fps, sample_rate), sample_rate)
    stereo = mix_track(track, total_frames, fps, sample_rate, max_workers=max_workers)
    return stereo_to_wav(stereo)
