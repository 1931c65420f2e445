from __future__ import annotations

from .audio import DEFAULT_FPS, SAMPLE_RATE, StereoBuffer
from .config import (
    BBT,
    BeatDuration,
    CompressorSpec,
    Event,
    FilterSpec,
    FrameDuration,
    FramePosition,
    ReverbSpec,
    Track,
    Waveform,
    load_track,
    parse_track,
)
from .effects import apply_compressor, apply_reverb, normalize_peak
from .errors import FrameSynthError, InvalidTrackError, WavFormatError
from .filters import BiquadCoefficients, BiquadState, compute_coefficients, process_biquad
from .mix import mix_track, pan_gains, render_track, render_wav
from .synth import NoiseGenerator, render_event
from .timing import DEFAULT_TIME_CONFIG, TimeConfig, seconds_to_bbt
from .wav import decode_wav, read_wav_header, samples_to_wav, stereo_to_wav

__all__ = [
    "BBT",
    "DEFAULT_FPS",
    "DEFAULT_TIME_CONFIG",
    "SAMPLE_RATE",
    "BeatDuration",
    "BiquadCoefficients",
    "BiquadState",
    "CompressorSpec",
    "Event",
    "FilterSpec",
    "FrameDuration",
    "FramePosition",
    "FrameSynthError",
    "InvalidTrackError",
    "NoiseGenerator",
    "ReverbSpec",
    "StereoBuffer",
    "TimeConfig",
    "Track",
    "WavFormatError",
    "Waveform",
    "apply_compressor",
    "apply_reverb",
    "compute_coefficients",
    "decode_wav",
    "load_track",
    "mix_track",
    "normalize_peak",
    "pan_gains",
    "parse_track",
    "process_biquad",
    "read_wav_header",
    "render_event",
    "render_track",
    "render_wav",
    "samples_to_wav",
    "seconds_to_bbt",
    "stereo_to_wav",
]

__version__ = "0.1.0"
