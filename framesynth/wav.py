"""16-bit PCM WAV serialization.

The encoder writes the canonical 44-byte header itself; decoding for inspection
goes through soundfile.
"""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import soundfile as sf  # type: ignore[import]

from .audio import FloatArray, StereoBuffer, as_float_array
from .errors import WavFormatError

_LOGGER = logging.getLogger("framesynth.wav")

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
_BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
_PCM_FORMAT = 1
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True, slots=True)
class WavHeader:
    channels: int
    sample_rate: int
    bits_per_sample: int
    byte_rate: int
    block_align: int
    data_size: int

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align if self.block_align else 0

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate if self.sample_rate else 0.0


def to_pcm16(samples: FloatArray) -> np.ndarray:
    """Clamp to [-1, 1]; negatives scale by 32768, the rest by 32767, truncated."""
    clamped = np.clip(np.nan_to_num(as_float_array(samples), nan=0.0), -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    return np.trunc(scaled).astype("<i2")


def _encode(pcm: np.ndarray, channels: int, sample_rate: int) -> bytes:
    data = pcm.tobytes()
    header = _HEADER.pack(
        b"RIFF",
        36 + len(data),
        b"WAVE",
        b"fmt ",
        16,
        _PCM_FORMAT,
        channels,
        sample_rate,
        sample_rate * channels * _BYTES_PER_SAMPLE,
        channels * _BYTES_PER_SAMPLE,
        BITS_PER_SAMPLE,
        b"data",
        len(data),
    )
    return header + data


def stereo_to_wav(stereo: StereoBuffer) -> bytes:
    """Interleaved (L, R, L, R, ...) 16-bit stereo WAV."""
    interleaved = np.column_stack((to_pcm16(stereo.left), to_pcm16(stereo.right))).reshape(-1)
    return _encode(interleaved, 2, stereo.sample_rate)


def samples_to_wav(samples: FloatArray, sample_rate: int) -> bytes:
    """Mono 16-bit WAV for the legacy single-channel path."""
    return _encode(to_pcm16(samples), 1, sample_rate)


def write_wav(path: str | Path, data: bytes) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    _LOGGER.debug("Wrote %d bytes to %s", len(data), target)
    return target


def read_wav_header(data: bytes) -> WavHeader:
    """Parse the canonical 44-byte PCM header written by this module."""
    if len(data) < HEADER_SIZE:
        raise WavFormatError(f"WAV data too short: {len(data)} bytes")
    (
        riff,
        _riff_size,
        wave,
        fmt,
        fmt_size,
        audio_format,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits,
        data_tag,
        data_size,
    ) = _HEADER.unpack_from(data)
    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_tag != b"data":
        raise WavFormatError("Missing RIFF/WAVE/fmt/data chunk markers")
    if fmt_size != 16 or audio_format != _PCM_FORMAT:
        raise WavFormatError(f"Unsupported fmt chunk (size={fmt_size}, format={audio_format})")
    return WavHeader(
        channels=channels,
        sample_rate=sample_rate,
        bits_per_sample=bits,
        byte_rate=byte_rate,
        block_align=block_align,
        data_size=data_size,
    )


def decode_wav(source: bytes | str | Path) -> tuple[FloatArray, int]:
    """Decode any WAV to float64 frames x channels (int16 / 32768 scaling)."""
    handle: io.BytesIO | str = (
        io.BytesIO(source) if isinstance(source, bytes) else str(Path(source))
    )
    try:
        samples, sample_rate = sf.read(handle, dtype="float64", always_2d=True)
    except RuntimeError as exc:
        raise WavFormatError(f"Cannot decode WAV: {exc}") from exc
    return np.asarray(samples, dtype=np.float64), int(sample_rate)
