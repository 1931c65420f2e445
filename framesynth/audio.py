from __future__ import annotations

from pathlib import Path
from typing import Any, TypeAlias

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, model_validator

FloatArray: TypeAlias = NDArray[np.float64]

SAMPLE_RATE = 44_100
DEFAULT_FPS = 30


def as_float_array(samples: Any) -> FloatArray:
    return np.ascontiguousarray(samples, dtype=np.float64).reshape(-1)


class StereoBuffer(BaseModel):
    """Two equal-length channels plus their sample rate.

    Effect stages never mutate a buffer they are given; they return a new one
    (which may be longer, e.g. after the reverb tail is appended).
    """

    left: FloatArray
    right: FloatArray
    sample_rate: int = SAMPLE_RATE

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        arbitrary_types_allowed=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_channels(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for key in ("left", "right"):
                if key in data:
                    data[key] = as_float_array(data[key])
        return data

    @model_validator(mode="after")
    def _check_lengths(self) -> "StereoBuffer":
        if self.left.shape != self.right.shape:
            raise ValueError(
                f"left/right length mismatch: {self.left.size} != {self.right.size}"
            )
        return self

    @classmethod
    def silent(cls, length: int, sample_rate: int = SAMPLE_RATE) -> "StereoBuffer":
        return cls(
            left=np.zeros(max(0, length)),
            right=np.zeros(max(0, length)),
            sample_rate=sample_rate,
        )

    def __len__(self) -> int:
        return int(self.left.size)

    @property
    def duration(self) -> float:
        return len(self) / self.sample_rate

    def peak(self) -> float:
        if len(self) == 0:
            return 0.0
        return float(max(np.max(np.abs(self.left)), np.max(np.abs(self.right))))

    def to_numpy(self) -> FloatArray:
        """Frames x channels array (N, 2)."""
        return np.column_stack((self.left, self.right))

    def to_mono(self) -> FloatArray:
        return (self.left + self.right) * 0.5

    def to_wav_bytes(self) -> bytes:
        from .wav import stereo_to_wav

        return stereo_to_wav(self)

    def save(self, path: str | Path) -> Path:
        from .wav import write_wav

        return write_wav(path, self.to_wav_bytes())
