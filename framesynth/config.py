from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidTrackError
from .timing import TimeConfig

_LOGGER = logging.getLogger("framesynth.config")

Waveform = Literal["sine", "square", "saw", "triangle", "noise"]
FilterKind = Literal["lowpass", "highpass", "bandpass"]

# Envelope stages are always wall-clock seconds, independent of how the
# event's own duration is expressed.
Seconds: TypeAlias = float

DEFAULT_BPM = 120.0
DEFAULT_BEATS_PER_BAR = 4
DEFAULT_PPQ = 480
DEFAULT_Q = 0.707


@dataclass(frozen=True, slots=True)
class FramePosition:
    frame: float


@dataclass(frozen=True, slots=True)
class FrameDuration:
    """Duration counted in video frames (resolved against the caller's fps)."""

    frames: float

    def seconds(self, fps: float) -> Seconds:
        return self.frames / fps


@dataclass(frozen=True, slots=True)
class BeatDuration:
    """Duration counted in beats (resolved against the track tempo)."""

    beats: float
    bpm: float

    def seconds(self, fps: float) -> Seconds:
        _ = fps
        return self.beats * 60.0 / self.bpm


EventDuration = FrameDuration | BeatDuration


class _Spec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class BBT(_Spec):
    """Bar/Beat/Tick position; bar and beat are 0-indexed."""

    bar: int = Field(default=0, ge=0)
    beat: int = Field(default=0, ge=0)
    tick: float = Field(default=0.0, ge=0.0)


class FilterSpec(_Spec):
    kind: FilterKind = Field(alias="type")
    cutoff: float = Field(gt=0.0)
    q: float = Field(default=DEFAULT_Q, gt=0.0, alias="Q")


class Event(_Spec):
    """One procedural sound placed on the timeline."""

    frame: Optional[float] = None
    bbt: Optional[BBT] = None
    duration: float = Field(default=0.0, ge=0.0)
    duration_beats: Optional[float] = Field(default=None, ge=0.0, alias="durationBeats")

    frequency: float = 440.0
    waveform: Waveform = "sine"
    pitch_slide: Optional[float] = Field(default=None, alias="pitchSlide")

    attack: Seconds = Field(default=0.0, ge=0.0)
    decay: Seconds = Field(default=0.0, ge=0.0)
    sustain: float = Field(default=1.0, ge=0.0, le=1.0)
    release: Seconds = Field(default=0.0, ge=0.0)

    volume: float = Field(default=0.8, ge=0.0, le=1.0)
    distortion: float = Field(default=0.0, ge=0.0, le=1.0)
    filter: Optional[FilterSpec] = None
    pan: float = Field(default=0.0, ge=-1.0, le=1.0)

    def position(self) -> BBT | FramePosition:
        """BBT wins when both positioning modes are present."""
        if self.bbt is not None:
            return self.bbt
        return FramePosition(frame=self.frame if self.frame is not None else 0.0)

    def duration_spec(self, bpm: float | None = None) -> EventDuration:
        """Beat durations win whenever a positive tempo is available."""
        if self.duration_beats is not None and bpm is not None and bpm > 0:
            return BeatDuration(beats=self.duration_beats, bpm=bpm)
        return FrameDuration(frames=self.duration)

    @property
    def end_frequency(self) -> float:
        return self.frequency if self.pitch_slide is None else self.pitch_slide


class ReverbSpec(_Spec):
    wet: float = Field(ge=0.0, le=1.0)
    room_size: float = Field(default=0.5, ge=0.0, le=1.0, alias="roomSize")
    damping: float = Field(default=0.5, ge=0.0, le=1.0)


class CompressorSpec(_Spec):
    threshold: float
    ratio: float = Field(ge=1.0)
    attack: Seconds = Field(ge=0.0)
    release: Seconds = Field(ge=0.0)
    knee: float = Field(default=0.0, ge=0.0)
    makeup_gain: float = Field(default=0.0, alias="makeupGain")


class Track(_Spec):
    """Top-level render input; an empty event list renders silence."""

    bpm: float = Field(default=DEFAULT_BPM, gt=0.0)
    beats_per_bar: int = Field(default=DEFAULT_BEATS_PER_BAR, gt=0, alias="beatsPerBar")
    ppq: int = Field(default=DEFAULT_PPQ, gt=0)
    events: tuple[Event, ...] = ()
    reverb: Optional[ReverbSpec] = None
    compressor: Optional[CompressorSpec] = None

    def time_config(self) -> TimeConfig:
        return TimeConfig(bpm=self.bpm, beats_per_bar=self.beats_per_bar, ppq=self.ppq)


def parse_track(payload: Mapping[str, Any]) -> Track:
    """Parse a track payload, raising InvalidTrackError on failure."""

    try:
        return Track.model_validate(payload)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse track payload: %s", exc, exc_info=True)
        raise InvalidTrackError(str(exc)) from exc


def load_track(path: str | Path) -> Track:
    """Read and validate a JSON track file."""

    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _LOGGER.warning("Failed to read track file %s: %s", source, exc, exc_info=True)
        raise InvalidTrackError(f"Cannot read track file {source}: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise InvalidTrackError(f"Track file {source} must contain a JSON object")
    return parse_track(payload)
