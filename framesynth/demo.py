"""Bundled demo track: a 15 second, 140 bpm percussive cue."""

from __future__ import annotations

from .config import BBT, CompressorSpec, Event, FilterSpec, ReverbSpec, Track

DEMO_FPS = 30
DEMO_FRAMES = 450
DEMO_BPM = 140.0

_ACT_STARTS = (0, 102, 208, 315)
_ACT_ROOTS = (40.0, 38.0, 42.0, 36.0)


def _frames(count: float, fps: int = DEMO_FPS) -> float:
    return count / fps


def _drones() -> list[Event]:
    events: list[Event] = []
    for start, root in zip(_ACT_STARTS, _ACT_ROOTS):
        events.append(
            Event(
                frame=start,
                duration=95,
                frequency=root,
                volume=0.35,
                attack=_frames(8),
                decay=0.1,
                sustain=0.9,
                release=_frames(8),
                filter=FilterSpec(kind="lowpass", cutoff=120.0),
            )
        )
        events.append(
            Event(
                frame=start,
                duration=8,
                frequency=root * 1.4,
                waveform="square",
                volume=0.7,
                decay=0.02,
                sustain=0.6,
                release=_frames(4),
                distortion=0.3,
                filter=FilterSpec(kind="lowpass", cutoff=300.0),
            )
        )
    return events


def _kicks() -> list[Event]:
    # Beats 0 and 2 of every bar, tempo-positioned.
    bars = int(DEMO_FRAMES / DEMO_FPS * DEMO_BPM / 60.0 / 4)
    return [
        Event(
            bbt=BBT(bar=bar, beat=beat),
            duration_beats=0.35,
            frequency=150.0,
            pitch_slide=40.0,
            volume=0.6,
            decay=0.02,
            sustain=0.3,
            release=_frames(3),
        )
        for bar in range(bars)
        for beat in (0, 2)
    ]


def _hats() -> list[Event]:
    events: list[Event] = []
    for i in range(100):
        frame = round(i * 4.3)
        if frame >= DEMO_FRAMES:
            break
        events.append(
            Event(
                frame=frame,
                duration=2,
                waveform="noise",
                volume=0.12 if i % 2 == 0 else 0.07,
                release=_frames(1),
                pan=0.3,
                filter=FilterSpec(kind="highpass", cutoff=6000.0),
            )
        )
    return events


def _swells() -> list[Event]:
    return [
        Event(
            frame=start - 24,
            duration=14,
            waveform="noise",
            volume=0.25,
            attack=_frames(12),
            pan=-0.5 if index % 2 == 0 else 0.5,
            filter=FilterSpec(kind="bandpass", cutoff=3000.0, q=0.9),
        )
        for index, start in enumerate(_ACT_STARTS[1:])
    ] + [
        Event(
            frame=400,
            duration=45,
            frequency=200.0,
            pitch_slide=2000.0,
            waveform="saw",
            volume=0.15,
            attack=_frames(5),
            release=_frames(10),
            filter=FilterSpec(kind="lowpass", cutoff=4000.0),
        ),
        Event(
            frame=380,
            duration=40,
            frequency=660.0,
            waveform="triangle",
            volume=0.2,
            attack=0.05,
            decay=0.3,
            sustain=0.4,
            release=0.4,
            pan=-0.4,
        ),
    ]


def demo_track() -> Track:
    return Track(
        bpm=DEMO_BPM,
        events=tuple(_drones() + _kicks() + _hats() + _swells()),
        reverb=ReverbSpec(wet=0.15, room_size=0.6, damping=0.4),
        compressor=CompressorSpec(threshold=-6.0, ratio=4.0, attack=0.003, release=0.1, knee=6.0),
    )
