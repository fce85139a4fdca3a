"""
Structured events from ffmpeg's stderr diagnostics.

parse_line() is a pure function: one log line in, zero or more typed events
out. LogState folds those events into what the pipeline needs to know about
the file (duration, audio presence, silence intervals). One LogState belongs
to one analysis.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from veriframe.domain.models import SilenceInterval

_DURATION_RE = re.compile(r"Duration:\s*(\d+:\d{1,2}:\d+(?:\.\d+)?)")
_AUDIO_STREAM_RE = re.compile(r"Stream #\d+:\d+.*?:\s*Audio:")
_SILENCE_START_RE = re.compile(r"silence_start:\s*(-?\d+(?:\.\d+)?)")
_SILENCE_END_RE = re.compile(
    r"silence_end:\s*(-?\d+(?:\.\d+)?)\s*\|\s*silence_duration:\s*(-?\d+(?:\.\d+)?)"
)


@dataclass(frozen=True)
class DurationFound:
    seconds: float


@dataclass(frozen=True)
class AudioStreamFound:
    pass


@dataclass(frozen=True)
class SilenceStarted:
    at: float


@dataclass(frozen=True)
class SilenceEnded:
    at: float
    duration: float


LogEvent = Union[DurationFound, AudioStreamFound, SilenceStarted, SilenceEnded]


def parse_duration(text: str) -> float:
    """Convert HH:MM:SS(.ms) to seconds."""
    hours, minutes, seconds = text.split(":")
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def parse_line(line: str) -> List[LogEvent]:
    events: List[LogEvent] = []

    match = _DURATION_RE.search(line)
    if match:
        events.append(DurationFound(parse_duration(match.group(1))))

    if _AUDIO_STREAM_RE.search(line):
        events.append(AudioStreamFound())

    match = _SILENCE_START_RE.search(line)
    if match:
        events.append(SilenceStarted(float(match.group(1))))

    match = _SILENCE_END_RE.search(line)
    if match:
        events.append(SilenceEnded(float(match.group(1)), float(match.group(2))))

    return events


@dataclass
class LogState:
    duration: float = 0.0
    has_audio: bool = False
    silences: List[SilenceInterval] = field(default_factory=list)
    _open_silence: Optional[float] = None

    def feed(self, line: str) -> None:
        for event in parse_line(line):
            self.apply(event)

    def apply(self, event: LogEvent) -> None:
        if isinstance(event, DurationFound):
            if self.duration == 0 and event.seconds > 0:
                self.duration = event.seconds
        elif isinstance(event, AudioStreamFound):
            self.has_audio = True
        elif isinstance(event, SilenceStarted):
            self._open_silence = event.at
        elif isinstance(event, SilenceEnded):
            self._close_silence(event)

    def _close_silence(self, event: SilenceEnded) -> None:
        start = self._open_silence
        self._open_silence = None
        # orphan ends (no open start) and inverted ranges are dropped
        if start is None or event.at < start or event.duration < 0:
            return
        self.silences.append(
            SilenceInterval(start_seconds=start, end_seconds=event.at, duration_seconds=event.duration)
        )
