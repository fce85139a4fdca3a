# tests/test_log_events.py
import pytest

from fakes import probe_log, silence_log
from veriframe.domain.models import SilenceInterval
from veriframe.infrastructure.log_events import (
    AudioStreamFound,
    DurationFound,
    LogState,
    SilenceEnded,
    SilenceStarted,
    parse_duration,
    parse_line,
)


@pytest.mark.parametrize(
    "text, seconds",
    [
        ("00:00:10.00", 10.0),
        ("01:02:03.50", 3723.5),
        ("00:00:01", 1.0),
    ],
)
def test_parse_duration(text, seconds):
    assert parse_duration(text) == pytest.approx(seconds)


def test_duration_line_yields_event():
    events = parse_line("  Duration: 00:01:15.04, start: 0.000000, bitrate: 2510 kb/s")
    assert len(events) == 1
    assert isinstance(events[0], DurationFound)
    assert events[0].seconds == pytest.approx(75.04)


def test_unknown_duration_yields_nothing():
    assert parse_line("  Duration: N/A, start: 0.000000, bitrate: N/A") == []


def test_audio_stream_declarations():
    assert parse_line("  Stream #0:1(eng): Audio: aac (LC), 48000 Hz, stereo, fltp") == [AudioStreamFound()]
    assert parse_line("  Stream #0:1[0x2](und): Audio: opus, 48000 Hz, stereo") == [AudioStreamFound()]
    assert parse_line("  Stream #0:0(und): Video: h264 (High), yuv420p, 1920x1080") == []


def test_silence_markers():
    assert parse_line("[silencedetect @ 0x55] silence_start: -0.0213") == [SilenceStarted(-0.0213)]
    assert parse_line("[silencedetect @ 0x55] silence_end: 4.5 | silence_duration: 2.25") == [
        SilenceEnded(4.5, 2.25)
    ]


@pytest.mark.parametrize(
    "line",
    [
        "",
        "frame=  250 fps=0.0 q=-0.0 Lsize=N/A time=00:00:10.00 bitrate=N/A speed= 372x",
        "Press [q] to stop, [?] for help",
        "[h264 @ 0x5563] error while decoding MB 12 30, bytestream -7",
        "Duration: garbage",
        "silence_end: nope | silence_duration: ???",
    ],
)
def test_unrelated_lines_are_ignored(line):
    assert parse_line(line) == []


def test_state_collects_probe_facts():
    state = LogState()
    for line in probe_log("00:00:10.50", audio=True):
        state.feed(line)
    assert state.duration == pytest.approx(10.5)
    assert state.has_audio is True
    assert state.silences == []


def test_first_duration_wins():
    state = LogState()
    state.feed("  Duration: 00:00:12.00, start: 0.000000")
    state.feed("  Duration: 00:00:03.00, start: 0.000000")
    assert state.duration == pytest.approx(12.0)


def test_defaults_without_matching_lines():
    state = LogState()
    state.feed("Input #0, matroska,webm, from 'broken.mkv':")
    state.feed("broken.mkv: Invalid data found when processing input")
    assert state.duration == 0
    assert state.has_audio is False
    assert state.silences == []


def test_audio_flag_is_sticky():
    state = LogState()
    state.feed("  Stream #0:1: Audio: mp3, 44100 Hz, stereo")
    state.feed("  Stream #0:0: Video: mpeg4, yuv420p")
    assert state.has_audio is True


def test_silence_pairs_become_intervals():
    state = LogState()
    for line in silence_log(2):
        state.feed(line)
    assert state.silences == [
        SilenceInterval(start_seconds=1.0, end_seconds=3.5, duration_seconds=2.5),
        SilenceInterval(start_seconds=5.0, end_seconds=7.5, duration_seconds=2.5),
    ]


def test_orphan_silence_end_is_discarded():
    state = LogState()
    state.feed("[silencedetect @ 0x1] silence_end: 3.0 | silence_duration: 1.0")
    assert state.silences == []


def test_each_start_closes_once():
    state = LogState()
    state.feed("[silencedetect @ 0x1] silence_start: 1.0")
    state.feed("[silencedetect @ 0x1] silence_end: 2.0 | silence_duration: 1.0")
    state.feed("[silencedetect @ 0x1] silence_end: 4.0 | silence_duration: 2.0")
    assert len(state.silences) == 1


def test_inverted_interval_is_discarded():
    state = LogState()
    state.feed("[silencedetect @ 0x1] silence_start: 5.0")
    state.feed("[silencedetect @ 0x1] silence_end: 2.0 | silence_duration: 3.0")
    assert state.silences == []


def test_interleaved_lines_do_not_break_pairing():
    state = LogState()
    state.feed("[silencedetect @ 0x1] silence_start: 1.0")
    state.feed("size=N/A time=00:00:02.00 bitrate=N/A speed= 120x")
    state.feed("[aac @ 0x2] Queue input is backward in time")
    state.feed("[silencedetect @ 0x1] silence_end: 3.0 | silence_duration: 2.0")
    assert state.silences == [SilenceInterval(1.0, 3.0, 2.0)]
