# tests/test_frame_differ.py
import threading

import numpy as np
import pytest

from fakes import banded_pixels, encode_png, solid_pixels
from veriframe.domain.models import FrameSample, Severity
from veriframe.domain.services import frame_differ
from veriframe.domain.services.frame_differ import (
    compare_frames,
    count_mismatched_pixels,
    decode_frame,
    difference_percentage,
)
from veriframe.domain.services.frame_sampler import ExtractedFrame
from veriframe.domain.services.score_aggregator import (
    PENALTY_HIGH_DIFFERENCE,
    PENALTY_NOTICEABLE_DIFFERENCE,
    ScoreLedger,
)


def _sample(pixels: np.ndarray) -> FrameSample:
    height, width = pixels.shape[:2]
    return FrameSample(timestamp_seconds=0.0, width=width, height=height, pixels=pixels)


def _frames(*images):
    timestamps = ["1.000", "5.000", "9.000"]
    return [
        ExtractedFrame(index=i, timestamp=timestamps[i], data=encode_png(img) if img is not None else None)
        for i, img in enumerate(images)
    ]


def test_identical_frames_do_not_mismatch():
    a = solid_pixels(90)
    assert count_mismatched_pixels(a, a.copy()) == 0
    assert difference_percentage(_sample(a), _sample(a.copy())) == 0


def test_compression_noise_is_below_threshold():
    rng = np.random.default_rng(7)
    a = solid_pixels(120)
    b = a.copy()
    noise = rng.integers(-3, 4, size=b[..., :3].shape)
    b[..., :3] = np.clip(b[..., :3].astype(int) + noise, 0, 255).astype(np.uint8)
    assert count_mismatched_pixels(a, b) == 0


def test_black_and_white_always_mismatch():
    black, white = solid_pixels(0, 10, 10), solid_pixels(255, 10, 10)
    assert count_mismatched_pixels(black, white) == 100


def test_transparent_pixels_blend_with_white():
    transparent_black = solid_pixels(0, 4, 4)
    transparent_black[..., 3] = 0
    assert count_mismatched_pixels(transparent_black, solid_pixels(255, 4, 4)) == 0


def test_percentage_of_total_pixels():
    pct = difference_percentage(_sample(solid_pixels(0)), _sample(banded_pixels(0.15)))
    assert pct == pytest.approx(15.0)


def test_shape_mismatch_is_rejected():
    with pytest.raises(ValueError):
        count_mismatched_pixels(solid_pixels(0, 4, 4), solid_pixels(0, 8, 8))


def test_decode_frame_resizes_to_sampling_resolution():
    pixels = decode_frame(encode_png(solid_pixels(200, 320, 180)), 640, 360)
    assert pixels.shape == (360, 640, 4)
    assert pixels.dtype == np.uint8
    assert int(pixels[0, 0, 0]) == 200


def test_identical_samples_record_nothing(run, settings):
    ledger = ScoreLedger()
    gray = solid_pixels(128)
    run(compare_frames(_frames(gray, gray, gray), ledger, settings))
    assert ledger.findings == []


def test_large_difference_is_a_potential_splice(run, settings):
    ledger = ScoreLedger()
    run(compare_frames(_frames(solid_pixels(0), banded_pixels(0.15), banded_pixels(0.15)), ledger, settings))

    assert len(ledger.findings) == 1
    issue, deduction = ledger.findings[0]
    assert issue.severity == Severity.MEDIUM
    assert deduction == PENALTY_HIGH_DIFFERENCE
    assert issue.timestamp == "1.000s - 5.000s"
    assert "15.00%" in issue.description
    assert "splice" in issue.description


def test_moderate_difference_is_noticeable(run, settings):
    ledger = ScoreLedger()
    run(compare_frames(_frames(solid_pixels(0), solid_pixels(0), banded_pixels(0.05)), ledger, settings))

    assert len(ledger.findings) == 1
    issue, deduction = ledger.findings[0]
    assert issue.severity == Severity.LOW
    assert deduction == PENALTY_NOTICEABLE_DIFFERENCE
    assert issue.timestamp == "5.000s - 9.000s"


def test_small_difference_is_ignored(run, settings):
    ledger = ScoreLedger()
    run(compare_frames(_frames(solid_pixels(0), banded_pixels(0.02), banded_pixels(0.02)), ledger, settings))
    assert ledger.findings == []


def test_missing_frame_skips_its_pairs(run, settings):
    ledger = ScoreLedger()
    run(compare_frames(_frames(solid_pixels(0), None, solid_pixels(255)), ledger, settings))
    assert ledger.findings == []


def test_undecodable_frame_is_dropped_without_penalty(run, settings):
    ledger = ScoreLedger()
    frames = _frames(solid_pixels(0), solid_pixels(0), banded_pixels(0.5))
    frames[2].data = b"not an image"
    run(compare_frames(frames, ledger, settings))
    assert ledger.findings == []


def test_pixel_comparison_runs_off_the_event_loop(run, settings, monkeypatch):
    threads = []
    original = frame_differ.difference_percentage

    def recording(*args):
        threads.append(threading.current_thread())
        return original(*args)

    monkeypatch.setattr(frame_differ, "difference_percentage", recording)
    gray = solid_pixels(128)
    run(compare_frames(_frames(gray, gray, gray), ScoreLedger(), settings))

    assert len(threads) == 2
    assert all(thread is not threading.main_thread() for thread in threads)
