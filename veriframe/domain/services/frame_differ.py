"""
Visual difference between sampled frames.

The per-pixel test follows pixelmatch: both pixels are blended onto white by
their alpha, converted to YIQ, and count as mismatched when the weighted YIQ
delta exceeds 35215 * threshold^2 (35215 being the largest possible delta).
Compression and quantisation noise stays well below that line.
"""
import asyncio
import io
import logging
from typing import List, Optional

import numpy as np
from PIL import Image

from veriframe.domain.models import FrameSample, Severity
from veriframe.domain.services.frame_sampler import ExtractedFrame
from veriframe.domain.services.score_aggregator import (
    PENALTY_HIGH_DIFFERENCE,
    PENALTY_NOTICEABLE_DIFFERENCE,
    ScoreLedger,
)
from veriframe.domain.settings import AnalysisSettings

logger = logging.getLogger(__name__)

MAX_YIQ_DELTA = 35215.0


def decode_frame(data: bytes, width: int, height: int) -> np.ndarray:
    """Decode encoded image bytes into an RGBA array of shape (height, width, 4)."""
    with Image.open(io.BytesIO(data)) as img:
        rgba = img.convert("RGBA")
    if rgba.size != (width, height):
        rgba = rgba.resize((width, height))
    return np.asarray(rgba, dtype=np.uint8)


def _blend_with_white(pixels: np.ndarray) -> np.ndarray:
    rgba = pixels.astype(np.float64)
    alpha = rgba[..., 3:4] / 255.0
    return 255.0 + (rgba[..., :3] - 255.0) * alpha


def _to_yiq(rgb: np.ndarray):
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    y = r * 0.29889531 + g * 0.58662247 + b * 0.11448223
    i = r * 0.59597799 - g * 0.27417610 - b * 0.32180189
    q = r * 0.21147017 - g * 0.52261711 + b * 0.31114694
    return y, i, q


def count_mismatched_pixels(a: np.ndarray, b: np.ndarray, threshold: float = 0.1) -> int:
    if a.shape != b.shape:
        raise ValueError(f"frame shapes differ: {a.shape} vs {b.shape}")
    y1, i1, q1 = _to_yiq(_blend_with_white(a))
    y2, i2, q2 = _to_yiq(_blend_with_white(b))
    delta = 0.5053 * (y1 - y2) ** 2 + 0.299 * (i1 - i2) ** 2 + 0.1957 * (q1 - q2) ** 2
    return int(np.count_nonzero(delta > MAX_YIQ_DELTA * threshold * threshold))


def difference_percentage(a: FrameSample, b: FrameSample, threshold: float = 0.1) -> float:
    mismatched = count_mismatched_pixels(a.pixels, b.pixels, threshold)
    return mismatched / (a.width * a.height) * 100


async def decode_samples(
    frames: List[ExtractedFrame],
    settings: AnalysisSettings,
) -> List[Optional[FrameSample]]:
    samples: List[Optional[FrameSample]] = []
    for frame in frames:
        if frame.data is None:
            samples.append(None)
            continue
        try:
            pixels = await asyncio.to_thread(
                decode_frame, frame.data, settings.frame_width, settings.frame_height
            )
        except (OSError, ValueError) as e:
            logger.warning("Could not decode frame %d: %s", frame.index + 1, e)
            samples.append(None)
            continue
        samples.append(
            FrameSample(
                timestamp_seconds=frame.timestamp_seconds,
                width=settings.frame_width,
                height=settings.frame_height,
                pixels=pixels,
            )
        )
    return samples


async def compare_frames(
    frames: List[ExtractedFrame],
    ledger: ScoreLedger,
    settings: AnalysisSettings,
) -> None:
    """
    Score each adjacent pair of sampled frames (1-2, 2-3, ...).
    A pair with a missing frame is skipped; the sampler already charged for it.
    """
    samples = await decode_samples(frames, settings)

    for first in range(len(samples) - 1):
        second = first + 1
        a, b = samples[first], samples[second]
        if a is None or b is None:
            continue

        pct = await asyncio.to_thread(difference_percentage, a, b, settings.pixel_threshold)
        logger.info("Frames %d-%d differ by %.2f%%", first + 1, second + 1, pct)
        span = f"{frames[first].timestamp}s - {frames[second].timestamp}s"

        if pct > settings.high_difference_pct:
            ledger.record(
                span,
                f"High visual difference ({pct:.2f}%) between distant frames, "
                "suggesting a major scene change or potential splice.",
                Severity.MEDIUM,
                PENALTY_HIGH_DIFFERENCE,
            )
        elif pct > settings.low_difference_pct:
            ledger.record(
                span,
                f"Noticeable visual difference ({pct:.2f}%) between distant frames.",
                Severity.LOW,
                PENALTY_NOTICEABLE_DIFFERENCE,
            )
