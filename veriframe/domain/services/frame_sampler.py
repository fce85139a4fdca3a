import logging
from dataclasses import dataclass
from typing import List, Optional

from veriframe.domain.models import AnalysisRequest, Severity
from veriframe.domain.services.progress import ProgressReporter
from veriframe.domain.services.score_aggregator import PENALTY_FRAME_EXTRACTION, ScoreLedger
from veriframe.domain.settings import AnalysisSettings
from veriframe.infrastructure.ffmpeg_engine import EngineError, FFmpegEngine, frame_stream

logger = logging.getLogger(__name__)

PROGRESS_START = 30
PROGRESS_SPAN = 30


@dataclass
class ExtractedFrame:
    """Encoded JPEG bytes for one sample point; data is None if extraction failed."""
    index: int
    timestamp: str
    data: Optional[bytes]

    @property
    def timestamp_seconds(self) -> float:
        return float(self.timestamp)


def sample_timestamps(duration: float, points) -> List[str]:
    return [f"{duration * p:.3f}" for p in points]


async def sample_frames(
    engine: FFmpegEngine,
    request: AnalysisRequest,
    duration: float,
    ledger: ScoreLedger,
    progress: ProgressReporter,
    settings: AnalysisSettings,
) -> List[ExtractedFrame]:
    """
    Extract one still per sample point, in file order.

    A failed extraction costs a deduction and an issue but never stops the loop.
    """
    timestamps = sample_timestamps(duration, settings.sample_points)
    total = len(timestamps)
    frames: List[ExtractedFrame] = []

    for i, timestamp in enumerate(timestamps):
        progress(
            f"Extracting frame {i + 1}/{total}...",
            PROGRESS_START + (PROGRESS_SPAN * i) // max(1, total - 1),
        )
        name = f"frame{i + 1}.jpg"
        try:
            await engine.run(
                frame_stream(
                    request.path,
                    timestamp,
                    engine.workspace_path(name),
                    width=settings.frame_width,
                    height=settings.frame_height,
                    quality=settings.frame_quality,
                )
            )
            data = await engine.read_file(name)
        except (EngineError, OSError) as e:
            logger.warning("Failed to extract frame %d at %ss: %s", i + 1, timestamp, e)
            ledger.record(
                f"{timestamp}s",
                f"Failed to extract frame {i + 1}. The video stream may be incomplete.",
                Severity.HIGH,
                PENALTY_FRAME_EXTRACTION,
            )
            frames.append(ExtractedFrame(index=i, timestamp=timestamp, data=None))
            continue

        frames.append(ExtractedFrame(index=i, timestamp=timestamp, data=data))
        await discard_artifact(engine, name)

    return frames


async def discard_artifact(engine: FFmpegEngine, name: str) -> None:
    """Delete a temporary file from the engine workspace; failures are only logged."""
    try:
        await engine.delete_file(name)
    except OSError as e:
        logger.warning("Failed to delete %s: %s", name, e)
