import logging

from veriframe.domain.models import AnalysisRequest, Severity
from veriframe.domain.services.score_aggregator import (
    PENALTY_DURATION_UNKNOWN,
    PENALTY_METADATA_FAILED,
    PENALTY_TOO_SHORT,
    ScoreLedger,
)
from veriframe.domain.settings import AnalysisSettings
from veriframe.infrastructure.ffmpeg_engine import EngineError, FFmpegEngine, probe_stream
from veriframe.infrastructure.log_events import LogState

logger = logging.getLogger(__name__)


async def probe_metadata(
    engine: FFmpegEngine,
    request: AnalysisRequest,
    state: LogState,
    ledger: ScoreLedger,
    settings: AnalysisSettings,
) -> bool:
    """
    Decode the whole file to nowhere so ffmpeg logs duration and stream info
    into `state`, then record what was (or was not) learned.

    Returns True when the duration is long enough for frame sampling.
    """
    probe_ok = True
    try:
        await engine.run(probe_stream(request.path))
    except EngineError as e:
        logger.warning("Metadata probe failed for %s: %s", request.file_name, e)
        probe_ok = False
        ledger.record(
            "N/A",
            "Failed to process video metadata. The file may be corrupted.",
            Severity.HIGH,
            PENALTY_METADATA_FAILED,
        )

    duration = state.duration
    if duration <= 0:
        # a failed probe already explains the missing duration
        if probe_ok:
            ledger.record(
                "N/A",
                "Could not determine video duration. The file may be corrupted or have missing metadata.",
                Severity.HIGH,
                PENALTY_DURATION_UNKNOWN,
            )
        return False

    if duration < settings.min_duration_seconds:
        ledger.record(
            "N/A",
            "Video is too short for a full frame-comparison analysis.",
            Severity.LOW,
            PENALTY_TOO_SHORT,
        )
        return False

    logger.info("Duration of %s: %.2fs (audio: %s)", request.file_name, duration, state.has_audio)
    ledger.record(
        "00:00:00",
        f"Video duration confirmed: {duration:.2f} seconds.",
        Severity.LOW,
    )
    return True
