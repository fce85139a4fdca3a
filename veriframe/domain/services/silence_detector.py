import logging

from veriframe.domain.models import AnalysisRequest, Severity
from veriframe.domain.services.score_aggregator import PENALTY_SILENCE_PERIODS, ScoreLedger
from veriframe.domain.settings import AnalysisSettings
from veriframe.infrastructure.ffmpeg_engine import EngineError, FFmpegEngine, silence_stream
from veriframe.infrastructure.log_events import LogState

logger = logging.getLogger(__name__)


async def detect_silences(
    engine: FFmpegEngine,
    request: AnalysisRequest,
    state: LogState,
    ledger: ScoreLedger,
    settings: AnalysisSettings,
) -> None:
    """
    Run ffmpeg's silencedetect filter over the audio track; the intervals land
    in `state` through the engine's log subscription.

    Best effort: a failed pass is logged and neither penalised nor reported.
    """
    try:
        await engine.run(
            silence_stream(
                request.path,
                noise_db=settings.silence_noise_db,
                min_duration=settings.silence_min_duration,
            )
        )
    except EngineError as e:
        logger.warning("Silence detection failed for %s: %s", request.file_name, e)
        return

    silences = state.silences
    logger.info("%d silence interval(s) in %s", len(silences), request.file_name)
    if len(silences) > settings.max_silence_periods:
        ledger.record(
            f"{silences[0].start_seconds:.2f}s - {silences[-1].end_seconds:.2f}s",
            f"Detected {len(silences)} separate periods of silence, which may indicate audio editing.",
            Severity.MEDIUM,
            PENALTY_SILENCE_PERIODS,
        )


def record_missing_audio(ledger: ScoreLedger) -> None:
    ledger.record(
        "N/A",
        "No audio track detected. Audio consistency could not be analyzed.",
        Severity.LOW,
    )
