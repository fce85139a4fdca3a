import logging
from typing import AsyncContextManager, Callable, Optional

from veriframe.domain.errors import AnalysisFailedError
from veriframe.domain.models import AnalysisReport, AnalysisRequest
from veriframe.domain.services.frame_differ import compare_frames
from veriframe.domain.services.frame_sampler import sample_frames
from veriframe.domain.services.metadata_prober import probe_metadata
from veriframe.domain.services.progress import ProgressCallback, ProgressReporter
from veriframe.domain.services.score_aggregator import ScoreLedger, build_report
from veriframe.domain.services.silence_detector import detect_silences, record_missing_audio
from veriframe.domain.settings import AnalysisSettings
from veriframe.infrastructure.ffmpeg_engine import FFmpegEngine, open_engine
from veriframe.infrastructure.log_events import LogState

logger = logging.getLogger(__name__)

EngineFactory = Callable[[AnalysisSettings], AsyncContextManager[FFmpegEngine]]


async def analyze_video(
    request: AnalysisRequest,
    progress_callback: ProgressCallback,
    *,
    settings: Optional[AnalysisSettings] = None,
    engine_factory: EngineFactory = open_engine,
) -> AnalysisReport:
    """
    High-level domain service:
    - Load a private ffmpeg engine for this analysis
    - Probe metadata (duration, audio stream)
    - Sample and compare frames when the video is long enough
    - Look for suspicious silence when there is an audio track
    - Aggregate deductions into the final report

    Recoverable problems become issues on the report. Anything else is logged
    and re-raised as AnalysisFailedError once the engine has been terminated.
    """
    settings = settings or AnalysisSettings.from_env()
    progress = ProgressReporter(progress_callback)
    state = LogState()
    ledger = ScoreLedger()

    try:
        progress("Loading analysis engine...", 5)
        async with engine_factory(settings) as engine:
            engine.subscribe(state.feed)

            progress("Preparing video file...", 15)
            await engine.stage_input(request.path)

            progress("Analyzing video metadata...", 20)
            long_enough = await probe_metadata(engine, request, state, ledger, settings)

            if long_enough:
                frames = await sample_frames(engine, request, state.duration, ledger, progress, settings)
                if sum(1 for frame in frames if frame.data is not None) >= 2:
                    progress("Comparing frames...", 75)
                    await compare_frames(frames, ledger, settings)

            if state.has_audio:
                progress("Analyzing audio track...", 85)
                await detect_silences(engine, request, state, ledger, settings)
            else:
                record_missing_audio(ledger)

        progress("Finalizing report...", 95)
        report = build_report(ledger)
        progress("Analysis complete", 100)
    except Exception as exc:
        logger.exception("Critical error while analyzing %s", request.file_name)
        raise AnalysisFailedError() from exc

    logger.info("Analysis of %s finished: score %d, %d issue(s)", request.file_name, report.score, len(report.issues))
    return report
