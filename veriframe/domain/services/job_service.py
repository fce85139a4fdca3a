import asyncio
import logging
import uuid
from pathlib import Path

from veriframe.domain.errors import GENERIC_FAILURE_MESSAGE, AnalysisFailedError
from veriframe.domain.models import AnalysisJob, AnalysisRequest, JobStatus, ProgressEvent
from veriframe.domain.services.integrity_pipeline import analyze_video
from veriframe.domain.settings import ANALYSIS_TIMEOUT_SECONDS
from veriframe.infrastructure.persistence.in_memory_repo import job_repository

logger = logging.getLogger(__name__)


def create_job(file_name: str) -> AnalysisJob:
    """
    Create a new job in PROCESSING state.
    """
    job = AnalysisJob(id=str(uuid.uuid4()), file_name=file_name, status=JobStatus.PROCESSING)
    job_repository.save(job)
    return job


def get_job(job_id: str) -> AnalysisJob | None:
    return job_repository.get(job_id)


def discard_job(job_id: str) -> None:
    """Drop a job that will never run (its upload could not be handed over)."""
    job_repository.remove(job_id)


async def run_job(job_id: str, video_path: Path, *, timeout: float = ANALYSIS_TIMEOUT_SECONDS, **pipeline_kwargs) -> None:
    """
    Background processing for a job:
    - Run the integrity pipeline, publishing progress on the job
    - Attach the report or the user-facing error message
    - Remove the uploaded video
    """
    job = job_repository.get(job_id)
    if not job:
        return

    def on_progress(message: str, percent: int) -> None:
        job.progress = ProgressEvent(message=message, percent=percent)
        job_repository.save(job)

    request = AnalysisRequest(path=video_path, file_name=job.file_name)
    try:
        analysis = analyze_video(request, on_progress, **pipeline_kwargs)
        if timeout > 0:
            job.report = await asyncio.wait_for(analysis, timeout=timeout)
        else:
            job.report = await analysis
        job.status = JobStatus.COMPLETED
    except AnalysisFailedError as exc:
        job.status = JobStatus.FAILED
        job.error_message = str(exc)
    except asyncio.TimeoutError:
        logger.warning("Analysis of %s timed out after %ss", job.file_name, timeout)
        job.status = JobStatus.FAILED
        job.error_message = GENERIC_FAILURE_MESSAGE
    except Exception:  # noqa: BLE001 - top-level guard
        logger.exception("Job %s crashed", job_id)
        job.status = JobStatus.FAILED
        job.error_message = GENERIC_FAILURE_MESSAGE
    finally:
        job_repository.save(job)
        video_path.unlink(missing_ok=True)
