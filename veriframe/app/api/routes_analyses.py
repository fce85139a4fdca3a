import uuid
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, File, HTTPException, UploadFile

from veriframe.app.api.uploads import save_upload
from veriframe.app.schemas.analyses import AnalysisCreatedResponse, AnalysisDetail
from veriframe.domain.services.job_service import create_job, discard_job, get_job, run_job
from veriframe.domain.settings import JOBS_DIR

router = APIRouter(prefix="/api/analyses", tags=["analyses"])


@router.post("", response_model=AnalysisCreatedResponse, status_code=202)
async def create_analysis(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
):
    """
    Start an integrity analysis of an uploaded video file.
    Poll GET /api/analyses/{id} for progress and the final report.

    The job is only registered once the upload is safely on disk, so a
    rejected upload never leaves a job behind.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    suffix = Path(file.filename).suffix or ".mp4"
    jobs_dir = Path(JOBS_DIR)
    jobs_dir.mkdir(parents=True, exist_ok=True)

    staging_path = jobs_dir / f"upload-{uuid.uuid4().hex}{suffix}.part"
    await save_upload(file, staging_path)

    job = create_job(file.filename)
    try:
        video_path = staging_path.rename(jobs_dir / f"{job.id}{suffix}")
    except OSError as e:
        discard_job(job.id)
        staging_path.unlink(missing_ok=True)
        raise HTTPException(status_code=500, detail=f"Failed to store upload: {e!s}") from e

    background_tasks.add_task(run_job, job.id, video_path)

    return AnalysisCreatedResponse.from_job(job)


@router.get("/{job_id}", response_model=AnalysisDetail)
async def get_analysis(job_id: str):
    job = get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return AnalysisDetail.from_job(job)
