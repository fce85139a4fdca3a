import tempfile
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile

from veriframe.app.api.uploads import save_upload
from veriframe.app.schemas.reports import ReportOut
from veriframe.domain.errors import AnalysisFailedError
from veriframe.domain.models import AnalysisRequest
from veriframe.domain.services.integrity_pipeline import analyze_video


router = APIRouter(prefix="/api", tags=["analyze"])


def _ignore_progress(message: str, percent: int) -> None:
    pass


@router.post("/analyze", response_model=ReportOut)
async def analyze_upload(file: UploadFile = File(...)):
    """
    Accepts an uploaded video file, runs the full integrity analysis and
    returns the report in the same request.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    suffix = Path(file.filename).suffix or ".mp4"

    with tempfile.TemporaryDirectory() as tmpdir:
        video_path = Path(tmpdir) / f"input{suffix}"
        await save_upload(file, video_path)

        try:
            report = await analyze_video(
                AnalysisRequest(path=video_path, file_name=file.filename),
                _ignore_progress,
            )
        except AnalysisFailedError as e:
            raise HTTPException(status_code=500, detail=str(e))

    return ReportOut.from_report(report)
