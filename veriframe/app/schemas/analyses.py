from typing import Optional

from pydantic import BaseModel

from veriframe.app.schemas.reports import ReportOut
from veriframe.domain.models import AnalysisJob, JobStatus


class ProgressOut(BaseModel):
    message: str
    percent: int


class AnalysisDetail(BaseModel):
    id: str
    status: JobStatus
    file_name: str
    progress: ProgressOut
    report: Optional[ReportOut] = None
    error_message: Optional[str] = None

    @classmethod
    def from_job(cls, job: AnalysisJob) -> "AnalysisDetail":
        return cls(
            id=job.id,
            status=job.status,
            file_name=job.file_name,
            progress=ProgressOut(message=job.progress.message, percent=job.progress.percent),
            report=ReportOut.from_report(job.report) if job.report else None,
            error_message=job.error_message,
        )


class AnalysisCreatedResponse(AnalysisDetail):
    pass
