from typing import List

from pydantic import BaseModel

from veriframe.domain.models import AnalysisReport, Severity


class IssueOut(BaseModel):
    timestamp: str
    description: str
    severity: Severity


class ReportOut(BaseModel):
    score: int
    summary: str
    issues: List[IssueOut] = []

    @classmethod
    def from_report(cls, report: AnalysisReport) -> "ReportOut":
        return cls(
            score=report.score,
            summary=report.summary,
            issues=[
                IssueOut(timestamp=i.timestamp, description=i.description, severity=i.severity)
                for i in report.issues
            ],
        )
