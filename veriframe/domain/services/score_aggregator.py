"""
Turns detector findings into the final score, summary and issue list.

Detectors never touch the score: they record (issue, deduction) pairs on a
ScoreLedger and build_report() derives everything from it.
"""
from dataclasses import dataclass, field
from typing import List, Tuple

from veriframe.domain.models import AnalysisReport, Issue, Severity

BASELINE_SCORE = 100

# Flat point deductions, one per triggered condition.
PENALTY_METADATA_FAILED = 50
PENALTY_DURATION_UNKNOWN = 50
PENALTY_TOO_SHORT = 10
PENALTY_FRAME_EXTRACTION = 20
PENALTY_HIGH_DIFFERENCE = 25
PENALTY_NOTICEABLE_DIFFERENCE = 10
PENALTY_SILENCE_PERIODS = 15

SUMMARY_AUTHENTIC = (
    "The video appears to be authentic. Metadata is valid and frame-to-frame analysis is consistent."
)
SUMMARY_MINOR = (
    "The video appears to be largely authentic. Some minor inconsistencies were found, "
    "but no direct evidence of tampering."
)
SUMMARY_MODERATE = (
    "The video shows moderate inconsistencies that could indicate tampering. "
    "Manual review is recommended."
)
SUMMARY_SIGNIFICANT = (
    "The video shows significant inconsistencies that could indicate tampering. "
    "Manual review is highly recommended."
)


@dataclass
class ScoreLedger:
    findings: List[Tuple[Issue, int]] = field(default_factory=list)

    def record(self, timestamp: str, description: str, severity: Severity, deduction: int = 0) -> Issue:
        issue = Issue(timestamp=timestamp, description=description, severity=severity)
        self.findings.append((issue, deduction))
        return issue

    @property
    def issues(self) -> List[Issue]:
        return [issue for issue, _ in self.findings]

    @property
    def total_deduction(self) -> int:
        return sum(deduction for _, deduction in self.findings)


def clamp_score(raw: int) -> int:
    return max(0, min(100, raw))


def summarize(score: int) -> str:
    if score == 100:
        return SUMMARY_AUTHENTIC
    if score >= 80:
        return SUMMARY_MINOR
    if score >= 50:
        return SUMMARY_MODERATE
    return SUMMARY_SIGNIFICANT


def build_report(ledger: ScoreLedger) -> AnalysisReport:
    score = clamp_score(BASELINE_SCORE - ledger.total_deduction)
    return AnalysisReport(score=score, summary=summarize(score), issues=ledger.issues)
