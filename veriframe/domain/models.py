from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

import numpy as np


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class AnalysisRequest:
    path: Path
    file_name: str


@dataclass(frozen=True)
class ProgressEvent:
    message: str
    percent: int


@dataclass
class Issue:
    timestamp: str  # free-form: "00:00:00", "N/A", "1.000s - 5.000s"
    description: str
    severity: Severity


@dataclass
class AnalysisReport:
    score: int
    summary: str
    issues: List[Issue] = field(default_factory=list)


@dataclass
class FrameSample:
    """One decoded still frame; pixels is an RGBA array of shape (height, width, 4)."""
    timestamp_seconds: float
    width: int
    height: int
    pixels: np.ndarray


@dataclass(frozen=True)
class SilenceInterval:
    start_seconds: float
    end_seconds: float
    duration_seconds: float


class JobStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class AnalysisJob:
    id: str
    file_name: str
    status: JobStatus
    progress: ProgressEvent = ProgressEvent("Queued", 0)
    report: Optional[AnalysisReport] = None
    error_message: Optional[str] = None
