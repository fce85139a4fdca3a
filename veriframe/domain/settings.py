"""
Tunables for the integrity pipeline.

Deployment knobs come from the environment; the algorithm constants are
plain defaults that tests and callers can override per analysis.
"""
import os
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class AnalysisSettings:
    ffmpeg_binary: Optional[str] = None  # None = look up "ffmpeg" on PATH

    min_duration_seconds: float = 3.0
    sample_points: Tuple[float, ...] = (0.1, 0.5, 0.9)
    frame_width: int = 640
    frame_height: int = 360
    frame_quality: int = 2  # ffmpeg -q:v, lower is better

    pixel_threshold: float = 0.1  # perceptual colour delta, 0..1
    high_difference_pct: float = 10.0
    low_difference_pct: float = 2.0

    silence_noise_db: float = -30.0
    silence_min_duration: float = 2.0
    max_silence_periods: int = 2

    @classmethod
    def from_env(cls) -> "AnalysisSettings":
        return cls(ffmpeg_binary=os.environ.get("FFMPEG_BINARY") or None)


# Caller-level timeout for one analysis job, in seconds (0 = no limit).
ANALYSIS_TIMEOUT_SECONDS = float(os.environ.get("ANALYSIS_TIMEOUT_SECONDS", "0"))

# Where uploaded videos wait for their background analysis.
JOBS_DIR = os.environ.get("VERIFRAME_JOBS_DIR", "jobs")

# How long a finished job stays pollable before it is evicted, in seconds.
JOB_RETENTION_SECONDS = float(os.environ.get("JOB_RETENTION_SECONDS", "3600"))

# Optional max upload size in MB (0 = no limit).
MAX_UPLOAD_MB = int(os.environ.get("MAX_UPLOAD_MB", "0"))
