import time
from threading import Lock
from typing import Callable, Dict, Optional

from veriframe.domain.models import AnalysisJob, JobStatus
from veriframe.domain.settings import JOB_RETENTION_SECONDS


class InMemoryJobRepository:
    """
    Analysis jobs, held while they run and for `retention` seconds after they
    reach COMPLETED or FAILED so clients can poll the outcome.

    Expired jobs are swept on every save and lookup; nothing survives a restart.
    """

    def __init__(
        self,
        retention: float = JOB_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.retention = retention
        self._clock = clock
        self._jobs: Dict[str, AnalysisJob] = {}
        self._finished_at: Dict[str, float] = {}
        self._lock = Lock()

    def save(self, job: AnalysisJob) -> None:
        with self._lock:
            self._jobs[job.id] = job
            if job.status != JobStatus.PROCESSING:
                self._finished_at.setdefault(job.id, self._clock())
            self._sweep()

    def get(self, job_id: str) -> Optional[AnalysisJob]:
        with self._lock:
            self._sweep()
            return self._jobs.get(job_id)

    def remove(self, job_id: str) -> Optional[AnalysisJob]:
        with self._lock:
            self._finished_at.pop(job_id, None)
            return self._jobs.pop(job_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def _sweep(self) -> None:
        cutoff = self._clock() - self.retention
        for job_id in [j for j, finished in self._finished_at.items() if finished < cutoff]:
            del self._finished_at[job_id]
            self._jobs.pop(job_id, None)


job_repository = InMemoryJobRepository()
