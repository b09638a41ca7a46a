"""
Concurrency gate: at most N long-running jobs at a time, keyed by job id.
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Any, Iterator, List

from comment_analyzer.config import config
from comment_analyzer.utils.error_handling import CapacityRejectedError
from comment_analyzer.utils.logger import logging


def generate_job_id(video_id: str, user_id: str = "anonymous") -> str:
    """Build a job identifier for a video processed on behalf of a user."""
    return f"{user_id}_{video_id}_{int(time.time() * 1000)}"


class ConcurrencyGate:
    """
    Registry of running jobs with a fixed capacity.

    All reads and writes of the registry go through one lock, so a start
    attempt is atomic with respect to other start attempts and finishes.
    """

    def __init__(self, max_concurrent: int = config.MAX_CONCURRENT_JOBS,
                 retry_after: int = config.RETRY_AFTER_SECONDS):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.retry_after = retry_after
        self._active: Dict[str, float] = {}
        self._lock = threading.Lock()

    def try_start(self, job_id: str) -> bool:
        """Register ``job_id`` if it is not running and capacity remains."""
        with self._lock:
            if job_id in self._active or len(self._active) >= self.max_concurrent:
                logging.info(f"Rejected job {job_id}, active jobs: {len(self._active)}")
                return False
            self._active[job_id] = time.monotonic()
            active_count = len(self._active)
        logging.info(f"Started job {job_id}, active jobs: {active_count}")
        return True

    def finish(self, job_id: str) -> None:
        """Release ``job_id``; a no-op when it is not registered."""
        with self._lock:
            started = self._active.pop(job_id, None)
            active_count = len(self._active)
        if started is not None:
            logging.info(
                f"Finished job {job_id} after {time.monotonic() - started:.1f}s, active jobs: {active_count}"
            )

    def is_running(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._active

    def clear(self) -> None:
        """Drop every registered job (error recovery)."""
        with self._lock:
            self._active.clear()
        logging.warning("Cleared all active jobs")

    def status(self) -> Dict[str, Any]:
        with self._lock:
            active_ids: List[str] = list(self._active)
        remaining = max(0, self.max_concurrent - len(active_ids))
        return {
            "activeCount": len(active_ids),
            "activeIds": active_ids,
            "capacityRemaining": remaining,
            "maxConcurrent": self.max_concurrent,
            "canStartNew": remaining > 0,
        }

    def rejection(self) -> CapacityRejectedError:
        """Describe the current saturation as an error carrying retry guidance."""
        status = self.status()
        return CapacityRejectedError(status["activeCount"], status["activeIds"], self.retry_after)

    @contextmanager
    def slot(self, job_id: str) -> Iterator[str]:
        """
        Hold a slot for the duration of a ``with`` block.

        Raises:
            CapacityRejectedError: If the job cannot start
        """
        if not self.try_start(job_id):
            raise self.rejection()
        try:
            yield job_id
        finally:
            self.finish(job_id)
