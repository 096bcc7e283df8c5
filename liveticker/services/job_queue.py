"""FIFO queue of pending fetch jobs."""
import logging
from collections import deque
from typing import Deque, List, Optional, Set

from liveticker.models.job import Job, JobType

logger = logging.getLogger(__name__)


class JobQueue:
    """
    Unbounded FIFO of jobs.

    Scheduling requests and fairness polls are appended; activation hand-offs
    are prepended so a freshly started game is polled ahead of routine work.
    Jobs handed to a worker stay visible as in flight until the worker is
    done, so a chat never has two polls running at once.
    """

    def __init__(self):
        self._jobs: Deque[Job] = deque()
        self._in_flight: Set[Job] = set()

    def __len__(self) -> int:
        return len(self._jobs)

    def __bool__(self) -> bool:
        return bool(self._jobs)

    def append(self, job: Job):
        self._jobs.append(job)
        logger.debug(f"[{job.chat_id}] {job} appended, queue length {len(self._jobs)}")

    def prepend(self, job: Job):
        self._jobs.appendleft(job)
        logger.debug(f"[{job.chat_id}] {job} prepended, queue length {len(self._jobs)}")

    def pop(self) -> Optional[Job]:
        """Head of the queue, or None if empty."""
        return self._jobs.popleft() if self._jobs else None

    def started(self, job: Job):
        self._in_flight.add(job)

    def finished(self, job: Job):
        self._in_flight.discard(job)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def has_job(self, chat_id: str, job_type: Optional[JobType] = None) -> bool:
        """True if a matching job is queued or currently being worked on."""
        return any(
            job.chat_id == chat_id and (job_type is None or job.type == job_type)
            for job in (*self._jobs, *self._in_flight)
        )

    def remove_for_chat(self, chat_id: str) -> int:
        """Drop every queued job of a chat; returns how many were removed."""
        kept = [job for job in self._jobs if job.chat_id != chat_id]
        removed = len(self._jobs) - len(kept)
        self._jobs = deque(kept)
        if removed:
            logger.info(f"[{chat_id}] Removed {removed} queued job(s)")
        return removed

    def snapshot(self) -> List[Job]:
        return list(self._jobs)
