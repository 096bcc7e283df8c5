"""Queued fetch jobs."""
import enum
import uuid
from dataclasses import dataclass, field
from typing import Optional


class JobType(str, enum.Enum):
    SCHEDULE = "schedule"
    POLL = "poll"


def _new_job_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass(eq=False)
class Job:
    """One unit of fetch work, consumed exactly once by a worker.

    Compared by identity so in-flight jobs can live in a set.
    """
    type: JobType
    chat_id: str
    game_id: str
    meeting_page_url: Optional[str] = None  # schedule jobs only
    job_id: str = field(default_factory=_new_job_id)

    def __str__(self) -> str:
        return f"Job {self.job_id} ({self.type.value})"
