"""Models package initialization."""
from liveticker.models.job import Job, JobType
from liveticker.models.schedule import ScheduleEntry
from liveticker.models.ticker import RecapEntry, TickerMode, TickerState, TickerStatus

__all__ = [
    "Job",
    "JobType",
    "RecapEntry",
    "ScheduleEntry",
    "TickerMode",
    "TickerState",
    "TickerStatus",
]
