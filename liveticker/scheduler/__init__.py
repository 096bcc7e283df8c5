"""Scheduler package initialization."""
from liveticker.scheduler.timers import TimerRegistry

__all__ = ["TimerRegistry"]
