"""Cancelable per-chat timers on top of APScheduler."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class TimerRegistry:
    """
    Named timers whose ids are prefixed with the owning chat id.

    The id doubles as the cancellation token: cancelling a chat removes every
    timer of that chat, whatever stage armed it. Callables must be coroutine
    functions so they run on the event loop, not in a worker thread.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None):
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone.utc)

    @staticmethod
    def timer_id(chat_id: str, name: str) -> str:
        return f"{chat_id}:{name}"

    def arm_at(self, chat_id: str, name: str, run_at: datetime, func: Callable, *args: Any) -> str:
        """One-shot timer at an absolute time; replaces a timer of the same name."""
        timer_id = self.timer_id(chat_id, name)
        self.scheduler.add_job(
            func,
            trigger=DateTrigger(run_date=run_at),
            args=list(args),
            id=timer_id,
            replace_existing=True,
            misfire_grace_time=None
        )
        logger.debug(f"[{chat_id}] Timer {name} armed for {run_at.isoformat()}")
        return timer_id

    def arm_in(self, chat_id: str, name: str, delay_seconds: float, func: Callable, *args: Any) -> str:
        """One-shot timer after a delay."""
        run_at = datetime.now(timezone.utc) + timedelta(seconds=max(delay_seconds, 0))
        return self.arm_at(chat_id, name, run_at, func, *args)

    def arm_every(self, chat_id: str, name: str, seconds: float, func: Callable, *args: Any) -> str:
        """Periodic timer; the first run is one full interval from now."""
        timer_id = self.timer_id(chat_id, name)
        self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=seconds),
            args=list(args),
            id=timer_id,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        logger.debug(f"[{chat_id}] Periodic timer {name} armed every {seconds}s")
        return timer_id

    def every(self, name: str, seconds: float, func: Callable) -> str:
        """Process-wide periodic job (fairness pass, dispatcher)."""
        self.scheduler.add_job(
            func,
            trigger=IntervalTrigger(seconds=seconds),
            id=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        return name

    def is_armed(self, chat_id: str, name: str) -> bool:
        return self.scheduler.get_job(self.timer_id(chat_id, name)) is not None

    def cancel(self, chat_id: str, name: str) -> bool:
        """Cancel one timer; False if it was not armed."""
        try:
            self.scheduler.remove_job(self.timer_id(chat_id, name))
        except JobLookupError:
            return False
        logger.debug(f"[{chat_id}] Timer {name} cancelled")
        return True

    def cancel_all(self, chat_id: str) -> int:
        """Cancel every timer owned by a chat."""
        prefix = f"{chat_id}:"
        cancelled = 0
        for job in self.scheduler.get_jobs():
            if job.id.startswith(prefix):
                try:
                    self.scheduler.remove_job(job.id)
                    cancelled += 1
                except JobLookupError:
                    pass
        if cancelled:
            logger.info(f"[{chat_id}] Cancelled {cancelled} timer(s)")
        return cancelled

    def start(self):
        self.scheduler.start()

    def shutdown(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
