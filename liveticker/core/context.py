"""Shared engine context passed to every component."""
from dataclasses import dataclass, field

from liveticker.core.config import Settings
from liveticker.core.transport import ChatTransport
from liveticker.providers import GameDataProvider
from liveticker.scheduler.timers import TimerRegistry
from liveticker.services.job_queue import JobQueue
from liveticker.services.persistence import TickerStore
from liveticker.services.registry import TickerRegistry


@dataclass
class TickerContext:
    """Everything the engine components share; no module-level state."""
    settings: Settings
    transport: ChatTransport
    provider: GameDataProvider
    store: TickerStore
    timers: TimerRegistry
    registry: TickerRegistry = field(default_factory=TickerRegistry)
    queue: JobQueue = field(default_factory=JobQueue)
