"""Workers package initialization."""
from liveticker.workers.dispatcher import Dispatcher
from liveticker.workers.fairness import FairnessScheduler
from liveticker.workers.fetch_worker import FetchWorker

__all__ = ["Dispatcher", "FairnessScheduler", "FetchWorker"]
