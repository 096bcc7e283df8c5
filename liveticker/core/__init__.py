"""Core package initialization."""
from liveticker.core.config import settings

__all__ = ["settings"]
