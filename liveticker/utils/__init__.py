"""Utilities package initialization."""
from liveticker.utils.time import utcnow, to_local, format_local_date, format_local_time, seconds_until
from liveticker.utils.formatting import format_live_event, format_recap_message, format_legend

__all__ = [
    "utcnow",
    "to_local",
    "format_local_date",
    "format_local_time",
    "seconds_until",
    "format_live_event",
    "format_recap_message",
    "format_legend"
]
