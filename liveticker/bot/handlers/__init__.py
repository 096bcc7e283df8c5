"""Bot command handlers."""
from liveticker.bot.handlers.ticker import (
    autoschedule_command,
    help_command,
    reset_command,
    start_command,
    stop_command
)

__all__ = [
    "autoschedule_command",
    "help_command",
    "reset_command",
    "start_command",
    "stop_command"
]
