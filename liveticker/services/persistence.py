"""JSON snapshot persistence for seen events and pending schedules."""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set

from pydantic import ValidationError

from liveticker.models.schedule import ScheduleEntry
from liveticker.models.ticker import EventId, TickerState

logger = logging.getLogger(__name__)


class TickerStore:
    """
    Two independent key-value documents keyed by chat id.

    Both files are rewritten completely on every save. Missing or corrupt
    files load as empty; write errors are logged and never raised, so
    persistence can not take down the polling loop.
    """

    def __init__(self, seen_path: Path, schedule_path: Path):
        self.seen_path = Path(seen_path)
        self.schedule_path = Path(schedule_path)
        self.schedule_entries: Dict[str, ScheduleEntry] = {}

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.info(f"No saved data at {path}, starting fresh")
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {path}, starting fresh: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring {path}: expected a JSON object")
            return {}
        return data

    @staticmethod
    def _write_json(path: Path, data: Dict[str, Any]) -> bool:
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving {path}: {e}", exc_info=True)
            return False

    # --- seen events -------------------------------------------------------

    def load_seen(self) -> Dict[str, Set[EventId]]:
        """Seen event ids per chat."""
        data = self._read_json(self.seen_path)
        seen = {}
        for chat_id, ids in data.items():
            if isinstance(ids, list):
                seen[chat_id] = set(ids)
        logger.info(f"Loaded seen events for {len(seen)} tickers")
        return seen

    def save_seen(self, tickers: Iterable[TickerState]) -> bool:
        data = {}
        for state in tickers:
            # Sorted by string form so ints and strings can mix
            data[state.chat_id] = sorted(state.seen, key=str)
        return self._write_json(self.seen_path, data)

    # --- pending schedules -------------------------------------------------

    def load_schedule(self) -> Dict[str, ScheduleEntry]:
        """Load pending schedule entries into memory (once, at startup)."""
        data = self._read_json(self.schedule_path)
        entries = {}
        for chat_id, raw in data.items():
            try:
                entries[chat_id] = ScheduleEntry.model_validate(raw)
            except ValidationError as e:
                logger.warning(f"[{chat_id}] Dropping invalid schedule entry: {e}")
        self.schedule_entries = entries
        return dict(entries)

    def save_schedule(self) -> bool:
        data = {
            chat_id: entry.model_dump(mode="json")
            for chat_id, entry in self.schedule_entries.items()
        }
        return self._write_json(self.schedule_path, data)

    def get_schedule_entry(self, chat_id: str) -> Optional[ScheduleEntry]:
        return self.schedule_entries.get(chat_id)

    def put_schedule_entry(self, chat_id: str, entry: ScheduleEntry) -> bool:
        self.schedule_entries[chat_id] = entry
        return self.save_schedule()

    def drop_schedule_entry(self, chat_id: str) -> bool:
        """Remove a chat's pending entry; returns True if one existed."""
        if self.schedule_entries.pop(chat_id, None) is None:
            return False
        self.save_schedule()
        return True
