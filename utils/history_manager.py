"""
Watch history store.

A flat CSV file (``utf-8-sig``) with one row per movie, most recently
watched first and capped at ``max_items`` rows.  There is no locking:
concurrent writers simply race and the last one wins.

Usage:
    from utils.history_manager import WatchHistory

    history = WatchHistory('reports/watch_history.csv')
    history.add_to_history(HistoryEntry(movie_id='41000119532', title='...'))
"""

import csv
import os
import logging
from datetime import datetime, timezone
from typing import List, Optional

from api.models import HistoryEntry

logger = logging.getLogger(__name__)

HISTORY_FIELDS = ['movie_id', 'title', 'poster', 'episode', 'progress', 'last_watched']
MAX_HISTORY_ITEMS = 50


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _to_float(value, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return int(number) if number.is_integer() else number


class WatchHistory:
    """CSV-backed watch history keyed by movie id."""

    def __init__(self, history_file: str, max_items: int = MAX_HISTORY_ITEMS):
        self.history_file = history_file
        self.max_items = max_items

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _read_rows(self) -> List[dict]:
        if not os.path.exists(self.history_file):
            return []
        try:
            with open(self.history_file, 'r', encoding='utf-8-sig', newline='') as f:
                return list(csv.DictReader(f))
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.error(f"Error reading history file {self.history_file}: {e}")
            return []

    def _write_entries(self, entries: List[HistoryEntry]):
        history_dir = os.path.dirname(self.history_file)
        if history_dir and not os.path.exists(history_dir):
            os.makedirs(history_dir)

        with open(self.history_file, 'w', encoding='utf-8-sig', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=HISTORY_FIELDS)
            writer.writeheader()
            for entry in entries:
                writer.writerow({
                    'movie_id': entry.movie_id,
                    'title': entry.title,
                    'poster': entry.poster,
                    'episode': entry.episode,
                    'progress': entry.progress,
                    'last_watched': entry.last_watched,
                })

    @staticmethod
    def _row_to_entry(row: dict) -> Optional[HistoryEntry]:
        movie_id = (row.get('movie_id') or '').strip()
        if not movie_id:
            return None
        return HistoryEntry(
            movie_id=movie_id,
            title=row.get('title') or '',
            poster=row.get('poster') or '',
            episode=_to_int(row.get('episode'), 1),
            progress=_to_float(row.get('progress'), 0),
            last_watched=row.get('last_watched') or '',
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_history(self) -> List[HistoryEntry]:
        """All entries, most recently watched first."""
        entries = []
        for row in self._read_rows():
            entry = self._row_to_entry(row)
            if entry is not None:
                entries.append(entry)
        return entries

    def add_to_history(self, entry: HistoryEntry) -> HistoryEntry:
        """Insert (or move) *entry* to the front and trim to ``max_items``."""
        history = [h for h in self.get_history() if h.movie_id != entry.movie_id]

        new_entry = HistoryEntry(
            movie_id=str(entry.movie_id),
            title=entry.title,
            poster=entry.poster,
            episode=entry.episode or 1,
            progress=entry.progress or 0,
            last_watched=_now(),
        )
        history.insert(0, new_entry)

        trimmed = history[:self.max_items]
        if len(history) > len(trimmed):
            logger.debug(f"History trimmed from {len(history)} to {len(trimmed)} entries")
        self._write_entries(trimmed)
        return new_entry

    def update_progress(self, movie_id: str, progress: float, episode: int) -> bool:
        """Update progress in place (order is kept). False if *movie_id* is unknown."""
        history = self.get_history()
        for entry in history:
            if entry.movie_id == str(movie_id):
                entry.progress = progress
                entry.episode = episode
                entry.last_watched = _now()
                self._write_entries(history)
                return True
        return False

    def remove_from_history(self, movie_id: str) -> bool:
        """Remove one movie. False if it wasn't in the history."""
        history = self.get_history()
        filtered = [h for h in history if h.movie_id != str(movie_id)]
        if len(filtered) == len(history):
            return False
        self._write_entries(filtered)
        return True

    def clear_history(self):
        """Delete the history file."""
        if os.path.exists(self.history_file):
            os.remove(self.history_file)
            logger.info(f"Cleared watch history ({self.history_file})")
