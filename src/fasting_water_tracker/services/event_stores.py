"""
Event stores for water additions and fasting sessions.

The stores own the authoritative records. Everything else in the tracker
(daily logs, today's totals) is derived from them.
"""

import logging
from collections.abc import Iterable
from datetime import date
from uuid import UUID

from fasting_water_tracker.domain.entries import FastingEntry, WaterEntry
from fasting_water_tracker.utils.timezone_utils import local_day

logger = logging.getLogger(__name__)


class WaterEventStore:
    """Append-only list of water entries, except for bulk removal of a day."""

    def __init__(self, timezone: str, entries: Iterable[WaterEntry] = ()) -> None:
        self.timezone = timezone
        self._entries: list[WaterEntry] = list(entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[WaterEntry]:
        return list(self._entries)

    def append(self, entry: WaterEntry) -> None:
        self._entries.append(entry)

    def restore(self, entries: Iterable[WaterEntry]) -> None:
        self._entries = list(entries)

    def entries_on(self, day: date) -> list[WaterEntry]:
        return [e for e in self._entries if local_day(e.timestamp, self.timezone) == day]

    def total_on(self, day: date) -> float:
        """Sum of all entries whose local day equals day, in litres."""
        return sum(e.amount_litres for e in self.entries_on(day))

    def remove_on(self, day: date) -> int:
        """
        Remove every entry on a local day.

        Returns:
            Number of removed entries.
        """
        kept = [e for e in self._entries if local_day(e.timestamp, self.timezone) != day]
        removed = len(self._entries) - len(kept)
        self._entries = kept
        logger.debug(f"Removed {removed} water entries on {day.isoformat()}")
        return removed


class FastingEventStore:
    """
    Fasting history.

    Records are frozen; closing or editing an entry replaces it in place so
    that the history keeps its original order.
    """

    def __init__(self, entries: Iterable[FastingEntry] = ()) -> None:
        self._entries: list[FastingEntry] = list(entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[FastingEntry]:
        return list(self._entries)

    def append(self, entry: FastingEntry) -> None:
        self._entries.append(entry)

    def restore(self, entries: Iterable[FastingEntry]) -> None:
        self._entries = list(entries)

    def get(self, entry_id: UUID) -> FastingEntry | None:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def open_entries(self) -> list[FastingEntry]:
        return [e for e in self._entries if e.is_open]

    def open_entry(self) -> FastingEntry | None:
        """The active fast, if any. The latest open entry wins."""
        open_entries = self.open_entries()
        return open_entries[-1] if open_entries else None

    def replace(self, entry: FastingEntry) -> FastingEntry:
        """
        Replace the stored entry that has the same id.

        Returns:
            The previous version of the entry.

        Raises:
            KeyError: If no entry has that id.
        """
        for idx, existing in enumerate(self._entries):
            if existing.id == entry.id:
                self._entries[idx] = entry
                return existing
        raise KeyError(entry.id)
