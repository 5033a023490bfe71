"""
Daily log index.

Maintains one DailyLog per local calendar day, either incrementally through
upserts or by rebuilding the whole table from the event stores.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime
from uuid import UUID

from fasting_water_tracker.domain.entries import (
    DailyLog,
    FastingEntry,
    FastingStatus,
    WaterEntry,
)
from fasting_water_tracker.utils.hashing import generate_log_id
from fasting_water_tracker.utils.timezone_utils import day_start, local_day

logger = logging.getLogger(__name__)


class DailyLogIndex:
    """
    Day-keyed table of daily logs.

    Keys are local calendar dates in the configured time zone; no two logs
    ever share a key.
    """

    def __init__(self, timezone: str) -> None:
        """
        Initialize an empty index.

        Args:
            timezone: Time zone used to truncate instants to local days.
        """
        self.timezone = timezone
        self._logs: dict[date, DailyLog] = {}

    def __len__(self) -> int:
        return len(self._logs)

    def __contains__(self, value: datetime | date) -> bool:
        return self._key(value) in self._logs

    def _key(self, value: datetime | date) -> date:
        return local_day(value, self.timezone)

    def _new_log(self, day: date) -> DailyLog:
        return DailyLog(id=generate_log_id(day), date=day_start(day, self.timezone))

    def upsert(
        self,
        value: datetime | date,
        fasting_entry: FastingEntry | None = None,
        water_litres: float | None = None,
    ) -> DailyLog:
        """
        Create or update the log for a day.

        Only the provided fields are applied; absent fields keep their current
        value (or the defaults for a new log).

        Args:
            value: Any instant or date on the target day.
            fasting_entry: Fasting snapshot to attach.
            water_litres: Absolute water total for the day.

        Returns:
            The stored log.
        """
        day = self._key(value)
        log = self._logs.get(day)
        if log is None:
            log = self._new_log(day)
            self._logs[day] = log
            logger.debug(f"Created daily log for {day.isoformat()}")

        if fasting_entry is not None:
            log.fasting_entry = fasting_entry
        if water_litres is not None:
            log.water_intake_litres = max(water_litres, 0.0)

        return log

    def query(self, value: datetime | date) -> DailyLog | None:
        """Exact local-day lookup."""
        return self._logs.get(self._key(value))

    def has_fasting(self, value: datetime | date) -> bool:
        log = self.query(value)
        return log is not None and log.fasting_entry is not None

    def has_water(self, value: datetime | date) -> bool:
        log = self.query(value)
        return log is not None and log.water_intake_litres > 0

    def referencing(self, entry_id: UUID) -> list[DailyLog]:
        """Logs whose fasting snapshot refers to the given entry."""
        return [
            log
            for log in self.logs()
            if log.fasting_entry is not None and log.fasting_entry.id == entry_id
        ]

    def clear_fasting(self, value: datetime | date) -> None:
        log = self.query(value)
        if log is not None:
            log.fasting_entry = None

    def logs(self) -> list[DailyLog]:
        """All logs sorted by date ascending."""
        return [self._logs[day] for day in sorted(self._logs)]

    def load(self, logs: Iterable[DailyLog]) -> None:
        """
        Replace the index content with persisted logs.

        Duplicate day keys are collapsed, the later record winning.
        """
        self._logs = {}
        for log in logs:
            day = self._key(log.date)
            if day in self._logs:
                logger.warning(f"Duplicate daily log for {day.isoformat()}, keeping the later one")
            self._logs[day] = log

        logger.info(f"Loaded {len(self._logs)} daily logs")

    def snapshot(self) -> dict[date, DailyLog]:
        return {day: log.model_copy() for day, log in self._logs.items()}

    def restore(self, snapshot: dict[date, DailyLog]) -> None:
        self._logs = dict(snapshot)

    def rebuild_from_events(
        self,
        water_entries: Iterable[WaterEntry],
        fasting_entries: Iterable[FastingEntry],
    ) -> list[DailyLog]:
        """
        Rebuild the whole index from raw events.

        Water is summed per local day. Each fasting entry is attached to the
        day of its end time if closed, else the day of its start time; later
        entries overwrite earlier ones landing on the same day.

        Args:
            water_entries: All water entries.
            fasting_entries: Fasting history in insertion order.

        Returns:
            Rebuilt logs sorted by date ascending.
        """
        self._logs = {}

        water_count = 0
        for entry in water_entries:
            log = self.upsert(entry.timestamp)
            log.water_intake_litres += entry.amount_litres
            water_count += 1

        fasting_count = 0
        for fasting in fasting_entries:
            self.upsert(anchor_time(fasting), fasting_entry=fasting)
            fasting_count += 1

        logger.info(
            f"Rebuilt {len(self._logs)} daily logs from {water_count} water "
            f"and {fasting_count} fasting entries"
        )
        return self.logs()


def anchor_time(entry: FastingEntry) -> datetime:
    """Instant whose local day a fasting entry belongs to."""
    if entry.status is FastingStatus.CLOSED and entry.end_time is not None:
        return entry.end_time
    return entry.start_time
