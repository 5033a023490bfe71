"""
Day rollover and reconciliation.

Detects local-day boundary crossings lazily, before commands and "today"
queries, and finalizes the previous day's log from the water events.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from fasting_water_tracker.domain.entries import DailyLog
from fasting_water_tracker.services.daily_log import DailyLogIndex
from fasting_water_tracker.services.event_stores import FastingEventStore, WaterEventStore
from fasting_water_tracker.utils.timezone_utils import local_day, make_timezone_aware

logger = logging.getLogger(__name__)


class RolloverController:
    """
    Lazy day-boundary check over the water store and the daily log index.

    last_reset is the marker persisted as lastWaterResetDate.
    """

    def __init__(
        self,
        water_store: WaterEventStore,
        fasting_store: FastingEventStore,
        index: DailyLogIndex,
        clock: Callable[[], datetime],
        timezone: str,
        last_reset: datetime | None = None,
    ) -> None:
        self.water_store = water_store
        self.fasting_store = fasting_store
        self.index = index
        self.clock = clock
        self.timezone = timezone
        self.last_reset = last_reset
        self.today_total = 0.0

    def reconcile(self) -> bool:
        """
        Finalize the marker's day if it is no longer today.

        Always recomputes today's total from the water entries.

        Returns:
            True if a day boundary was crossed.
        """
        now = make_timezone_aware(self.clock(), self.timezone)
        today = local_day(now, self.timezone)
        crossed = False

        if self.last_reset is None:
            self.last_reset = now
        else:
            previous_day = local_day(self.last_reset, self.timezone)
            if previous_day != today:
                crossed = True
                entries = self.water_store.entries_on(previous_day)
                if entries or previous_day in self.index:
                    total = self.water_store.total_on(previous_day)
                    self.index.upsert(previous_day, water_litres=total)
                    logger.info(
                        f"Finalized {previous_day.isoformat()} with {total:.3f} L of water"
                    )
                self.last_reset = now

        self.today_total = self.water_store.total_on(today)
        return crossed

    def restore_or_rebuild(self, persisted_logs: list[DailyLog] | None) -> bool:
        """
        Restore persisted logs, or rebuild them from events when absent.

        Returns:
            True if the index was rebuilt.
        """
        if persisted_logs is not None:
            self.index.load(persisted_logs)
            return False

        logger.info("No persisted daily logs, rebuilding from events")
        self.index.rebuild_from_events(self.water_store.entries, self.fasting_store.entries)
        return True
