"""
Water accumulator.

Today's intake is always recomputed from the water event store rather than
kept as a running total.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime

from fasting_water_tracker.domain.entries import SessionState, WaterEntry
from fasting_water_tracker.services.daily_log import DailyLogIndex
from fasting_water_tracker.services.event_stores import WaterEventStore
from fasting_water_tracker.utils.exceptions import ValidationError
from fasting_water_tracker.utils.timezone_utils import local_day, make_timezone_aware

logger = logging.getLogger(__name__)

ML_PER_LITRE = 1000.0


@dataclass(frozen=True)
class WaterUpdate:
    """Outcome of a water addition, including the goal edge crossing."""

    entry: WaterEntry
    total_litres: float
    previous_progress: float
    progress: float

    @property
    def goal_reached(self) -> bool:
        return self.previous_progress < 1.0 <= self.progress


class WaterAccumulator:
    """Water intake commands and today's totals."""

    def __init__(
        self,
        state: SessionState,
        store: WaterEventStore,
        index: DailyLogIndex,
        clock: Callable[[], datetime],
        timezone: str,
    ) -> None:
        self.session = state
        self.store = store
        self.index = index
        self.clock = clock
        self.timezone = timezone

    def _now(self) -> datetime:
        return make_timezone_aware(self.clock(), self.timezone)

    def today(self) -> date:
        return local_day(self._now(), self.timezone)

    def _ratio(self, total: float) -> float:
        return min(max(total / self.session.daily_target_litres, 0.0), 1.0)

    def add(self, amount_ml: float) -> WaterUpdate:
        """
        Record a water addition now.

        Args:
            amount_ml: Amount in millilitres.

        Returns:
            The new entry with today's total and progress before and after.

        Raises:
            ValidationError: If the amount is not a positive finite number.
        """
        if not math.isfinite(amount_ml) or amount_ml <= 0:
            raise ValidationError(f"Water amount must be positive, got {amount_ml} ml")

        now = self._now()
        today = local_day(now, self.timezone)
        previous_progress = self._ratio(self.store.total_on(today))

        entry = WaterEntry(amount_litres=amount_ml / ML_PER_LITRE, timestamp=now)
        self.store.append(entry)

        total = self.store.total_on(today)
        self.index.upsert(today, water_litres=total)

        logger.info(f"Added {amount_ml:g} ml of water, today's total {total:.3f} L")
        return WaterUpdate(
            entry=entry,
            total_litres=total,
            previous_progress=previous_progress,
            progress=self._ratio(total),
        )

    def current_day_total(self, day: datetime | date | None = None) -> float:
        """Sum of entries on a local day (today by default), in litres."""
        target_day = self.today() if day is None else local_day(day, self.timezone)
        return self.store.total_on(target_day)

    def progress(self) -> float:
        return self._ratio(self.current_day_total())

    def reset_today(self) -> int:
        """
        Remove today's entries and zero today's log.

        Returns:
            Number of removed entries.
        """
        today = self.today()
        removed = self.store.remove_on(today)
        if today in self.index:
            self.index.upsert(today, water_litres=0.0)

        logger.info(f"Reset today's water, removed {removed} entries")
        return removed

    def set_historical_water_intake(self, value: datetime | date, litres: float) -> None:
        """
        Overwrite the water total of a day's log.

        No water entry is created, so a later rebuild from events does not
        reproduce this value.

        Raises:
            ValidationError: If litres is negative or not finite.
        """
        if not math.isfinite(litres) or litres < 0:
            raise ValidationError(f"Water intake cannot be negative, got {litres} L")

        day = local_day(value, self.timezone)
        self.index.upsert(day, water_litres=litres)
        logger.info(f"Set water intake for {day.isoformat()} to {litres:.3f} L")

    def set_daily_target(self, litres: float) -> None:
        """
        Raises:
            ValidationError: If the target is not a positive finite number.
        """
        if not math.isfinite(litres) or litres <= 0:
            raise ValidationError(f"Daily target must be positive, got {litres} L")
        self.session.daily_target_litres = litres
        logger.info(f"Daily water target set to {litres:.2f} L")
