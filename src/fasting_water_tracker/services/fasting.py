"""
Fasting session state machine.

Tracks the single active fast, records fasting history, and exposes the
elapsed/progress/remaining figures the display refreshes every tick.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime, timedelta
from uuid import UUID

from fasting_water_tracker.domain.entries import (
    HOURS_PER_DAY,
    PRESET_WINDOWS,
    FastingEntry,
    FastingState,
    FastingWindow,
    SessionState,
)
from fasting_water_tracker.services.daily_log import DailyLogIndex, anchor_time
from fasting_water_tracker.services.event_stores import FastingEventStore
from fasting_water_tracker.utils.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from fasting_water_tracker.utils.timezone_utils import local_day, make_timezone_aware

logger = logging.getLogger(__name__)

NOT_FASTING_LABEL = "Not fasting"
FASTING_COMPLETE_LABEL = "Fasting complete!"


def _split_seconds(interval: timedelta) -> tuple[int, int, int]:
    total = int(interval.total_seconds())
    return total // 3600, (total % 3600) // 60, total % 60


def validate_window(fasting_hours: int, eating_hours: int) -> None:
    """
    Check a custom fasting/eating split.

    Raises:
        ValidationError: If either part is not positive or they do not sum to 24.
    """
    if fasting_hours <= 0 or eating_hours <= 0:
        raise ValidationError(
            f"Window hours must be positive, got {fasting_hours}:{eating_hours}"
        )
    if fasting_hours + eating_hours != HOURS_PER_DAY:
        raise ValidationError(
            f"Fasting and eating hours must sum to {HOURS_PER_DAY}, "
            f"got {fasting_hours}+{eating_hours}"
        )


class FastingSession:
    """
    State machine over the active fast.

    States are IDLE and FASTING. Commands mutate the fasting store and the
    daily log index; queries are pure functions of the clock and the state.
    """

    def __init__(
        self,
        state: SessionState,
        store: FastingEventStore,
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

    def _aware(self, value: datetime) -> datetime:
        return make_timezone_aware(value, self.timezone, assume_local=True)

    @property
    def state(self) -> FastingState:
        return self.session.state

    # Commands

    def start(self) -> FastingEntry:
        """
        Start a fast now.

        Raises:
            InvalidStateError: If a fast is already active.
        """
        if self.session.is_fasting:
            raise InvalidStateError("A fast is already in progress")

        now = self._now()
        entry = FastingEntry(
            start_time=now, fasting_window_hours=self.session.fasting_window_hours
        )
        self.store.append(entry)
        self.index.upsert(now, fasting_entry=entry)

        self.session.is_fasting = True
        self.session.fasting_start_time = now

        logger.info(
            f"Started {self.session.fasting_window_hours}h fast at {now.isoformat()}"
        )
        return entry

    def stop(self) -> FastingEntry:
        """
        Stop the active fast now; the closed entry is logged on the stop day.

        Raises:
            InvalidStateError: If no fast is active.
        """
        if not self.session.is_fasting:
            raise InvalidStateError("No fast is in progress")

        open_entry = self.store.open_entry()
        if open_entry is None:
            raise InvalidStateError("Session is fasting but no open entry exists")

        now = self._now()
        closed = open_entry.close(now)
        self.store.replace(closed)
        self.index.upsert(now, fasting_entry=closed)

        self.session.is_fasting = False
        self.session.fasting_start_time = None

        logger.info(f"Stopped fast after {closed.formatted_duration}")
        return closed

    def set_window(self, fasting_hours: int, eating_hours: int) -> None:
        """
        Change the fasting/eating split used by new fasts and progress.

        Raises:
            ValidationError: If the split is invalid.
        """
        validate_window(fasting_hours, eating_hours)
        self.session.fasting_window_hours = fasting_hours
        self.session.eating_window_hours = eating_hours
        logger.info(f"Fasting window set to {fasting_hours}:{eating_hours}")

    def set_preset(self, name: str) -> FastingWindow:
        """
        Apply a named preset window ("16:8", "18:6", "20:4", "OMAD").

        Raises:
            ValidationError: If the preset is unknown.
        """
        window = PRESET_WINDOWS.get(name)
        if window is None:
            known = ", ".join(PRESET_WINDOWS)
            raise ValidationError(f"Unknown fasting preset '{name}' (known: {known})")
        self.set_window(window.fasting_hours, window.eating_hours)
        return window

    def update_historical_fast(
        self, entry_id: UUID, new_start: datetime, new_end: datetime | None
    ) -> FastingEntry:
        """
        Rewrite the start and end of any fasting entry.

        Every daily log referencing the entry receives the new snapshot. If the
        entry's anchor day changes, the old anchor day's log drops its
        reference and the new anchor day's log takes it.

        Args:
            entry_id: Id of the entry to edit.
            new_start: New start time.
            new_end: New end time; None keeps an open entry open.

        Returns:
            The updated entry.

        Raises:
            NotFoundError: If no entry has that id.
            ValidationError: If the times are inconsistent.
        """
        existing = self.store.get(entry_id)
        if existing is None:
            raise NotFoundError(f"Fasting entry not found: {entry_id}")

        new_start = self._aware(new_start)
        new_end = self._aware(new_end) if new_end is not None else None

        if new_end is not None and new_end < new_start:
            raise ValidationError("Fast end time cannot be before its start time")
        if new_end is None and not existing.is_open:
            raise ValidationError("A closed fast cannot be reopened")

        updated = existing.with_times(new_start, new_end)
        self.store.replace(updated)

        for log in self.index.referencing(entry_id):
            log.fasting_entry = updated

        old_day = local_day(anchor_time(existing), self.timezone)
        new_day = local_day(anchor_time(updated), self.timezone)
        if old_day != new_day:
            old_log = self.index.query(old_day)
            if old_log is not None and old_log.fasting_entry is not None:
                if old_log.fasting_entry.id == entry_id:
                    self.index.clear_fasting(old_day)
            self.index.upsert(new_day, fasting_entry=updated)
            logger.info(
                f"Moved fast {entry_id} from {old_day.isoformat()} to {new_day.isoformat()}"
            )

        if existing.is_open:
            if updated.is_open:
                self.session.fasting_start_time = new_start
            else:
                self.session.is_fasting = False
                self.session.fasting_start_time = None
                logger.info(f"Active fast {entry_id} closed by edit")

        logger.info(f"Updated fast {entry_id}")
        return updated

    def update_active_start(self, new_start: datetime) -> FastingEntry:
        """
        Move the start time of the live session.

        Raises:
            InvalidStateError: If no fast is active.
            ValidationError: If the new start lies in the future.
        """
        open_entry = self.store.open_entry()
        if not self.session.is_fasting or open_entry is None:
            raise InvalidStateError("No fast is in progress")
        if self._aware(new_start) > self._now():
            raise ValidationError("Fast start time cannot be in the future")
        return self.update_historical_fast(open_entry.id, new_start, None)

    def add_historical_fast(
        self, anchor: datetime | date, start: datetime, end: datetime
    ) -> FastingEntry:
        """
        Record a completed fast that was not tracked live.

        Args:
            anchor: Date whose daily log receives the entry.
            start: Fast start.
            end: Fast end.

        Raises:
            ValidationError: If end precedes start.
        """
        start = self._aware(start)
        end = self._aware(end)
        if end < start:
            raise ValidationError("Fast end time cannot be before its start time")

        entry = FastingEntry(
            start_time=start,
            end_time=end,
            fasting_window_hours=self.session.fasting_window_hours,
        )
        self.store.append(entry)
        self.index.upsert(anchor, fasting_entry=entry)

        logger.info(f"Added historical fast on {local_day(anchor, self.timezone).isoformat()}")
        return entry

    # Queries

    def elapsed(self) -> timedelta | None:
        start = self.session.fasting_start_time
        if not self.session.is_fasting or start is None:
            return None
        return self._now() - start

    def progress(self) -> float:
        elapsed = self.elapsed()
        if elapsed is None:
            return 0.0
        ratio = elapsed.total_seconds() / self.session.window_seconds
        return min(max(ratio, 0.0), 1.0)

    def end_time(self) -> datetime | None:
        start = self.session.fasting_start_time
        if not self.session.is_fasting or start is None:
            return None
        return start + timedelta(seconds=self.session.window_seconds)

    def remaining(self) -> timedelta | None:
        """Time until the window ends, floored at zero; None when idle."""
        end = self.end_time()
        if end is None:
            return None
        return max(end - self._now(), timedelta(0))

    def is_complete(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= timedelta(0)

    def format_elapsed(self) -> str:
        elapsed = self.elapsed()
        if elapsed is None:
            return "00:00:00"
        hours, minutes, seconds = _split_seconds(max(elapsed, timedelta(0)))
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    def format_remaining(self) -> str:
        remaining = self.remaining()
        if remaining is None:
            return NOT_FASTING_LABEL
        if remaining <= timedelta(0):
            return FASTING_COMPLETE_LABEL

        hours, minutes, seconds = _split_seconds(remaining)
        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"
