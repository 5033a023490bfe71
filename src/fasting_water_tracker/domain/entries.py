"""
Fasting and water domain models.

This module defines the event records (water additions, fasting sessions),
the per-day derived log, and the session configuration that the engine
tracks. Persisted field names are camelCase through pydantic aliases.
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import NamedTuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# The DailyLog field named "date" shadows the type inside its class body.
CalendarDay = date

SECONDS_PER_HOUR = 3600
HOURS_PER_DAY = 24


class FastingStatus(str, Enum):
    """Open/closed state of a fasting entry."""

    OPEN = "open"
    CLOSED = "closed"


class FastingState(str, Enum):
    """States of the fasting session state machine."""

    IDLE = "idle"
    FASTING = "fasting"


class FastingWindow(NamedTuple):
    """A fasting/eating split of the day."""

    fasting_hours: int
    eating_hours: int
    name: str


PRESET_WINDOWS: dict[str, FastingWindow] = {
    "16:8": FastingWindow(16, 8, "16:8"),
    "18:6": FastingWindow(18, 6, "18:6"),
    "20:4": FastingWindow(20, 4, "20:4"),
    "OMAD": FastingWindow(23, 1, "OMAD (23:1)"),
}


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WaterEntry(_Record):
    """A single water addition. Immutable once created."""

    id: UUID = Field(default_factory=uuid4, description="Opaque unique identifier")
    amount_litres: float = Field(gt=0, description="Amount of water in litres")
    timestamp: datetime = Field(description="Time of the addition (timezone-aware)")

    model_config = ConfigDict(frozen=True)


class FastingEntry(_Record):
    """
    A fasting session.

    An entry without end_time is open (the active fast). Edits produce a new
    instance through model_copy, so snapshots held by daily logs never change
    underneath them.
    """

    id: UUID = Field(default_factory=uuid4, description="Opaque unique identifier")
    start_time: datetime = Field(description="Fast start (timezone-aware)")
    end_time: datetime | None = Field(None, description="Fast end, absent while open")
    fasting_window_hours: int = Field(gt=0, description="Target window in hours")

    model_config = ConfigDict(frozen=True)

    @property
    def status(self) -> FastingStatus:
        return FastingStatus.OPEN if self.end_time is None else FastingStatus.CLOSED

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def duration(self, now: datetime | None = None) -> timedelta | None:
        """Length of the fast; open entries are measured up to now."""
        end = self.end_time or now
        if end is None:
            return None
        return max(end - self.start_time, timedelta(0))

    @property
    def formatted_duration(self) -> str:
        """Duration as "Hh Mm", or "Ongoing" for an open entry."""
        duration = self.duration()
        if duration is None:
            return "Ongoing"
        total_minutes = int(duration.total_seconds()) // 60
        return f"{total_minutes // 60}h {total_minutes % 60}m"

    def close(self, end_time: datetime) -> "FastingEntry":
        return self.model_copy(update={"end_time": end_time})

    def with_times(self, start_time: datetime, end_time: datetime | None) -> "FastingEntry":
        return self.model_copy(update={"start_time": start_time, "end_time": end_time})


class DailyLog(_Record):
    """
    Per-day summary combining the water total and a fasting snapshot.

    Keyed uniquely by date (local midnight of the summarized day).
    """

    id: str = Field(description="Deterministic identifier derived from the day")
    date: datetime = Field(description="Local midnight of the day (timezone-aware)")
    water_intake_litres: float = Field(0.0, ge=0, description="Water total in litres")
    fasting_entry: FastingEntry | None = Field(
        None, description="Snapshot of the fasting entry attached to this day"
    )

    @property
    def day(self) -> CalendarDay:
        return self.date.date()

    def water_goal_met(self, target_litres: float) -> bool:
        return self.water_intake_litres >= target_litres


class SessionState(_Record):
    """Live session flags and user settings."""

    is_fasting: bool = False
    fasting_start_time: datetime | None = None
    fasting_window_hours: int = Field(16, gt=0)
    eating_window_hours: int = Field(8, gt=0)
    daily_target_litres: float = Field(2.0, gt=0)

    @property
    def state(self) -> FastingState:
        return FastingState.FASTING if self.is_fasting else FastingState.IDLE

    @property
    def window_seconds(self) -> int:
        return self.fasting_window_hours * SECONDS_PER_HOUR
