"""
Tracker engine.

The engine is the single owner of all mutable tracker state: the event
stores, the daily log index, the session settings and the rollover marker.
Presentation code holds a reference to one engine and calls its commands and
queries; every call runs under the engine lock.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, TypeVar
from uuid import UUID

import pytz

from fasting_water_tracker.domain.entries import (
    DailyLog,
    FastingEntry,
    FastingState,
    FastingWindow,
    SessionState,
    WaterEntry,
)
from fasting_water_tracker.infrastructure.storage.repository import (
    PersistedState,
    TrackerStateRepository,
)
from fasting_water_tracker.services.daily_log import DailyLogIndex
from fasting_water_tracker.services.event_stores import FastingEventStore, WaterEventStore
from fasting_water_tracker.services.fasting import FastingSession
from fasting_water_tracker.services.rollover import RolloverController
from fasting_water_tracker.services.water import WaterAccumulator, WaterUpdate
from fasting_water_tracker.utils.exceptions import PersistenceError, TrackerError
from fasting_water_tracker.utils.parameters import TrackerConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]
GoalListener = Callable[[WaterUpdate], None]


def system_clock() -> datetime:
    return datetime.now(pytz.utc)


@dataclass(frozen=True)
class DisplaySnapshot:
    """Values the display refreshes on every tick."""

    taken_at: datetime
    state: FastingState
    elapsed: timedelta | None
    elapsed_label: str
    progress: float
    remaining: timedelta | None
    remaining_label: str
    end_time: datetime | None
    fasting_window_hours: int
    eating_window_hours: int
    water_total_litres: float
    water_target_litres: float
    water_progress: float


class TrackerEngine:
    """
    Owned aggregate behind the collaborator-facing API.

    Commands are atomic with respect to each other and to tick reads. A
    command either applies completely and is saved, or leaves the state
    exactly as it was.
    """

    session: SessionState
    water_store: WaterEventStore
    fasting_store: FastingEventStore
    index: DailyLogIndex
    fasting: FastingSession
    water: WaterAccumulator
    rollover: RolloverController

    def __init__(
        self,
        config: TrackerConfig,
        repository: TrackerStateRepository | None = None,
        clock: Clock = system_clock,
    ) -> None:
        """
        Initialize the engine and load persisted state.

        Args:
            config: Engine defaults and time zone.
            repository: State repository; None keeps state in memory only.
            clock: Source of the current instant.
        """
        self.config = config
        self.timezone = config.timezone
        self.repository = repository
        self.clock = clock
        self._lock = threading.RLock()
        self._goal_listeners: list[GoalListener] = []

        self.load()

    # Persistence

    def load(self) -> None:
        """
        Load persisted state, restoring or rebuilding the daily log index.

        A store that cannot be read leaves the engine on its defaults.
        """
        with self._lock:
            persisted = PersistedState()
            if self.repository is not None:
                try:
                    persisted = self.repository.load()
                except PersistenceError as e:
                    logger.error(f"Failed to load tracker state, using defaults: {e}")

            self._apply_persisted(persisted)
            self.rollover.restore_or_rebuild(persisted.daily_logs)
            self.rollover.reconcile()
            logger.info(
                f"Loaded {len(self.water_store)} water entries, "
                f"{len(self.fasting_store)} fasts, {len(self.index)} daily logs"
            )

    def _apply_persisted(self, persisted: PersistedState) -> None:
        session = SessionState(
            fasting_window_hours=persisted.fasting_window_hours
            or self.config.default_fasting_window_hours,
            eating_window_hours=persisted.eating_window_hours
            or self.config.default_eating_window_hours,
            daily_target_litres=persisted.daily_target or self.config.default_daily_target_litres,
        )

        fasting_store = FastingEventStore(persisted.fasting_history)
        open_entries = fasting_store.open_entries()
        if len(open_entries) > 1:
            logger.warning(f"Found {len(open_entries)} open fasts, treating the latest as active")
        active = fasting_store.open_entry()
        if active is not None:
            session.is_fasting = True
            session.fasting_start_time = active.start_time
        if persisted.is_fasting is not None and persisted.is_fasting != session.is_fasting:
            logger.warning("Stored fasting flag disagrees with fasting history, using history")

        self.session = session
        self.water_store = WaterEventStore(self.timezone, persisted.water_entries)
        self.fasting_store = fasting_store
        self.index = DailyLogIndex(self.timezone)

        self.fasting = FastingSession(
            self.session, self.fasting_store, self.index, self.clock, self.timezone
        )
        self.water = WaterAccumulator(
            self.session, self.water_store, self.index, self.clock, self.timezone
        )
        self.rollover = RolloverController(
            self.water_store,
            self.fasting_store,
            self.index,
            self.clock,
            self.timezone,
            last_reset=persisted.last_water_reset_date,
        )

    def _to_persisted(self) -> PersistedState:
        return PersistedState(
            fasting_window_hours=self.session.fasting_window_hours,
            eating_window_hours=self.session.eating_window_hours,
            fasting_start_time=self.session.fasting_start_time,
            is_fasting=self.session.is_fasting,
            daily_water_intake=self.water.current_day_total(),
            daily_target=self.session.daily_target_litres,
            water_entries=self.water_store.entries,
            fasting_history=self.fasting_store.entries,
            daily_logs=self.index.logs(),
            last_water_reset_date=self.rollover.last_reset,
        )

    def save(self) -> bool:
        """
        Save state; failures are logged and swallowed.

        Returns:
            True if the state was written.
        """
        if self.repository is None:
            return False
        with self._lock:
            try:
                self.repository.save(self._to_persisted())
                return True
            except PersistenceError as e:
                logger.error(f"Failed to save tracker state: {e}")
                return False

    # Command plumbing

    def _capture(self) -> dict[str, Any]:
        return {
            "session": self.session.model_dump(),
            "water": self.water_store.entries,
            "fasting": self.fasting_store.entries,
            "logs": self.index.snapshot(),
            "last_reset": self.rollover.last_reset,
        }

    def _restore(self, captured: dict[str, Any]) -> None:
        # Components share the session object, so it is restored in place.
        for name, value in captured["session"].items():
            setattr(self.session, name, value)
        self.water_store.restore(captured["water"])
        self.fasting_store.restore(captured["fasting"])
        self.index.restore(captured["logs"])
        self.rollover.last_reset = captured["last_reset"]

    def _run_command(self, name: str, command: Callable[[], T]) -> T:
        with self._lock:
            captured = self._capture()
            try:
                self.rollover.reconcile()
                result = command()
            except TrackerError as e:
                logger.warning(f"Command '{name}' rejected: {e}")
                self._restore(captured)
                raise
            except Exception:
                logger.exception(f"Command '{name}' failed, state restored")
                self._restore(captured)
                raise
            self.save()
            return result

    def _today_query(self, query: Callable[[], T]) -> T:
        with self._lock:
            self.rollover.reconcile()
            return query()

    # Listeners

    def add_goal_listener(self, listener: GoalListener) -> None:
        """Register a callable notified when today's water goal is first reached."""
        with self._lock:
            self._goal_listeners.append(listener)

    def _notify_goal(self, update: WaterUpdate) -> None:
        for listener in list(self._goal_listeners):
            try:
                listener(update)
            except Exception:
                logger.exception("Water goal listener failed")

    # Fasting commands

    def start_fasting(self) -> FastingEntry:
        return self._run_command("start_fasting", self.fasting.start)

    def stop_fasting(self) -> FastingEntry:
        return self._run_command("stop_fasting", self.fasting.stop)

    def set_fasting_window(self, fasting_hours: int, eating_hours: int) -> None:
        self._run_command(
            "set_fasting_window", lambda: self.fasting.set_window(fasting_hours, eating_hours)
        )

    def set_fasting_preset(self, name: str) -> FastingWindow:
        return self._run_command("set_fasting_preset", lambda: self.fasting.set_preset(name))

    def update_historical_fast(
        self, entry_id: UUID, new_start: datetime, new_end: datetime | None
    ) -> FastingEntry:
        return self._run_command(
            "update_historical_fast",
            lambda: self.fasting.update_historical_fast(entry_id, new_start, new_end),
        )

    def update_active_fast_start(self, new_start: datetime) -> FastingEntry:
        return self._run_command(
            "update_active_fast_start", lambda: self.fasting.update_active_start(new_start)
        )

    def add_historical_fast(
        self, anchor: datetime | date, start: datetime, end: datetime
    ) -> FastingEntry:
        return self._run_command(
            "add_historical_fast", lambda: self.fasting.add_historical_fast(anchor, start, end)
        )

    # Water commands

    def add_water(self, amount_ml: float) -> WaterUpdate:
        with self._lock:
            update = self._run_command("add_water", lambda: self.water.add(amount_ml))
            if update.goal_reached:
                logger.info("Daily water goal reached")
                self._notify_goal(update)
            return update

    def reset_daily_water(self) -> int:
        return self._run_command("reset_daily_water", self.water.reset_today)

    def set_historical_water_intake(self, value: datetime | date, litres: float) -> None:
        self._run_command(
            "set_historical_water_intake",
            lambda: self.water.set_historical_water_intake(value, litres),
        )

    def set_daily_target(self, litres: float) -> None:
        self._run_command("set_daily_target", lambda: self.water.set_daily_target(litres))

    def rebuild_daily_logs(self) -> list[DailyLog]:
        """Discard the index and rebuild it from the event stores."""
        return self._run_command(
            "rebuild_daily_logs",
            lambda: self.index.rebuild_from_events(
                self.water_store.entries, self.fasting_store.entries
            ),
        )

    # Queries

    @property
    def is_fasting(self) -> bool:
        return self.session.is_fasting

    @property
    def state(self) -> FastingState:
        return self.session.state

    def elapsed(self) -> timedelta | None:
        with self._lock:
            return self.fasting.elapsed()

    def progress(self) -> float:
        with self._lock:
            return self.fasting.progress()

    def remaining(self) -> timedelta | None:
        with self._lock:
            return self.fasting.remaining()

    def end_time(self) -> datetime | None:
        with self._lock:
            return self.fasting.end_time()

    def today(self) -> date:
        """Current local calendar day in the configured time zone."""
        return self._today_query(self.water.today)

    def current_day_water_total(self) -> float:
        return self._today_query(self.water.current_day_total)

    def water_progress(self) -> float:
        return self._today_query(self.water.progress)

    def get_daily_log(self, value: datetime | date) -> DailyLog | None:
        return self._today_query(lambda: self.index.query(value))

    def has_fasting(self, value: datetime | date) -> bool:
        return self._today_query(lambda: self.index.has_fasting(value))

    def has_water(self, value: datetime | date) -> bool:
        return self._today_query(lambda: self.index.has_water(value))

    def daily_logs(self) -> list[DailyLog]:
        return self._today_query(self.index.logs)

    def fasting_history(self) -> list[FastingEntry]:
        with self._lock:
            return self.fasting_store.entries

    def water_entries(self) -> list[WaterEntry]:
        with self._lock:
            return self.water_store.entries

    def snapshot(self) -> DisplaySnapshot:
        """Read every display value at one instant; never mutates stores."""
        with self._lock:
            return DisplaySnapshot(
                taken_at=self.clock(),
                state=self.session.state,
                elapsed=self.fasting.elapsed(),
                elapsed_label=self.fasting.format_elapsed(),
                progress=self.fasting.progress(),
                remaining=self.fasting.remaining(),
                remaining_label=self.fasting.format_remaining(),
                end_time=self.fasting.end_time(),
                fasting_window_hours=self.session.fasting_window_hours,
                eating_window_hours=self.session.eating_window_hours,
                water_total_litres=self.water.current_day_total(),
                water_target_litres=self.session.daily_target_litres,
                water_progress=self.water.progress(),
            )
