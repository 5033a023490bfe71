"""Unit tests for day rollover and load-time reconciliation."""

from datetime import date, datetime

import pytz

from fasting_water_tracker.domain.entries import DailyLog, FastingEntry, WaterEntry
from fasting_water_tracker.services.daily_log import DailyLogIndex
from fasting_water_tracker.services.event_stores import FastingEventStore, WaterEventStore
from fasting_water_tracker.services.rollover import RolloverController


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=pytz.UTC)


def _controller(clock, water=(), fasting=(), last_reset=None) -> RolloverController:
    return RolloverController(
        WaterEventStore("UTC", water),
        FastingEventStore(fasting),
        DailyLogIndex("UTC"),
        clock,
        "UTC",
        last_reset=last_reset,
    )


def test_first_reconcile_sets_marker(clock) -> None:
    """Test that an absent marker is set to now without finalizing anything."""
    controller = _controller(clock)

    crossed = controller.reconcile()

    if crossed:
        raise AssertionError("Expected no crossing without a marker")
    if controller.last_reset != clock.now:
        raise AssertionError(f"Expected marker at now, got {controller.last_reset}")
    if len(controller.index) != 0:
        raise AssertionError("Expected no logs to be created")


def test_same_day_reconcile_is_noop(clock) -> None:
    """Test that reconciling within the marker's day changes nothing."""
    marker = _utc(2024, 1, 15, 0, 5)
    controller = _controller(clock, last_reset=marker)

    if controller.reconcile():
        raise AssertionError("Expected no crossing on the same day")
    if controller.last_reset != marker:
        raise AssertionError("Expected the marker to be unchanged")


def test_crossing_finalizes_previous_day(clock) -> None:
    """Test that a day crossing recomputes the previous day's log from events."""
    water = [
        WaterEntry(amount_litres=0.5, timestamp=_utc(2024, 1, 14, 9, 0)),
        WaterEntry(amount_litres=0.75, timestamp=_utc(2024, 1, 14, 21, 0)),
        WaterEntry(amount_litres=0.25, timestamp=_utc(2024, 1, 15, 7, 0)),
    ]
    controller = _controller(clock, water=water, last_reset=_utc(2024, 1, 14, 9, 0))
    # A stale value the finalization must correct
    controller.index.upsert(date(2024, 1, 14), water_litres=0.5)

    crossed = controller.reconcile()

    if not crossed:
        raise AssertionError("Expected a day crossing")
    log = controller.index.query(date(2024, 1, 14))
    if log is None or log.water_intake_litres != 1.25:
        raise AssertionError("Expected the previous day finalized at 1.25 L")
    if controller.last_reset != clock.now:
        raise AssertionError("Expected the marker to move to now")
    if controller.today_total != 0.25:
        raise AssertionError(f"Expected today's total 0.25 L, got {controller.today_total}")


def test_crossing_skips_empty_previous_day(clock) -> None:
    """Test that an empty previous day does not get a log."""
    controller = _controller(clock, last_reset=_utc(2024, 1, 12, 9, 0))

    controller.reconcile()

    if len(controller.index) != 0:
        raise AssertionError("Expected no log for a day without entries")


def test_restore_persisted_logs(clock) -> None:
    """Test that persisted logs are restored as-is."""
    persisted = [DailyLog(id="kept", date=_utc(2024, 1, 10, 0, 0), water_intake_litres=1.8)]
    water = [WaterEntry(amount_litres=0.5, timestamp=_utc(2024, 1, 10, 9, 0))]
    controller = _controller(clock, water=water)

    rebuilt = controller.restore_or_rebuild(persisted)

    if rebuilt:
        raise AssertionError("Expected persisted logs to be restored")
    log = controller.index.query(date(2024, 1, 10))
    if log is None or log.id != "kept" or log.water_intake_litres != 1.8:
        raise AssertionError("Expected the persisted log to be kept unchanged")


def test_rebuild_when_logs_absent(clock) -> None:
    """Test that missing logs are rebuilt from the event stores."""
    water = [WaterEntry(amount_litres=0.5, timestamp=_utc(2024, 1, 10, 9, 0))]
    fasting = [
        FastingEntry(
            start_time=_utc(2024, 1, 10, 20, 0),
            end_time=_utc(2024, 1, 11, 12, 0),
            fasting_window_hours=16,
        )
    ]
    controller = _controller(clock, water=water, fasting=fasting)

    rebuilt = controller.restore_or_rebuild(None)

    if not rebuilt:
        raise AssertionError("Expected a rebuild")
    if not controller.index.has_water(date(2024, 1, 10)):
        raise AssertionError("Expected water on the 10th")
    if not controller.index.has_fasting(date(2024, 1, 11)):
        raise AssertionError("Expected the fast on its end day")
