"""Unit tests for the daily log index."""

from datetime import date, datetime

import pytz

from fasting_water_tracker.domain.entries import DailyLog, FastingEntry, FastingStatus, WaterEntry
from fasting_water_tracker.services.daily_log import DailyLogIndex, anchor_time
from fasting_water_tracker.utils.hashing import generate_log_id


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=pytz.UTC)


def test_upsert_creates_single_log_per_day() -> None:
    """Test that repeated upserts on one day update the same record."""
    index = DailyLogIndex("UTC")

    first = index.upsert(_utc(2024, 1, 15, 9, 0), water_litres=0.5)
    second = index.upsert(_utc(2024, 1, 15, 22, 30), water_litres=1.25)

    if first is not second:
        raise AssertionError("Expected the same log object for one day")
    if len(index) != 1:
        raise AssertionError(f"Expected 1 log, got {len(index)}")
    if first.water_intake_litres != 1.25:
        raise AssertionError(f"Expected 1.25 L, got {first.water_intake_litres}")
    if first.date != _utc(2024, 1, 15, 0, 0):
        raise AssertionError(f"Expected local midnight key, got {first.date}")
    if first.id != generate_log_id(date(2024, 1, 15)):
        raise AssertionError("Expected deterministic log id")


def test_upsert_keeps_absent_fields() -> None:
    """Test that an upsert only applies the fields it is given."""
    index = DailyLogIndex("UTC")
    entry = FastingEntry(start_time=_utc(2024, 1, 15, 8, 0), fasting_window_hours=16)

    index.upsert(date(2024, 1, 15), water_litres=0.75)
    log = index.upsert(date(2024, 1, 15), fasting_entry=entry)

    if log.water_intake_litres != 0.75:
        raise AssertionError(f"Water total was overwritten: {log.water_intake_litres}")
    if log.fasting_entry != entry:
        raise AssertionError("Expected fasting snapshot to be attached")
    if not index.has_fasting(date(2024, 1, 15)) or not index.has_water(date(2024, 1, 15)):
        raise AssertionError("Expected both fasting and water on the day")


def test_has_water_false_for_zero_total() -> None:
    """Test that a log with zero water does not count as having water."""
    index = DailyLogIndex("UTC")
    index.upsert(date(2024, 1, 15), water_litres=0.0)

    if index.has_water(date(2024, 1, 15)):
        raise AssertionError("Expected has_water to be False for a zero total")
    if index.query(date(2024, 1, 16)) is not None:
        raise AssertionError("Expected no log for a day that was never touched")


def test_local_day_keying() -> None:
    """Test that instants are truncated to the configured zone's day."""
    index = DailyLogIndex("America/Santiago")

    # 02:00 UTC on the 15th is 23:00 on the 14th in Santiago (UTC-3 in January)
    log = index.upsert(_utc(2024, 1, 15, 2, 0), water_litres=0.25)

    if log.day != date(2024, 1, 14):
        raise AssertionError(f"Expected day 2024-01-14, got {log.day}")
    if index.query(date(2024, 1, 14)) is not log:
        raise AssertionError("Expected lookup by local date to find the log")


def test_rebuild_from_events() -> None:
    """Test rebuilding water sums and fasting anchors from raw events."""
    index = DailyLogIndex("UTC")
    water = [
        WaterEntry(amount_litres=0.25, timestamp=_utc(2024, 1, 15, 9, 0)),
        WaterEntry(amount_litres=0.5, timestamp=_utc(2024, 1, 15, 18, 0)),
        WaterEntry(amount_litres=1.0, timestamp=_utc(2024, 1, 16, 7, 0)),
    ]
    closed = FastingEntry(
        start_time=_utc(2024, 1, 15, 20, 0),
        end_time=_utc(2024, 1, 16, 12, 0),
        fasting_window_hours=16,
    )
    open_fast = FastingEntry(start_time=_utc(2024, 1, 17, 20, 0), fasting_window_hours=16)

    logs = index.rebuild_from_events(water, [closed, open_fast])

    if [log.day for log in logs] != [date(2024, 1, 15), date(2024, 1, 16), date(2024, 1, 17)]:
        raise AssertionError(f"Unexpected days: {[log.day for log in logs]}")
    if logs[0].water_intake_litres != 0.75:
        raise AssertionError(f"Expected 0.75 L on the 15th, got {logs[0].water_intake_litres}")
    if logs[0].fasting_entry is not None:
        raise AssertionError("Closed fast must anchor on its end day, not its start day")
    if logs[1].fasting_entry != closed:
        raise AssertionError("Expected closed fast on the 16th")
    if logs[2].fasting_entry != open_fast or logs[2].water_intake_litres != 0.0:
        raise AssertionError("Expected open fast on its start day with no water")


def test_rebuild_later_fast_wins_same_day() -> None:
    """Test that the later fasting entry overwrites an earlier one on the same day."""
    index = DailyLogIndex("UTC")
    earlier = FastingEntry(
        start_time=_utc(2024, 1, 15, 0, 0),
        end_time=_utc(2024, 1, 15, 6, 0),
        fasting_window_hours=16,
    )
    later = FastingEntry(
        start_time=_utc(2024, 1, 15, 7, 0),
        end_time=_utc(2024, 1, 15, 23, 0),
        fasting_window_hours=16,
    )

    logs = index.rebuild_from_events([], [earlier, later])

    if len(logs) != 1 or logs[0].fasting_entry != later:
        raise AssertionError("Expected the later entry to win")


def test_rebuild_is_idempotent() -> None:
    """Test that rebuilding twice from the same events yields identical logs."""
    index = DailyLogIndex("UTC")
    water = [WaterEntry(amount_litres=0.5, timestamp=_utc(2024, 1, 15, 9, 0))]
    fasting = [
        FastingEntry(
            start_time=_utc(2024, 1, 14, 20, 0),
            end_time=_utc(2024, 1, 15, 12, 0),
            fasting_window_hours=16,
        )
    ]

    first = [log.model_dump() for log in index.rebuild_from_events(water, fasting)]
    second = [log.model_dump() for log in index.rebuild_from_events(water, fasting)]

    if first != second:
        raise AssertionError("Expected identical logs from repeated rebuilds")


def test_load_collapses_duplicate_days() -> None:
    """Test that duplicate persisted logs for one day keep the later record."""
    index = DailyLogIndex("UTC")
    day = _utc(2024, 1, 15, 0, 0)
    logs = [
        DailyLog(id="a", date=day, water_intake_litres=0.5),
        DailyLog(id="b", date=day, water_intake_litres=1.5),
    ]

    index.load(logs)

    if len(index) != 1:
        raise AssertionError(f"Expected 1 log, got {len(index)}")
    loaded = index.query(date(2024, 1, 15))
    if loaded is None or loaded.id != "b":
        raise AssertionError("Expected the later duplicate to win")


def test_snapshot_restore() -> None:
    """Test that restore brings back logs exactly as captured."""
    index = DailyLogIndex("UTC")
    index.upsert(date(2024, 1, 15), water_litres=0.5)
    captured = index.snapshot()

    index.upsert(date(2024, 1, 15), water_litres=2.0)
    index.upsert(date(2024, 1, 16), water_litres=1.0)
    index.restore(captured)

    if len(index) != 1:
        raise AssertionError(f"Expected 1 log after restore, got {len(index)}")
    restored = index.query(date(2024, 1, 15))
    if restored is None or restored.water_intake_litres != 0.5:
        raise AssertionError("Expected the captured water total after restore")


def test_anchor_day_follows_status() -> None:
    """Test open fasts anchor on their start and closed fasts on their end."""
    entry = FastingEntry(start_time=_utc(2024, 1, 14, 20), fasting_window_hours=16)
    closed = entry.close(_utc(2024, 1, 15, 12))

    if entry.status is not FastingStatus.OPEN or anchor_time(entry) != entry.start_time:
        raise AssertionError("Expected an open fast to anchor on its start")
    if closed.status is not FastingStatus.CLOSED or anchor_time(closed) != closed.end_time:
        raise AssertionError("Expected a closed fast to anchor on its end")


def test_water_goal_met() -> None:
    """Test the goal flag against the daily target."""
    log = DailyLog(id="x", date=_utc(2024, 1, 15), water_intake_litres=2.0)

    if not log.water_goal_met(2.0):
        raise AssertionError("Expected 2.0 L to meet a 2.0 L target")
    if log.water_goal_met(2.5):
        raise AssertionError("Expected 2.0 L to miss a 2.5 L target")
