"""Shared fixtures for tracker tests."""

from datetime import datetime, timedelta

import pytest
import pytz

from fasting_water_tracker.utils.parameters import TrackerConfig


class FakeClock:
    """Settable clock returning timezone-aware instants."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 15, 8, 0, 0, tzinfo=pytz.UTC))


@pytest.fixture
def tracker_config() -> TrackerConfig:
    return TrackerConfig(timezone="UTC")
