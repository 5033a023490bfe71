"""
Timezone and local-day utilities.

Every day key in the tracker is a calendar date in the configured time zone.
"""

from datetime import date, datetime, time

import pytz
from dateutil import parser


def make_timezone_aware(
    dt: datetime, timezone_str: str = "UTC", assume_local: bool = False
) -> datetime:
    """
    Make a datetime object timezone-aware.

    Args:
        dt: Datetime object (may be naive or aware).
        timezone_str: Timezone string (e.g., "Europe/London").
        assume_local: If True and dt is naive, assume it's in timezone_str.

    Returns:
        Timezone-aware datetime object in timezone_str.
    """
    tz = pytz.timezone(timezone_str)

    if dt.tzinfo is None:
        if assume_local:
            return tz.localize(dt)
        else:
            return pytz.utc.localize(dt).astimezone(tz)
    else:
        return dt.astimezone(tz)


def parse_datetime(
    date_str: str, time_str: str | None = None, timezone_str: str = "UTC"
) -> datetime:
    """
    Parse date and optional time strings into timezone-aware datetime.

    Args:
        date_str: Date string (various formats supported).
        time_str: Optional time string.
        timezone_str: Timezone to assign to the parsed datetime.

    Returns:
        Timezone-aware datetime object.
    """
    if time_str:
        combined = f"{date_str} {time_str}"
    else:
        combined = date_str

    dt = parser.parse(combined)

    return make_timezone_aware(dt, timezone_str, assume_local=True)


def local_day(value: datetime | date, timezone_str: str = "UTC") -> date:
    """
    Truncate an instant to its calendar date in the given time zone.

    Naive datetimes are interpreted as local time. Plain dates pass through.
    """
    if isinstance(value, datetime):
        return make_timezone_aware(value, timezone_str, assume_local=True).date()
    return value


def day_start(day: date, timezone_str: str = "UTC") -> datetime:
    """Return local midnight of a calendar date as an aware datetime."""
    tz = pytz.timezone(timezone_str)
    return tz.localize(datetime.combine(day, time.min))
