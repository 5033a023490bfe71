"""
Tracker state repository.

Maps engine state to the persisted key layout (fastingWindowHours,
waterEntries, dailyLogs, ...) and back. Each key is decoded on its own and
record lists item by item: a key or record that fails validation is logged
and treated as absent.
"""

import logging
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from fasting_water_tracker.domain.entries import DailyLog, FastingEntry, WaterEntry
from fasting_water_tracker.infrastructure.storage.store import KeyValueStore

logger = logging.getLogger(__name__)


class PersistedState(BaseModel):
    """
    Decoded content of the state store.

    None means the key was absent or unreadable; callers apply defaults.
    """

    fasting_window_hours: int | None = Field(None, gt=0)
    eating_window_hours: int | None = Field(None, gt=0)
    fasting_start_time: datetime | None = None
    is_fasting: bool | None = None
    daily_water_intake: float | None = None
    daily_target: float | None = Field(None, gt=0)
    water_entries: list[WaterEntry] = Field(default_factory=list)
    fasting_history: list[FastingEntry] = Field(default_factory=list)
    daily_logs: list[DailyLog] | None = None
    last_water_reset_date: datetime | None = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    name: TypeAdapter(field.annotation) for name, field in PersistedState.model_fields.items()
}

# Record lists are decoded one item at a time so a bad record only loses itself.
_RECORD_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    "water_entries": TypeAdapter(WaterEntry),
    "fasting_history": TypeAdapter(FastingEntry),
    "daily_logs": TypeAdapter(DailyLog),
}


def _decode_records(key: str, adapter: TypeAdapter[Any], value: Any) -> list[Any]:
    """
    Decode a stored list of records, skipping unreadable items.

    Raises:
        TypeError: If the stored value is not a list.
    """
    if not isinstance(value, list):
        raise TypeError(f"expected a list, got {type(value).__name__}")

    records = []
    for idx, item in enumerate(value):
        try:
            records.append(adapter.validate_python(item))
        except PydanticValidationError as e:
            logger.warning(
                f"Skipping unreadable record {idx} in '{key}': {e.error_count()} errors"
            )
    return records


class TrackerStateRepository:
    """Reads and writes PersistedState through a key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def load(self) -> PersistedState:
        """
        Load and decode the stored state.

        Raises:
            PersistenceError: If the store itself cannot be read.
        """
        raw = self.store.load()
        decoded: dict[str, Any] = {}

        for name, field in PersistedState.model_fields.items():
            key = field.alias or name
            if key not in raw or raw[key] is None:
                continue
            try:
                if name in _RECORD_ADAPTERS:
                    decoded[name] = _decode_records(key, _RECORD_ADAPTERS[name], raw[key])
                else:
                    decoded[name] = _ADAPTERS[name].validate_python(raw[key])
            except PydanticValidationError as e:
                logger.warning(f"Ignoring unreadable key '{key}': {e.error_count()} errors")
            except TypeError as e:
                logger.warning(f"Ignoring unreadable key '{key}': {e}")

        try:
            return PersistedState(**decoded)
        except PydanticValidationError as e:
            logger.warning(f"Stored settings out of range, using defaults: {e}")
            for name in ("fasting_window_hours", "eating_window_hours", "daily_target"):
                decoded.pop(name, None)
            return PersistedState(**decoded)

    def save(self, state: PersistedState) -> None:
        """
        Encode and store the state.

        Raises:
            PersistenceError: If the store write fails.
        """
        data = state.model_dump(mode="json", by_alias=True)
        if data.get("fastingStartTime") is None:
            data.pop("fastingStartTime", None)
        self.store.save(data)
