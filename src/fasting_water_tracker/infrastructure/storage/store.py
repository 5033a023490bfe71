"""
Key-value state stores.

The engine only needs load/save hooks over a flat mapping of keys to JSON
values. A JSON file store and an in-memory store are provided.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from fasting_water_tracker.utils.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Load/save hooks over a flat key-value document."""

    def load(self) -> dict[str, Any]: ...

    def save(self, data: dict[str, Any]) -> None: ...


class InMemoryStore:
    """Store that keeps a JSON-serialized copy of the last saved document."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._raw = json.dumps(data or {})
        self.save_count = 0

    def load(self) -> dict[str, Any]:
        loaded: dict[str, Any] = json.loads(self._raw)
        return loaded

    def save(self, data: dict[str, Any]) -> None:
        try:
            self._raw = json.dumps(data)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to serialize state: {e}") from e
        self.save_count += 1


class JsonFileStore:
    """
    Store backed by a single JSON file.

    Writes go to a temporary file that replaces the target, so a failed
    write never truncates the previous state.
    """

    def __init__(self, path: str | Path) -> None:
        """
        Initialize file store.

        Args:
            path: Location of the JSON state file.
        """
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        """
        Load the state document.

        Returns:
            Stored mapping, or an empty mapping if the file does not exist.

        Raises:
            PersistenceError: If the file cannot be read or parsed.
        """
        if not self.path.exists():
            logger.info(f"No state file at {self.path}, starting fresh")
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to load state from {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"State file {self.path} does not hold a JSON object")

        logger.debug(f"Loaded state with {len(data)} keys from {self.path}")
        return data

    def save(self, data: dict[str, Any]) -> None:
        """
        Save the state document.

        Raises:
            PersistenceError: If serialization or the write fails.
        """
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
            tmp_name = None
            logger.debug(f"Saved state with {len(data)} keys to {self.path}")
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save state to {self.path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
