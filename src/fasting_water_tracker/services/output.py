"""
Output service for exporting daily logs.

Writes one row per day (water total and fasting snapshot) to CSV and/or JSON.
"""

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from fasting_water_tracker.domain.entries import SECONDS_PER_HOUR, DailyLog
from fasting_water_tracker.utils.exceptions import ExportError
from fasting_water_tracker.utils.parameters import OutputConfig

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("csv", "json")

DAILY_LOG_COLUMNS = [
    "date",
    "log_id",
    "water_intake_litres",
    "fasting_entry_id",
    "fasting_start",
    "fasting_end",
    "fasting_hours",
    "fasting_window_hours",
]


def daily_log_row(log: DailyLog) -> dict[str, Any]:
    """Flatten a daily log into an export row."""
    fasting = log.fasting_entry
    duration = fasting.duration() if fasting is not None else None

    return {
        "date": log.day.isoformat(),
        "log_id": log.id,
        "water_intake_litres": round(log.water_intake_litres, 3),
        "fasting_entry_id": str(fasting.id) if fasting else None,
        "fasting_start": fasting.start_time.isoformat() if fasting else None,
        "fasting_end": fasting.end_time.isoformat() if fasting and fasting.end_time else None,
        "fasting_hours": (
            round(duration.total_seconds() / SECONDS_PER_HOUR, 2) if duration is not None else None
        ),
        "fasting_window_hours": fasting.fasting_window_hours if fasting else None,
    }


class OutputService:
    """
    Service for writing daily logs to output files.

    Handles multiple output formats from one flattened table.
    """

    def __init__(self, config: OutputConfig) -> None:
        """
        Initialize output service.

        Args:
            config: Output configuration.
        """
        self.config = config
        self.output_dir = Path(config.dir)

    def to_frame(self, logs: list[DailyLog]) -> pd.DataFrame:
        """Build the export table, sorted by date."""
        df = pd.DataFrame([daily_log_row(log) for log in logs], columns=DAILY_LOG_COLUMNS)
        return df.sort_values("date").reset_index(drop=True)

    def write_daily_logs(self, logs: list[DailyLog]) -> list[Path]:
        """
        Write daily logs in every configured format.

        Args:
            logs: Daily logs to export.

        Returns:
            Paths of the written files.

        Raises:
            ExportError: If a format is unsupported or a write fails.
        """
        unsupported = [fmt for fmt in self.config.formats if fmt not in SUPPORTED_FORMATS]
        if unsupported:
            raise ExportError(f"Unsupported export format: {', '.join(unsupported)}")

        if not logs:
            logger.warning("No daily logs to write")
            return []

        df = self.to_frame(logs)
        written: list[Path] = []

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            for fmt in self.config.formats:
                if fmt == "csv":
                    written.append(self._write_csv(df))
                else:
                    written.append(self._write_json(df))
        except OSError as e:
            raise ExportError(f"Failed to write daily logs: {e}") from e

        logger.info(f"Wrote {len(df)} daily logs to {len(written)} files")
        return written

    def _write_csv(self, df: pd.DataFrame) -> Path:
        csv_path = self.output_dir / self.config.files.daily_logs_csv
        df.to_csv(csv_path, index=False, encoding="utf-8")
        logger.info(f"Wrote CSV to {csv_path}")
        return csv_path

    def _write_json(self, df: pd.DataFrame) -> Path:
        json_path = self.output_dir / self.config.files.daily_logs_json
        df.to_json(json_path, orient="records", indent=2)
        logger.info(f"Wrote JSON to {json_path}")
        return json_path
