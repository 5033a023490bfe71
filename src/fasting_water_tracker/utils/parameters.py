"""
Configuration and parameter loading using Pydantic.

This module provides centralized configuration management for the tracker.
All parameters are loaded from YAML and validated using Pydantic models.
"""

from pathlib import Path
from typing import Any

import pytz
import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fasting_water_tracker.utils.exceptions import ConfigurationError


class TrackerConfig(BaseModel):
    """Engine defaults and local-day configuration."""

    timezone: str = "UTC"
    default_fasting_window_hours: int = Field(16, gt=0, lt=24)
    default_eating_window_hours: int = Field(8, gt=0, lt=24)
    default_daily_target_litres: float = Field(2.0, gt=0)
    common_water_sizes_ml: list[float] = Field(default_factory=lambda: [250.0, 500.0, 750.0])
    tick_interval_seconds: float = Field(1.0, gt=0)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {value}")
        return value


class StorageConfig(BaseModel):
    """State store configuration."""

    path: str = "data/tracker_state.json"


class OutputFilesConfig(BaseModel):
    """Output file names configuration."""

    daily_logs_csv: str = "daily_logs.csv"
    daily_logs_json: str = "daily_logs.json"


class OutputConfig(BaseModel):
    """Export configuration."""

    dir: str = "output"
    files: OutputFilesConfig = Field(default_factory=OutputFilesConfig)
    formats: list[str] = Field(default_factory=lambda: ["csv"])


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str = ""
    console: bool = True


class AppConfig(BaseSettings):
    """Main application configuration."""

    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_prefix="FWT_", case_sensitive=False)


class ParameterLoader:
    """
    Centralized parameter loader for the application.

    Loads and validates configuration from YAML files using Pydantic models.
    Provides type-safe access to all configuration parameters.
    """

    def __init__(self, config_path: str = "config/config.yaml") -> None:
        """
        Initialize parameter loader.

        Args:
            config_path: Path to the YAML configuration file.

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid.
        """
        self.config_path = Path(config_path)
        self.config: AppConfig
        self._load_config()

    def _load_config(self) -> None:
        """
        Load configuration from YAML file.

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid.
        """
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}

            self.config = AppConfig(**config_dict)

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML configuration: {e}") from e
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def get_tracker_config(self) -> TrackerConfig:
        """Get engine configuration."""
        return self.config.tracker

    def get_storage_config(self) -> StorageConfig:
        """Get state store configuration."""
        return self.config.storage

    def get_output_config(self) -> OutputConfig:
        """Get export configuration."""
        return self.config.output

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        return self.config.logging

    def get_raw_config(self) -> dict[str, Any]:
        """
        Get raw configuration dictionary.

        Returns:
            Dictionary representation of the configuration.
        """
        return self.config.model_dump()
