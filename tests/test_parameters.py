"""Unit tests for configuration loading and logging setup."""

import logging

import pytest

from fasting_water_tracker.utils.exceptions import ConfigurationError
from fasting_water_tracker.utils.logging_config import setup_logging
from fasting_water_tracker.utils.parameters import LoggingConfig, ParameterLoader


def test_loads_yaml_with_defaults(tmp_path) -> None:
    """Test that omitted sections fall back to defaults."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "tracker:\n  timezone: Europe/London\n  default_daily_target_litres: 2.5\n",
        encoding="utf-8",
    )

    loader = ParameterLoader(str(config_path))
    tracker = loader.get_tracker_config()

    if tracker.timezone != "Europe/London" or tracker.default_daily_target_litres != 2.5:
        raise AssertionError(f"Unexpected tracker config: {tracker}")
    if tracker.default_fasting_window_hours != 16:
        raise AssertionError("Expected the default fasting window")
    if loader.get_storage_config().path != "data/tracker_state.json":
        raise AssertionError("Expected the default storage path")
    if loader.get_output_config().formats != ["csv"]:
        raise AssertionError("Expected the default export format")


def test_invalid_configuration(tmp_path) -> None:
    """Test missing files, bad YAML and unknown time zones."""
    with pytest.raises(ConfigurationError):
        ParameterLoader(str(tmp_path / "missing.yaml"))

    bad_yaml = tmp_path / "bad.yaml"
    bad_yaml.write_text("tracker: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ParameterLoader(str(bad_yaml))

    bad_zone = tmp_path / "zone.yaml"
    bad_zone.write_text("tracker:\n  timezone: Mars/Olympus\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ParameterLoader(str(bad_zone))


def test_setup_logging(tmp_path) -> None:
    """Test handler setup and unknown levels."""
    log_file = tmp_path / "logs" / "tracker.log"
    logger = setup_logging(
        LoggingConfig(level="debug", file=str(log_file), console=False),
        logger_name="fasting_water_tracker.test",
    )

    if logger.level != logging.DEBUG:
        raise AssertionError(f"Expected DEBUG, got {logger.level}")
    if len(logger.handlers) != 1 or not log_file.parent.exists():
        raise AssertionError("Expected a single file handler")

    for handler in logger.handlers:
        handler.close()

    with pytest.raises(ConfigurationError):
        setup_logging(LoggingConfig(level="LOUD"), logger_name="fasting_water_tracker.test")
