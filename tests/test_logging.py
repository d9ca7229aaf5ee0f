"""
Tests for logging setup.
"""

import logging

from systemd_timings.config.schema import LoggingConfig
from systemd_timings.logging import ColoredFormatter, LogConfig, get_log_level, get_logger


def test_get_logger_prefixes_component() -> None:
    assert get_logger("bus").name == "systemd_timings.bus"
    assert get_logger("systemd_timings.app").name == "systemd_timings.app"


def test_get_log_level() -> None:
    assert get_log_level("warn") == logging.WARNING
    assert get_log_level("DEBUG") == logging.DEBUG
    assert get_log_level("nonsense") == logging.INFO


def test_colored_formatter_leaves_record_untouched() -> None:
    record = logging.LogRecord("systemd_timings.bus", logging.ERROR, __file__, 1, "boom", None, None)
    formatter = ColoredFormatter(fmt="%(levelname)s %(name)s %(message)s", use_colors=True)

    formatted = formatter.format(record)

    assert "\033[" in formatted
    assert record.levelname == "ERROR"
    assert record.name == "systemd_timings.bus"
    assert record.msg == "boom"


def test_log_config_from_settings() -> None:
    settings = LoggingConfig(level="debug", file="/tmp/timings.log", file_max_size=2, file_keep=3)

    config = LogConfig.from_settings(settings)

    assert config.console_level == "debug"
    assert config.file_enabled
    assert config.file_max_bytes == 2 * 1024 * 1024
    assert config.file_backup_count == 3


def test_cli_log_file_wins_over_config_file() -> None:
    config = LogConfig(file_enabled=True, file_path="/tmp/cli.log")
    config.merge_file_settings(LoggingConfig(file="/tmp/conf.log"))
    assert config.file_path == "/tmp/cli.log"

    config = LogConfig()
    config.merge_file_settings(LoggingConfig(file="/tmp/conf.log", file_level="info"))
    assert config.file_enabled
    assert config.file_path == "/tmp/conf.log"
    assert config.file_level == "info"
