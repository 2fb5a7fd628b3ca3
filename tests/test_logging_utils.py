"""Tests for logger setup."""

import logging
from pathlib import Path

import pytest

from proxytrack.config import Settings
from proxytrack.logging_utils import configure_logging, setup_logger
from proxytrack.service import ProxyDataService


@pytest.fixture
def clean_logger():
    """Restore the package logger after each test."""
    logger = logging.getLogger("proxytrack")
    saved = (logger.level, logger.propagate, list(logger.handlers))
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]


def test_setup_logger_configures_console(clean_logger: logging.Logger) -> None:
    """A console handler is attached once."""
    logger = setup_logger("debug")
    again = setup_logger("debug")

    assert logger is clean_logger
    assert again is logger
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_setup_logger_writes_file(clean_logger: logging.Logger, tmp_path: Path) -> None:
    """Module loggers write through to the optional file."""
    log_file = tmp_path / "proxytrack.log"
    setup_logger("INFO", str(log_file))

    logging.getLogger("proxytrack.service").warning("fallback used")
    for handler in clean_logger.handlers:
        handler.flush()

    content = log_file.read_text()
    assert "| WARNING | proxytrack.service | fallback used" in content


def test_later_call_adds_file_and_changes_level(clean_logger: logging.Logger, tmp_path: Path) -> None:
    """A second call may add a log file and lower the level."""
    setup_logger("WARNING")
    setup_logger("DEBUG", tmp_path / "later.log")
    setup_logger("DEBUG", tmp_path / "later.log")

    assert clean_logger.level == logging.DEBUG
    assert len(clean_logger.handlers) == 2


class TestConfigureLogging:
    """Tests for applying Settings.log_level."""

    def test_applies_settings_level(self, clean_logger: logging.Logger) -> None:
        """The configured level reaches the package logger."""
        configure_logging(Settings(log_level="debug"))

        assert clean_logger.level == logging.DEBUG
        assert clean_logger.isEnabledFor(logging.DEBUG)

    def test_env_override_reaches_logger(self, clean_logger: logging.Logger, tmp_path: Path) -> None:
        """PROXYTRACK_LOG_LEVEL wins over the file when building a service."""
        config = tmp_path / "settings.yaml"
        config.write_text("log_level: INFO\n")

        service = ProxyDataService.from_config(config, env={"PROXYTRACK_LOG_LEVEL": "ERROR"})

        assert service.settings.log_level == "ERROR"
        assert clean_logger.level == logging.ERROR
        assert not clean_logger.isEnabledFor(logging.WARNING)

    def test_from_config_uses_file_level(self, clean_logger: logging.Logger, tmp_path: Path) -> None:
        """Without an override the file's level is applied."""
        config = tmp_path / "settings.yaml"
        config.write_text("log_level: DEBUG\n")

        ProxyDataService.from_config(config, env={})

        assert clean_logger.level == logging.DEBUG
