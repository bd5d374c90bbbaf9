"""
Unit tests for structured logging helpers.
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from unittest.mock import MagicMock, patch

import pytest

import developer_helper.logging as helper_logging
from developer_helper.logging import (
    add_correlation_context,
    add_service_context,
    clear_context,
    configure_logging,
    ensure_configured,
    log,
    log_critical,
    log_debug,
    log_error,
    log_info,
    log_warning,
    set_correlation_id,
    set_user_context,
)


@pytest.fixture
def mock_logger():
    with patch.object(helper_logging, "_logger", MagicMock()) as logger:
        yield logger


@pytest.fixture
def restore_logging():
    yield
    configure_logging()
    clear_context()


class TestConfigureLogging:
    """Test cases for configure_logging."""

    def test_file_handler_rotates_daily(self, tmp_path, restore_logging):
        log_file = tmp_path / "helper.log"
        configure_logging(service_name="svc", log_level="debug", log_file=str(log_file))

        handlers = [h for h in logging.getLogger().handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].when == "MIDNIGHT"
        assert handlers[0].backupCount == 31
        assert logging.getLogger().level == logging.DEBUG

        logging.getLogger("test").warning("written to file")
        assert "written to file" in log_file.read_text(encoding="utf-8")

    def test_reconfigure_replaces_file_handler(self, tmp_path, restore_logging):
        configure_logging(log_file=str(tmp_path / "one.log"))
        configure_logging(log_file=str(tmp_path / "two.log"))

        handlers = [h for h in logging.getLogger().handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(handlers) == 1
        assert handlers[0].baseFilename.endswith("two.log")

    def test_unknown_level_rejected(self):
        with pytest.raises(ValueError):
            configure_logging(log_level="loud")

    def test_ensure_configured_reads_settings(self, monkeypatch):
        monkeypatch.setenv("DEVHELPER_LOG_LEVEL", "debug")
        monkeypatch.setenv("DEVHELPER_SERVICE_NAME", "from-env")
        monkeypatch.setattr(helper_logging, "_configured", False)

        with patch.object(helper_logging, "configure_logging") as mock_configure:
            ensure_configured()

        mock_configure.assert_called_once()
        assert mock_configure.call_args.kwargs["log_level"] == "debug"
        assert mock_configure.call_args.kwargs["service_name"] == "from-env"

    def test_ensure_configured_runs_once(self, monkeypatch):
        monkeypatch.setattr(helper_logging, "_configured", True)
        with patch.object(helper_logging, "configure_logging") as mock_configure:
            ensure_configured()
        mock_configure.assert_not_called()


class TestLogFunctions:
    """Test cases for the log_* helpers."""

    def test_level_helpers(self, mock_logger):
        log_debug("debug message", key="a")
        log_info("info message")
        log_warning("warning message", key="b")
        log_critical("critical message")

        mock_logger.debug.assert_called_once_with("debug message", key="a")
        mock_logger.info.assert_called_once_with("info message")
        mock_logger.warning.assert_called_once_with("warning message", key="b")
        mock_logger.critical.assert_called_once_with("critical message")

    def test_log_error_with_exception(self, mock_logger):
        error = RuntimeError("boom")
        log_error("failed", exc_info=error, key="a")
        mock_logger.error.assert_called_once_with("failed", exc_info=error, key="a")

    def test_log_error_without_exception(self, mock_logger):
        log_error("failed")
        mock_logger.error.assert_called_once_with("failed")

    @pytest.mark.parametrize("level,expected", [
        ("information", logging.INFO),
        ("WARNING", logging.WARNING),
        ("fatal", logging.CRITICAL),
        (logging.DEBUG, logging.DEBUG),
    ])
    def test_log_resolves_level(self, mock_logger, level, expected):
        log(level, "message")
        mock_logger.log.assert_called_once_with(expected, "message")

    @pytest.mark.parametrize("level", ["verbose", 15, 0])
    def test_log_unknown_level(self, mock_logger, level):
        with pytest.raises(ValueError):
            log(level, "message")
        mock_logger.log.assert_not_called()


class TestContextProcessors:
    """Test cases for context processors."""

    def test_correlation_context(self, restore_logging):
        correlation_id = set_correlation_id()
        set_user_context("user-1")

        event = add_correlation_context(None, "info", {"event": "x"})

        assert event["correlation_id"] == correlation_id
        assert event["user_id"] == "user-1"

    def test_clear_context(self):
        set_correlation_id("abc")
        clear_context()
        assert add_correlation_context(None, "info", {"event": "x"}) == {"event": "x"}

    def test_service_context_does_not_override(self, restore_logging):
        configure_logging(service_name="svc")
        assert add_service_context(None, "info", {})["service"] == "svc"
        assert add_service_context(None, "info", {"service": "other"})["service"] == "other"
