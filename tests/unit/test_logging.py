"""Unit tests for logging configuration."""

import json
import logging
import logging.handlers
from pathlib import Path

import pytest

from stackfolio.utils.config import Config
from stackfolio.utils.logging import (
    JsonFormatter,
    get_logger,
    log_with_context,
    setup_logging,
    setup_logging_from_config,
)


class TestLoggingSetup:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self) -> None:
        """Test setup_logging with default INFO level."""
        setup_logging()
        logger = logging.getLogger("test")

        assert logger.getEffectiveLevel() == logging.INFO

    def test_setup_logging_debug_level(self) -> None:
        """Test setup_logging with DEBUG level."""
        setup_logging(level="DEBUG")
        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG

    def test_setup_logging_warning_level(self) -> None:
        """Test setup_logging with WARNING level."""
        setup_logging(level="warning")
        root_logger = logging.getLogger()
        assert root_logger.level == logging.WARNING

    def test_setup_logging_custom_format(self) -> None:
        """Test setup_logging accepts custom format without error."""
        setup_logging(level="INFO", log_format="%(levelname)s - %(message)s")
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_invalid_level_fallback(self) -> None:
        """Test setup_logging with invalid level falls back to INFO."""
        setup_logging(level="INVALID")
        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO

    def test_setup_logging_from_config(self) -> None:
        """Test logging level is read from the logging section."""
        setup_logging_from_config(Config({"logging": {"level": "ERROR"}}))
        assert logging.getLogger().level == logging.ERROR

    def test_setup_logging_from_config_defaults(self) -> None:
        """Test missing logging section falls back to INFO."""
        setup_logging_from_config(Config({}))
        assert logging.getLogger().level == logging.INFO


class TestLogFile:
    """Test cases for the rotating log file."""

    @pytest.fixture(autouse=True)
    def reset_root(self):
        yield
        setup_logging()

    def test_text_file(self, tmp_path: Path) -> None:
        """Test records reach a rotating file in the console format."""
        log_file = tmp_path / "logs" / "stackfolio.log"
        setup_logging(log_file=log_file, log_format="%(levelname)s %(message)s")

        handlers = logging.getLogger().handlers
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)

        log_with_context(get_logger("test_file"), "warning", "Concentrated", ticker="UPRO")
        for handler in handlers:
            handler.flush()

        assert log_file.read_text().strip() == "WARNING Concentrated | ticker=UPRO"

    def test_json_file(self, tmp_path: Path) -> None:
        """Test JSON lines carry context fields as separate keys."""
        log_file = tmp_path / "stackfolio.jsonl"
        setup_logging(log_file=log_file, json_file=True)

        log_with_context(
            get_logger("test_json"), "info", "Allocation overcommitted",
            ticker="SSO", requested=60.0,
        )
        for handler in logging.getLogger().handlers:
            handler.flush()

        event = json.loads(log_file.read_text().strip())
        assert event["event"] == "Allocation overcommitted"
        assert event["level"] == "INFO"
        assert event["logger"] == "test_json"
        assert event["ticker"] == "SSO"
        assert event["requested"] == 60.0

    def test_rotation_settings_from_config(self, tmp_path: Path) -> None:
        """Test file, size and backup count are read from the logging section."""
        config = Config(
            {
                "logging": {
                    "file": str(tmp_path / "app.log"),
                    "max_bytes": 2048,
                    "backup_count": 2,
                }
            }
        )
        setup_logging_from_config(config)

        file_handlers = [
            h for h in logging.getLogger().handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 2048
        assert file_handlers[0].backupCount == 2
        assert not isinstance(file_handlers[0].formatter, JsonFormatter)

    def test_no_file_by_default(self) -> None:
        """Test only the console handler is installed without a log file."""
        setup_logging()

        handlers = logging.getLogger().handlers
        assert not [h for h in handlers if isinstance(h, logging.FileHandler)]


class TestJsonFormatter:
    """Test cases for JsonFormatter."""

    def test_plain_record(self) -> None:
        """Test a record without context uses the formatted message."""
        record = logging.LogRecord(
            "stackfolio.test", logging.ERROR, __file__, 1, "Missing %s", ("VT",), None
        )

        event = json.loads(JsonFormatter().format(record))

        assert event["event"] == "Missing VT"
        assert event["level"] == "ERROR"
        assert "timestamp" in event


class TestGetLogger:
    """Test cases for get_logger function."""

    def test_get_logger_returns_logger(self) -> None:
        """Test get_logger returns a Logger instance."""
        logger = get_logger("test_module")
        assert isinstance(logger, logging.Logger)

    def test_get_logger_name(self) -> None:
        """Test get_logger creates logger with correct name."""
        logger = get_logger("stackfolio.portfolio.base")
        assert logger.name == "stackfolio.portfolio.base"

    def test_get_logger_same_instance(self) -> None:
        """Test get_logger returns same instance for same name."""
        assert get_logger("test_same") is get_logger("test_same")


class TestLogWithContext:
    """Test cases for log_with_context function."""

    def test_log_with_context_info(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test logging info message with context."""
        logger = get_logger("test_context")

        with caplog.at_level(logging.INFO, logger="test_context"):
            log_with_context(
                logger,
                "info",
                "Allocation updated",
                ticker="RSSB",
                percentage=25.0,
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert "Allocation updated" in record.message
        assert "ticker=RSSB" in record.message
        assert "percentage=25.0" in record.message

    def test_log_with_context_no_context(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test logging message without context fields."""
        logger = get_logger("test_no_context")

        with caplog.at_level(logging.INFO, logger="test_no_context"):
            log_with_context(logger, "info", "Simple message")

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.message == "Simple message"
        assert " | " not in record.message

    def test_log_with_context_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test logging debug message with context."""
        logger = get_logger("test_debug_context")

        with caplog.at_level(logging.DEBUG, logger="test_debug_context"):
            log_with_context(
                logger,
                "debug",
                "Holding removed",
                ticker="TMF",
                redistributed=45.0,
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.levelno == logging.DEBUG
        assert "ticker=TMF" in record.message
        assert "redistributed=45.0" in record.message
