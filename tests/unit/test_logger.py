"""Unit tests for core logger module."""
import logging
from logging.handlers import TimedRotatingFileHandler

from tradekernel.core.config import SystemConfig
from tradekernel.core.logger import setup_logging, setup_logging_from_config


class TestSetupLoggingBasics:
    """Test basic logger setup functionality."""

    def test_setup_logging_returns_logger(self):
        log = setup_logging("TK_TEST")
        assert isinstance(log, logging.Logger)
        assert log.name == "TK_TEST"

    def test_setup_logging_default_level(self):
        log = setup_logging("TK_DEFAULT")
        assert log.level == logging.INFO

    def test_setup_logging_levels(self):
        assert setup_logging("TK_DEBUG", level="DEBUG").level == logging.DEBUG
        assert setup_logging("TK_WARN", level="warning").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("TK_BOGUS", level="LOUD").level == logging.INFO

    def test_handlers_not_duplicated(self):
        first = setup_logging("TK_ONCE")
        count = len(first.handlers)
        second = setup_logging("TK_ONCE")
        assert second is first
        assert len(second.handlers) == count


class TestFileLogging:
    def test_file_handler_created(self, tmp_path):
        log = setup_logging("TK_FILE", log_dir=str(tmp_path / "logs"))
        file_handlers = [h for h in log.handlers if isinstance(h, TimedRotatingFileHandler)]
        assert len(file_handlers) == 1
        assert (tmp_path / "logs").is_dir()
        for handler in file_handlers:
            handler.close()

    def test_no_file_handler_without_log_dir(self):
        log = setup_logging("TK_CONSOLE_ONLY")
        assert not any(isinstance(h, TimedRotatingFileHandler) for h in log.handlers)


class TestSetupFromConfig:
    def test_uses_system_config(self, tmp_path):
        config = SystemConfig(log_level="ERROR", log_dir=str(tmp_path))
        log = setup_logging_from_config(config, name="TK_FROM_CONFIG")
        assert log.level == logging.ERROR
        assert (tmp_path / "TK_FROM_CONFIG.log").exists()
        for handler in log.handlers:
            handler.close()
