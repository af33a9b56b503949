"""Unit tests for logging configuration."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from rpcwire.logging_setup import configure_logging


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_console_handler_and_level(self):
        configure_logging("debug")
        logger = logging.getLogger("rpcwire")
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1

    def test_repeated_calls_do_not_duplicate(self):
        configure_logging(logging.INFO)
        configure_logging(logging.INFO)
        assert len(logging.getLogger("rpcwire").handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "rpcwire.log"
        configure_logging("INFO", log_file)
        logging.getLogger("rpcwire.test").info("hello file")

        handlers = logging.getLogger("rpcwire").handlers
        rotating = [h for h in handlers if isinstance(h, RotatingFileHandler)]
        assert len(rotating) == 1
        assert rotating[0].maxBytes == 5 * 1024 * 1024
        assert rotating[0].backupCount == 3
        rotating[0].flush()
        assert "hello file" in log_file.read_text(encoding="utf-8")

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("LOUD")
