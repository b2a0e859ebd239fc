"""Tests for logging configuration."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from gcs_auth.logging_config import setup_logging
from gcs_auth.models import LoggingConfig


class TestSetupLogging:
    def test_default_config(self):
        logger = setup_logging()
        assert logger.name == "gcs_auth"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)

    def test_custom_level(self):
        logger = setup_logging(LoggingConfig(level="DEBUG"))
        assert logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging(LoggingConfig(level="CHATTY"))
        assert logger.level == logging.INFO

    def test_with_file_handler(self, tmp_path):
        log_file = tmp_path / "test.log"
        logger = setup_logging(LoggingConfig(file=str(log_file)))
        assert len(logger.handlers) == 2  # RichHandler + FileHandler
        logging.getLogger("gcs_auth.auth").info("test message")
        for h in logger.handlers[:]:
            if isinstance(h, logging.FileHandler):
                h.close()
        assert log_file.exists()
        assert "gcs_auth.auth: test message" in log_file.read_text()

    def test_clears_existing_handlers(self):
        logger = setup_logging()
        initial_count = len(logger.handlers)
        setup_logging()
        assert len(logger.handlers) == initial_count
