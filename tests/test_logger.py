"""Tests for the shared honeybot logger."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from honeybot.config import settings
from honeybot.utils import logger as logger_module


class TestSetup:
    def test_shared_logger_has_console_and_rotating_file(self) -> None:
        log = logger_module.logger
        assert log.name == "honeybot"
        files = [h for h in log.handlers if isinstance(h, RotatingFileHandler)]
        assert len(files) == 1
        assert files[0].baseFilename.endswith(logger_module.LOG_FILE)
        assert files[0].level == logging.DEBUG

    def test_fresh_logger_writes_to_logs_dir(self, tmp_path) -> None:
        name = "honeybot.test_fresh"
        with patch.object(settings, "LOGS_DIR", tmp_path), \
             patch.object(settings, "LOG_LEVEL", "WARNING"):
            log = logger_module._setup_logger(name)
        try:
            console = [
                h for h in log.handlers
                if type(h) is logging.StreamHandler
            ]
            assert console[0].level == logging.WARNING

            log.debug("[Test] debug goes to file only")
            for h in log.handlers:
                h.flush()
            text = (tmp_path / logger_module.LOG_FILE).read_text(encoding="utf-8")
            assert "[Test] debug goes to file only" in text
        finally:
            for h in list(log.handlers):
                h.close()
                log.removeHandler(h)

    def test_reimport_does_not_duplicate_handlers(self) -> None:
        before = list(logger_module.logger.handlers)
        assert logger_module._setup_logger("honeybot").handlers == before
