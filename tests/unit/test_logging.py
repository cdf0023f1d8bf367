"""Unit tests for logger setup."""
import logging

from servicebot.core.logging import DEFAULT_FORMAT, configure_logging, get_logger, logger


class TestConfigureLogging:
    def teardown_method(self):
        configure_logging()

    def test_applies_level_and_format(self):
        log = configure_logging("debug", "%(levelname)s %(message)s")

        assert log is logger
        assert log.level == logging.DEBUG
        assert [h.formatter._fmt for h in log.handlers] == ["%(levelname)s %(message)s"]

    def test_unknown_level_falls_back_to_info(self):
        assert configure_logging("chatty").level == logging.INFO

    def test_reconfigure_replaces_handlers(self):
        configure_logging()
        configure_logging()

        assert len(logger.handlers) == 1
        assert logger.handlers[0].formatter._fmt == DEFAULT_FORMAT
        assert not logger.propagate

    def test_get_logger_returns_singleton(self):
        assert get_logger() is logger
