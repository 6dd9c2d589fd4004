"""Tests for logging utility."""

import logging
from io import StringIO

import pytest


@pytest.fixture(autouse=True)
def clean_logging():
    from rolecase.utils.logging import reset_logging

    reset_logging()
    yield
    reset_logging()


class TestLoggerConfiguration:
    """Test that logger configures correctly."""

    def test_configure_logging_creates_logger(self):
        from rolecase.utils.logging import configure_logging

        logger = configure_logging()

        assert isinstance(logger, logging.Logger)
        assert logger.name == "rolecase"

    def test_configure_logging_respects_level(self):
        from rolecase.utils.logging import configure_logging

        assert configure_logging(level="DEBUG").level == logging.DEBUG
        assert configure_logging(level="WARNING").level == logging.WARNING

    def test_configure_logging_default_level_is_info(self):
        from rolecase.utils.logging import configure_logging

        assert configure_logging().level == logging.INFO

    def test_handler_is_installed_once(self):
        from rolecase.utils.logging import configure_logging

        configure_logging()
        logger = configure_logging(level="DEBUG")

        assert len(logger.handlers) == 1

    def test_transport_and_database_chatter_is_quietened(self):
        from rolecase.utils.logging import configure_logging

        configure_logging(level="DEBUG")

        for name in ("httpx", "httpcore", "aiosqlite"):
            assert logging.getLogger(name).level == logging.WARNING


class TestLogOutput:
    """Test that log output format is correct."""

    def test_module_loggers_use_app_handler(self):
        from rolecase.utils.logging import configure_logging

        logger = configure_logging(level="INFO")
        buffer = StringIO()
        logger.handlers[0].setStream(buffer)

        logging.getLogger("rolecase.orchestrator.service").info("Job abc ready for review")

        output = buffer.getvalue()
        assert "INFO" in output
        assert "rolecase.orchestrator.service" in output
        assert "Job abc ready for review" in output
