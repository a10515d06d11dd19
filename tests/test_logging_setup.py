"""Tests for setup_logging()."""

import logging

import pytest

from agentledger.logging_setup import setup_logging

LOGGER_NAME = "agentledger.tests.logging"


@pytest.fixture
def cleanup():  # noqa: ANN201
    yield
    for name in (LOGGER_NAME, f"{LOGGER_NAME}.child"):
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()


class TestSetupLogging:
    """Tests for handler configuration."""

    def test_console_only_by_default(self, cleanup) -> None:  # noqa: ANN001
        logger = setup_logging(LOGGER_NAME)

        (handler,) = logger.handlers
        assert handler.level == logging.WARNING
        assert logger.level == logging.DEBUG

    def test_verbose_console(self, cleanup) -> None:  # noqa: ANN001
        logger = setup_logging(LOGGER_NAME, verbose=True)

        assert logger.handlers[0].level == logging.DEBUG

    def test_file_handler_writes(self, cleanup, tmp_path) -> None:  # noqa: ANN001
        log_file = tmp_path / "logs" / "agentledger.log"

        logger = setup_logging(LOGGER_NAME, log_file=str(log_file))
        logger.debug("Appended %s", "IntentDeclared")
        for handler in logger.handlers:
            handler.flush()

        assert "Appended IntentDeclared" in log_file.read_text()

    def test_child_loggers_share_handlers(self, cleanup) -> None:  # noqa: ANN001
        logger = setup_logging(LOGGER_NAME, child_loggers=[f"{LOGGER_NAME}.child"])

        child = logging.getLogger(f"{LOGGER_NAME}.child")
        assert child.handlers == logger.handlers

    def test_repeated_setup_does_not_duplicate(self, cleanup) -> None:  # noqa: ANN001
        setup_logging(LOGGER_NAME)
        logger = setup_logging(LOGGER_NAME)

        assert len(logger.handlers) == 1

    def test_http_loggers_quieted(self, cleanup) -> None:  # noqa: ANN001
        setup_logging(LOGGER_NAME)

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_file_handler_accepts_path(self, cleanup, tmp_path) -> None:  # noqa: ANN001
        log_file = tmp_path / "nested" / "dir" / "agentledger.log"

        logger = setup_logging(LOGGER_NAME, log_file=log_file)
        logger.info("IntentDeclared recorded for %s", "exec-1")
        for handler in logger.handlers:
            handler.flush()

        assert log_file.exists()
        assert "| INFO     |" in log_file.read_text()

    def test_console_hides_per_event_info(self, cleanup) -> None:  # noqa: ANN001
        logger = setup_logging(LOGGER_NAME)

        (handler,) = logger.handlers
        assert handler.level > logging.INFO
