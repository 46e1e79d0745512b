"""
Tests for docmigrate.logging_setup module.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest
from rich.logging import RichHandler

from docmigrate.config import LoggingConfig
from docmigrate.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("docmigrate")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


class TestConfigureLogging:
    """Test logger configuration."""

    def test_default_level(self):
        logger = configure_logging()

        assert logger.name == "docmigrate"
        assert logger.level == logging.INFO
        assert [type(h) for h in logger.handlers] == [RichHandler]

    def test_debug_overrides_level(self):
        logger = configure_logging(LoggingConfig(level="WARNING"), debug=True)

        assert logger.level == logging.DEBUG

    def test_repeated_calls_do_not_stack_handlers(self):
        configure_logging()
        logger = configure_logging()

        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "docmigrate.log"

        logger = configure_logging(LoggingConfig(file=str(log_file), format="%(levelname)s %(message)s"))
        logging.getLogger("docmigrate.schema").warning("planned 3 operations")
        for handler in logger.handlers:
            handler.flush()

        assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
        assert "WARNING planned 3 operations" in log_file.read_text()
