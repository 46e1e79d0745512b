"""
Logging setup for docmigrate.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .config import LoggingConfig


def configure_logging(config: Optional[LoggingConfig] = None, debug: bool = False) -> logging.Logger:
    """Configure the ``docmigrate`` logger from a ``LoggingConfig``.

    Handlers installed by a previous call are replaced, so calling this
    repeatedly (e.g. once per CLI invocation in tests) does not duplicate
    output.
    """
    config = config or LoggingConfig()
    logger = logging.getLogger("docmigrate")
    logger.setLevel(logging.DEBUG if debug else getattr(logging, config.level))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(console=Console(stderr=True), show_path=False)
    console_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(console_handler)

    if config.file:
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(config.format))
        logger.addHandler(file_handler)

    return logger
