"""
Logging setup driven by LoggingConfig.

Library modules only create ``logging.getLogger(__name__)``; handlers are
attached here, once, by the command-line entry point.
"""

import logging

from .config import LoggingConfig


def setup_logging(settings: LoggingConfig, log_file: bool = True) -> logging.Logger:
    """
    Configure the ``tmdb_silver`` logger with console and file handlers.

    Args:
        settings: Logging section of the configuration
        log_file: Also write to ``settings.log_file``

    Returns:
        The configured package logger
    """
    root = logging.getLogger("tmdb_silver")
    root.setLevel(settings.log_level)

    # Re-running setup (e.g. from tests) must not stack handlers
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(settings.log_format, datefmt=settings.date_format)

    if settings.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.propagate = False
    return root
