"""Opt-in log handlers for running blocks outside a managed platform.

The host platform owns the root logger. Library modules only call
``logging.getLogger(__name__)``; a standalone runner may call
:func:`configure_logging` to get output from the ``aws_blocks`` loggers.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

from aws_blocks.config import Settings, load_settings

PACKAGE_LOGGER = "aws_blocks"

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_installed_handlers: list[logging.Handler] = []
_handlers_lock = threading.Lock()


def configure_logging(settings: Settings | None = None) -> logging.Logger:
    """Attach stderr (and optional file) handlers to the package logger.

    Calling it again replaces the handlers it installed earlier. Handlers
    installed by anyone else, on any logger, are left alone.
    """
    settings = settings or load_settings()
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.logging.file:
        try:
            Path(settings.logging.file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(settings.logging.file))
        except OSError as exc:
            logging.getLogger(__name__).warning(
                "Failed to open log file %s: %s", settings.logging.file, exc
            )

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    with _handlers_lock:
        for handler in _installed_handlers:
            package_logger.removeHandler(handler)
            handler.close()
        _installed_handlers.clear()
        for handler in handlers:
            handler.setFormatter(formatter)
            package_logger.addHandler(handler)
            _installed_handlers.append(handler)
        package_logger.setLevel(level)
        package_logger.propagate = False

    # botocore DEBUG output includes signed request headers.
    botocore_logger = logging.getLogger("botocore")
    if botocore_logger.getEffectiveLevel() < logging.INFO:
        botocore_logger.setLevel(logging.INFO)

    return package_logger


def reset_logging() -> None:
    """Remove the handlers installed by :func:`configure_logging`."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    with _handlers_lock:
        for handler in _installed_handlers:
            package_logger.removeHandler(handler)
            handler.close()
        _installed_handlers.clear()
        package_logger.setLevel(logging.NOTSET)
        package_logger.propagate = True
