"""Logging system setup using a non-blocking queue handler."""

import atexit
import logging
import logging.handlers
import queue
import sys
from typing import Optional

from ..config import get_settings

LOGGER_NAME = "agent_cli_sdk"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Initialize stderr logging for the SDK.

    Records are handed to a QueueHandler so callers on the event loop never
    block on stream writes; a QueueListener thread drains them to stderr.
    Calling this again replaces the previous configuration.
    """
    settings = get_settings()

    app_logger = logging.getLogger(LOGGER_NAME)
    shutdown_logging()
    app_logger.setLevel(level or settings.logging.level)
    app_logger.propagate = False

    if app_logger.hasHandlers():
        app_logger.handlers.clear()

    if not settings.logging.enabled:
        app_logger.addHandler(logging.NullHandler())
        return app_logger

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(logging.Formatter(_FORMAT))

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(-1)
    queue_handler = logging.handlers.QueueHandler(log_queue)
    queue_listener = logging.handlers.QueueListener(
        log_queue, stderr_handler, respect_handler_level=True
    )
    queue_listener.start()

    # Store listener for cleanup
    app_logger._queue_listener = queue_listener  # type: ignore[attr-defined]
    atexit.register(queue_listener.stop)

    app_logger.addHandler(queue_handler)
    app_logger.debug(f"Logging initialized at level {app_logger.level}")
    return app_logger


def shutdown_logging() -> None:
    """Stop the queue listener if it exists."""
    app_logger = logging.getLogger(LOGGER_NAME)
    listener = getattr(app_logger, "_queue_listener", None)
    if listener is not None:
        listener.stop()
        atexit.unregister(listener.stop)
        delattr(app_logger, "_queue_listener")
