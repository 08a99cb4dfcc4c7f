"""Process-wide leveled logger used by the error path.

Every call is fire-and-forget: a failing handler or formatter is reported on
stderr and never propagates into request handling.
"""
from __future__ import annotations

import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener

from .config import TRACE_LEVEL, Settings

logging.addLevelName(TRACE_LEVEL, "TRACE")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_installed_handlers: list[logging.Handler] = []


class StackTraceFormatter(logging.Formatter):
    """Render the ``stack_trace`` carried by an error record under its message."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        trace = getattr(record, "stack_trace", None)
        if trace:
            text = f"{text}\n{trace.rstrip()}"
        return text


class AppLogger:
    """Leveled recording to the process logging sink."""

    def __init__(self, name: str = "error_telemetry", logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(name)

    def log(self, message: str) -> None:
        self._emit(logging.INFO, message)

    def debug(self, message: str) -> None:
        self._emit(logging.DEBUG, message)

    def warn(self, message: str) -> None:
        self._emit(logging.WARNING, message)

    def error(self, message: str, trace: str | None = None) -> None:
        """Record an error; the trace stays on the same record as ``stack_trace``."""
        self._emit(logging.ERROR, message, {"stack_trace": trace})

    def _emit(self, level: int, message: str, extra: dict | None = None) -> None:
        try:
            self._logger.log(level, "%s", message, extra=extra)
        except Exception as exc:  # noqa: BLE001
            try:
                sys.stderr.write(f"logging failed ({exc!r}): {message}\n")
            except Exception:  # noqa: BLE001
                pass


def configure_logging(settings: Settings) -> QueueListener | None:
    """Install the root handler at the configured level.

    With ``LOG_ASYNC`` the records are queued and written to stderr by a
    background listener; the listener is returned so the caller can stop it.
    """
    formatter = StackTraceFormatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level_number)

    # Reconfiguring replaces only what a previous call installed.
    while _installed_handlers:
        root_logger.removeHandler(_installed_handlers.pop())

    if not settings.LOG_ASYNC:
        root_logger.addHandler(stream_handler)
        _installed_handlers.append(stream_handler)
        return None

    log_queue: queue.SimpleQueue = queue.SimpleQueue()
    queue_handler = QueueHandler(log_queue)
    root_logger.addHandler(queue_handler)
    _installed_handlers.append(queue_handler)

    listener = QueueListener(log_queue, stream_handler, respect_handler_level=True)
    listener.start()
    return listener


def shutdown_logging(listener: QueueListener | None) -> None:
    """Stop the background listener and detach what ``configure_logging`` installed."""
    root_logger = logging.getLogger()
    while _installed_handlers:
        root_logger.removeHandler(_installed_handlers.pop())
    if listener is not None:
        listener.stop()
