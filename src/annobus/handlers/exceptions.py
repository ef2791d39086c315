"""Exception handlers for handler failures during dispatch.

- ``LoggingExceptionHandler``: log and continue (the default).
- ``RecordingExceptionHandler``: dead-letter style collector with
  per-handler error counts, delegating to a logging handler.
"""

from __future__ import annotations

import threading
from collections import defaultdict

from annobus.core.interfaces import IExceptionHandler
from annobus.domain.events import HandlerFailure
from annobus.observability.logger import get_logger
from annobus.observability.metrics import record_handler_failure

logger = get_logger(__name__)


class LoggingExceptionHandler:
    """Logs each failure at error level with its traceback."""

    def __init__(self, *, metrics_enabled: bool = True) -> None:
        self._metrics_enabled = metrics_enabled

    def handle(self, failure: HandlerFailure) -> None:
        if self._metrics_enabled:
            record_handler_failure(failure.handler_key, failure.event_type)
        logger.error(
            "handler_failed",
            handler=str(failure.method),
            listener=repr(failure.listener),
            event_type=failure.event_type,
            exc_info=failure.cause,
        )


class RecordingExceptionHandler:
    """Keeps every failure for later inspection.

    Thread-safe: concurrent ``post`` calls may report failures at the
    same time.
    """

    def __init__(self, delegate: IExceptionHandler | None = None) -> None:
        self._delegate = delegate if delegate is not None else LoggingExceptionHandler()
        self._lock = threading.Lock()
        self._failures: list[HandlerFailure] = []
        self._error_counts: dict[str, int] = defaultdict(int)

    def handle(self, failure: HandlerFailure) -> None:
        with self._lock:
            self._failures.append(failure)
            self._error_counts[failure.handler_key] += 1
        self._delegate.handle(failure)

    @property
    def failures(self) -> list[HandlerFailure]:
        """Access the failure list (read-only snapshot)."""
        with self._lock:
            return list(self._failures)

    def get_error_counts(self) -> dict[str, int]:
        """Return ``{Listener.method: error_count}``."""
        with self._lock:
            return dict(self._error_counts)

    def clear_failures(self) -> list[HandlerFailure]:
        """Drain the failure list and return all entries."""
        with self._lock:
            drained = self._failures[:]
            self._failures.clear()
            return drained
