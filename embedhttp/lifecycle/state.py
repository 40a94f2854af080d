"""Server lifecycle state management."""

import logging
import threading

from embedhttp.domain.correlation_id import CorrelationLoggerAdapter

LIFECYCLE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("embedhttp.lifecycle"), {}
)


class ServerLifecycle:
    """Stop flag shared between signal handlers and the event loop."""

    def __init__(self) -> None:
        self._stop_event = threading.Event()

    def should_stop(self) -> bool:
        """Check if the event loop should exit after the current tick."""
        return self._stop_event.is_set()

    def request_stop(self) -> None:
        """Ask the event loop to stop and release its sockets."""
        if not self._stop_event.is_set():
            LIFECYCLE_LOGGER.info("Stop requested", extra={"event": "stop_requested"})
        self._stop_event.set()
