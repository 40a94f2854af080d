"""Per-connection correlation IDs for log records, held in a contextvar.

Every record emitted while a connection's event is being handled carries
``conn-<id>``; records emitted outside that scope carry ``-``.
"""

import contextvars
import logging
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_PREFIX = "embedhttp."

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def connection_correlation_id(connection_id: int) -> str:
    return f"conn-{connection_id}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


@contextmanager
def connection_scope(connection_id: int) -> Iterator[str]:
    """Tag records logged inside the block with the connection's ID.

    The previous value is restored on exit, so scopes may nest.
    """
    correlation_id = connection_correlation_id(connection_id)
    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)


def component_name(logger_name: str) -> str:
    """Strip the project prefix: ``embedhttp.transport.loop`` -> ``transport.loop``."""
    if logger_name.startswith(LOGGER_PREFIX):
        return logger_name[len(LOGGER_PREFIX) :]
    return logger_name


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Adds ``correlation_id`` and ``component`` to the ``extra`` of each call."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        correlation_id = get_correlation_id()
        extra["correlation_id"] = "-" if correlation_id is None else correlation_id
        extra["component"] = component_name(self.logger.name)
        kwargs["extra"] = extra
        return msg, kwargs
