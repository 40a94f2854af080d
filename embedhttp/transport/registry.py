"""Connection registry: owns the listener and routes host events to connections."""

import logging
from typing import Optional

from embedhttp.domain.correlation_id import CorrelationLoggerAdapter, connection_scope
from embedhttp.domain.http_types import CLOSED_SOCKET, EventKind, HostEvent, SocketHost
from embedhttp.transport.connection import Connection

REGISTRY_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("embedhttp.transport.registry"), {}
)


class HttpServer:
    """Tracks live connections for one listening socket.

    Closed connections stay in ``connections`` until ``reap`` is called.
    """

    def __init__(self, host: SocketHost) -> None:
        self.host = host
        self.listener: Optional[int] = None
        self.connections: list[Connection] = []
        self.sequence = 0

    def listen(self, port: int) -> Optional[int]:
        """Open the listener on ``port``, replacing any existing one."""
        self._close_listener()
        handle = self.host.create_listener(port)
        if handle is None or handle < 0:
            REGISTRY_LOGGER.warning(
                "Failed to create listener",
                extra={"event": "listen_failed", "port": port},
            )
            self.listener = None
            return None
        self.listener = handle
        REGISTRY_LOGGER.info(
            "Listening for connections",
            extra={"event": "listener_created", "port": port, "listener": handle},
        )
        return handle

    def remove(self) -> None:
        """Destroy the listener and drop every connection."""
        self._close_listener()
        for connection in self.connections:
            if connection.connected:
                connection.remove()
        self.connections.clear()

    def _close_listener(self) -> None:
        if self.listener is None:
            return
        self.host.destroy(self.listener)
        REGISTRY_LOGGER.info(
            "Listener removed",
            extra={"event": "listener_removed", "listener": self.listener},
        )
        self.listener = None

    def find(self, socket: int) -> Optional[Connection]:
        """Return the live connection bound to ``socket``, if any."""
        if socket == CLOSED_SOCKET:
            return None
        for connection in self.connections:
            if connection.socket == socket:
                return connection
        return None

    def dispatch(self, event: HostEvent) -> Optional[Connection]:
        """Apply one host event and return the affected connection."""
        kind = getattr(event, "kind", None)
        if kind is EventKind.CONNECT:
            return self._open(event.socket)
        if kind not in (EventKind.DATA, EventKind.DISCONNECT):
            REGISTRY_LOGGER.debug(
                "Ignoring unrecognized host event", extra={"event": "event_ignored"}
            )
            return None

        connection = self.find(event.socket)
        if connection is None:
            REGISTRY_LOGGER.debug(
                "No connection for host event",
                extra={"event": "event_unresolved", "socket": event.socket},
            )
            return None

        with connection_scope(connection.id):
            if kind is EventKind.DATA:
                connection.feed(event.payload)
            else:
                connection.mark_disconnected()
                REGISTRY_LOGGER.info(
                    "Connection closed",
                    extra={
                        "event": "connection_closed",
                        "connection_id": connection.id,
                    },
                )
        return connection

    def _open(self, socket: int) -> Connection:
        stale = self.find(socket)
        if stale is not None:
            REGISTRY_LOGGER.warning(
                "Socket reused before disconnect was reported",
                extra={
                    "event": "socket_reused",
                    "socket": socket,
                    "connection_id": stale.id,
                },
            )
            stale.mark_disconnected()

        self.sequence += 1
        connection = Connection(self.sequence, socket, self.host)
        self.connections.append(connection)
        REGISTRY_LOGGER.info(
            "Connection opened",
            extra={
                "event": "connection_opened",
                "connection_id": connection.id,
                "socket": socket,
            },
        )
        return connection

    def reap(self) -> int:
        """Drop closed connections in one pass and return how many were removed."""
        remaining = [
            connection
            for connection in self.connections
            if connection.socket != CLOSED_SOCKET
        ]
        removed = len(self.connections) - len(remaining)
        self.connections[:] = remaining
        if removed:
            REGISTRY_LOGGER.debug(
                "Reaped closed connections",
                extra={
                    "event": "connections_reaped",
                    "removed": removed,
                    "remaining": len(remaining),
                },
            )
        return removed
