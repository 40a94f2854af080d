"""Socket host capability backed by ``selectors``."""

import logging
import selectors
import socket
from typing import Optional

from embedhttp.bootstrap.config import (
    LISTEN_BACKLOG,
    RECV_BUFFER_SIZE,
    SEND_TIMEOUT_SECONDS,
)
from embedhttp.domain.correlation_id import CorrelationLoggerAdapter
from embedhttp.domain.http_types import EventKind, HostEvent

SOCKET_LOGGER = CorrelationLoggerAdapter(logging.getLogger("embedhttp.socket"), {})


class SelectorSocketHost:
    """Owns real sockets and turns readiness into connect/data/disconnect events.

    Handles are socket file descriptors. Socket errors never escape: failed
    binds return ``-1``, failed sends return ``-1`` and broken reads are
    reported as disconnects.
    """

    def __init__(self, bind_host: str = "localhost") -> None:
        self._bind_host = bind_host
        self._selector = selectors.DefaultSelector()
        self._sockets: dict[int, socket.socket] = {}
        self._listeners: set[int] = set()

    def create_listener(self, port: int) -> int:
        try:
            server_socket = socket.create_server(
                (self._bind_host, port), backlog=LISTEN_BACKLOG
            )
        except OSError as error:
            SOCKET_LOGGER.error(
                "Failed to bind listening socket",
                extra={
                    "event": "bind_failed",
                    "host": self._bind_host,
                    "port": port,
                    "error_type": type(error).__name__,
                },
            )
            return -1
        server_socket.setblocking(False)
        handle = server_socket.fileno()
        self._sockets[handle] = server_socket
        self._listeners.add(handle)
        self._selector.register(server_socket, selectors.EVENT_READ)
        return handle

    def destroy(self, handle: int) -> None:
        sock = self._sockets.pop(handle, None)
        if sock is None:
            return
        is_listener = handle in self._listeners
        self._listeners.discard(handle)
        try:
            self._selector.unregister(sock)
        except (KeyError, ValueError):
            pass
        if not is_listener:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        sock.close()

    def send(self, handle: int, data: bytes) -> int:
        sock = self._sockets.get(handle)
        if sock is None or handle in self._listeners:
            return -1
        try:
            sock.sendall(data)
        except OSError as error:
            SOCKET_LOGGER.warning(
                "Socket write failed",
                extra={
                    "event": "socket_write_failed",
                    "socket": handle,
                    "error_type": type(error).__name__,
                },
            )
            return -1
        return len(data)

    def poll(self, timeout: Optional[float] = None) -> list[HostEvent]:
        """Wait up to ``timeout`` seconds and return the pending host events."""
        events: list[HostEvent] = []
        for key, _ in self._selector.select(timeout):
            if key.fd in self._listeners:
                event = self._accept(key.fileobj)
            else:
                event = self._receive(key.fd, key.fileobj)
            if event is not None:
                events.append(event)
        return events

    def _accept(self, listener: socket.socket) -> Optional[HostEvent]:
        try:
            client_socket, client_address = listener.accept()
        except (BlockingIOError, InterruptedError):
            return None
        except OSError as error:
            SOCKET_LOGGER.error(
                "Socket accept failed",
                extra={"event": "accept_error", "error_type": type(error).__name__},
            )
            return None
        client_socket.settimeout(SEND_TIMEOUT_SECONDS)
        handle = client_socket.fileno()
        self._sockets[handle] = client_socket
        self._selector.register(client_socket, selectors.EVENT_READ)
        if SOCKET_LOGGER.logger.isEnabledFor(logging.DEBUG):
            SOCKET_LOGGER.debug(
                "Client connection accepted",
                extra={
                    "event": "client_accepted",
                    "socket": handle,
                    "host": f"{client_address[0]}:{client_address[1]}",
                },
            )
        return HostEvent(EventKind.CONNECT, handle)

    def _receive(self, handle: int, sock: socket.socket) -> Optional[HostEvent]:
        try:
            data = sock.recv(RECV_BUFFER_SIZE)
        except (BlockingIOError, InterruptedError):
            return None
        except OSError:
            data = b""
        if not data:
            self.destroy(handle)
            return HostEvent(EventKind.DISCONNECT, handle)
        return HostEvent(EventKind.DATA, handle, data)

    def close(self) -> None:
        """Close every socket still owned by the host."""
        for handle in list(self._sockets):
            self.destroy(handle)
        self._selector.close()
