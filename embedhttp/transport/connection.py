"""Per-connection request state and response operations."""

import logging
import time
from typing import Optional

from embedhttp.domain.correlation_id import CorrelationLoggerAdapter
from embedhttp.domain.headers import HeaderOverrides
from embedhttp.domain.http_types import CLOSED_SOCKET, HttpRequest, SocketHost
from embedhttp.pipeline.io import Body, send_response
from embedhttp.pipeline.parser import (
    INITIAL_STATE,
    Complete,
    ParserState,
    advance,
    request_view,
)

CONNECTION_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("embedhttp.transport.connection"), {}
)


class Connection:
    """One accepted client socket plus its in-progress or completed request."""

    def __init__(
        self,
        connection_id: int,
        socket: int,
        host: SocketHost,
        connect_time: Optional[float] = None,
    ) -> None:
        self.id = connection_id
        self.socket = socket
        self.connected = True
        self.connect_time = time.time() if connect_time is None else connect_time
        self.disconnect_time: Optional[float] = None
        self.state: ParserState = INITIAL_STATE
        self._host = host

    def __repr__(self) -> str:
        return (
            f"Connection(id={self.id}, socket={self.socket}, "
            f"connected={self.connected}, has_request={self.has_request})"
        )

    @property
    def request(self) -> HttpRequest:
        """The request parsed so far; empty before the headers arrive."""
        return request_view(self.state)

    @property
    def has_request(self) -> bool:
        return isinstance(self.state, Complete)

    @property
    def backlog(self) -> bytes:
        """Bytes received after the current request, replayed on flush."""
        if isinstance(self.state, Complete):
            return self.state.leftover
        return b""

    def has(self, path: str) -> bool:
        return self.request.has(path)

    def get(self, path: str) -> str:
        return self.request.get(path)

    def feed(self, data: bytes) -> bool:
        """Advance the parser with one delivery and return ``has_request``."""
        was_complete = self.has_request
        self.state = advance(self.state, data)
        if was_complete:
            CONNECTION_LOGGER.debug(
                "Holding bytes until the current request is flushed",
                extra={
                    "event": "data_backlogged",
                    "connection_id": self.id,
                    "bytes_in": len(data),
                },
            )
        elif self.has_request:
            request = self.request
            CONNECTION_LOGGER.debug(
                "Request complete",
                extra={
                    "event": "request_complete",
                    "connection_id": self.id,
                    "method": request.method or "-",
                    "route": request.uri or "-",
                    "content_length": len(request.body),
                },
            )
        return self.has_request

    def flush(self) -> None:
        """Reset request state so the next request can be parsed."""
        leftover = self.backlog
        self.state = INITIAL_STATE
        if leftover:
            self.state = advance(self.state, leftover)

    def send(self, data: bytes) -> int:
        """Write raw bytes to the socket; negative when the write failed."""
        if not self.connected:
            CONNECTION_LOGGER.warning(
                "Write attempted on a closed connection",
                extra={"event": "send_failed", "connection_id": self.id},
            )
            return -1
        return self._host.send(self.socket, data)

    def respond(
        self,
        status: int = 200,
        body: Optional[Body] = None,
        headers: HeaderOverrides = None,
        flush: bool = True,
    ) -> int:
        """Send a framed response; with ``flush`` the request state is reset."""
        if self.connected:
            sent = send_response(self._host, self.socket, status, body, headers)
        else:
            CONNECTION_LOGGER.warning(
                "Response dropped for closed connection",
                extra={
                    "event": "send_failed",
                    "connection_id": self.id,
                    "status_code": status,
                },
            )
            sent = -1
        if flush:
            self.flush()
        return sent

    def mark_disconnected(self) -> None:
        """Record that the host closed the socket."""
        self.connected = False
        self.disconnect_time = time.time()
        self.socket = CLOSED_SOCKET

    def remove(self) -> None:
        """Close the socket through the host and mark the connection closed."""
        if self.socket != CLOSED_SOCKET:
            self._host.destroy(self.socket)
        if self.connected:
            self.mark_disconnected()
