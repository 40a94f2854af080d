"""HTTP response framing and output."""

import logging
from typing import Optional, Union

from embedhttp.bootstrap.config import CRLF, HEADER_DELIMITER, HTTP_VERSION
from embedhttp.domain.correlation_id import CorrelationLoggerAdapter
from embedhttp.domain.headers import HeaderOverrides, compose_headers
from embedhttp.domain.http_types import SocketHost
from embedhttp.domain.status_codes import status_line

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("embedhttp.pipeline.io"), {})

Body = Union[str, bytes]


def encode_body(body: Optional[Body]) -> bytes:
    """Return the body as bytes, encoding text as UTF-8."""
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    return bytes(body)


def build_response(
    status: int,
    body: Optional[Body] = None,
    headers: HeaderOverrides = None,
    timestamp: Optional[float] = None,
) -> bytes:
    """Serialize a full response: status line, headers, blank line, body, CRLF.

    Content-Length counts the trailing CRLF that follows the body.
    """
    payload = encode_body(body)
    header_list = compose_headers(len(payload) + len(CRLF), headers, timestamp)
    lines = [status_line(status, HTTP_VERSION)]
    lines.extend(f"{name}: {value}" for name, value in header_list)
    header_block = "\r\n".join(lines).encode("utf-8")
    return header_block + HEADER_DELIMITER + payload + CRLF


def send_response(
    host: SocketHost,
    handle: int,
    status: int,
    body: Optional[Body] = None,
    headers: HeaderOverrides = None,
) -> int:
    """Build the response and hand it to the host in a single send."""
    data = build_response(status, body, headers)
    sent = host.send(handle, data)
    if sent < 0:
        IO_LOGGER.warning(
            "Host failed to send response",
            extra={"event": "send_failed", "socket": handle, "status_code": status},
        )
        return sent
    IO_LOGGER.debug(
        "Sent response",
        extra={
            "event": "response_sent",
            "socket": handle,
            "status_code": status,
            "bytes_out": len(data),
        },
    )
    return sent
