"""Incremental HTTP/1.1 request parser.

The parser is a pure transition function over three states::

    HeadersPending(buffer) -> BodyPending(head, body) -> Complete(request)

``advance`` never raises for malformed input; missing request-line tokens and
unparsable header lines simply leave the matching fields unset.

A request without a usable Content-Length completes with whatever followed
the header terminator in the same delivery as its body. Bodies that stream in
later, or pipelined requests sent behind such a request, cannot be told
apart from that body.
"""

from dataclasses import dataclass
from typing import Optional, Union

from embedhttp.bootstrap.config import HEADER_DELIMITER
from embedhttp.domain.headers import parse_header_lines
from embedhttp.domain.http_types import HttpRequest
from embedhttp.pipeline.forms import decode_post, parse_query_string


@dataclass(frozen=True)
class RequestHead:
    """Request line and headers, parsed once the header terminator is seen."""

    method: Optional[str]
    uri: Optional[str]
    version: Optional[str]
    query: Optional[dict[str, str]]
    headers: dict[str, str]


@dataclass(frozen=True)
class HeadersPending:
    buffer: bytes = b""


@dataclass(frozen=True)
class BodyPending:
    """Head parsed, body still short of ``content_length``.

    Deliveries are kept as a tuple and joined once, when the body completes.
    """

    head: RequestHead
    chunks: tuple[bytes, ...]
    received: int
    content_length: int

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)


@dataclass(frozen=True)
class Complete:
    request: HttpRequest
    # bytes past the declared body, kept for the next request
    leftover: bytes = b""


ParserState = Union[HeadersPending, BodyPending, Complete]

INITIAL_STATE = HeadersPending()


def parse_request_line(
    line: str,
) -> tuple[Optional[str], Optional[str], Optional[str]]:
    """Split the request line on single spaces into method, target and version."""
    tokens = line.split(" ")
    padded = tokens[:3] + [""] * (3 - len(tokens[:3]))
    method, target, version = (token or None for token in padded)
    return method, target, version


def split_target(target: str) -> tuple[str, Optional[dict[str, str]]]:
    """Separate the path from its query string."""
    path, separator, query = target.partition("?")
    return path, parse_query_string(query) if separator else None


def parse_head(head: bytes) -> RequestHead:
    """Parse the request line and header block (without the terminator)."""
    lines = head.decode("utf-8", "replace").split("\r\n")
    method, target, version = parse_request_line(lines[0])
    uri, query = split_target(target) if target is not None else (None, None)
    return RequestHead(
        method=method,
        uri=uri,
        version=version,
        query=query,
        headers=parse_header_lines(lines[1:]),
    )


def declared_length(headers: dict[str, str]) -> Optional[int]:
    """Return a usable Content-Length, or None when absent or invalid."""
    raw_value = headers.get("content-length")
    if raw_value is None:
        return None
    try:
        length = int(raw_value)
    except ValueError:
        return None
    return length if length >= 0 else None


def _complete(head: RequestHead, body: bytes, leftover: bytes) -> Complete:
    request = HttpRequest(
        method=head.method,
        uri=head.uri,
        version=head.version,
        headers=dict(head.headers),
        query=head.query,
        body=body,
        post=decode_post(head.headers, body),
    )
    return Complete(request, leftover)


def _fill_body(
    head: RequestHead, chunks: tuple[bytes, ...], received: int, content_length: int
) -> ParserState:
    if received < content_length:
        return BodyPending(head, chunks, received, content_length)
    body = b"".join(chunks)
    return _complete(head, body[:content_length], body[content_length:])


def advance(state: ParserState, chunk: bytes) -> ParserState:
    """Feed one delivery of bytes into ``state`` and return the next state."""
    if not isinstance(chunk, (bytes, bytearray, memoryview)):
        raise TypeError(f"expected bytes, got {type(chunk).__name__}")
    chunk = bytes(chunk)

    if isinstance(state, Complete):
        return Complete(state.request, state.leftover + chunk)

    if isinstance(state, BodyPending):
        return _fill_body(
            state.head,
            state.chunks + (chunk,),
            state.received + len(chunk),
            state.content_length,
        )

    # blank lines before the request line are ignored
    buffer = (state.buffer + chunk).lstrip(b"\r\n")
    head_bytes, separator, rest = buffer.partition(HEADER_DELIMITER)
    if not separator:
        return HeadersPending(buffer)

    head = parse_head(head_bytes)
    content_length = declared_length(head.headers)
    if content_length is None:
        # without a declared length the first fragment is the whole body
        return _complete(head, rest, b"")
    return _fill_body(head, (rest,), len(rest), content_length)


def feed_all(chunks, state: ParserState = INITIAL_STATE) -> ParserState:
    """Advance ``state`` through every chunk in order."""
    for chunk in chunks:
        state = advance(state, chunk)
    return state


def request_view(state: ParserState) -> HttpRequest:
    """Return the request as currently known for ``state``."""
    if isinstance(state, Complete):
        return state.request
    if isinstance(state, BodyPending):
        head = state.head
        return HttpRequest(
            method=head.method,
            uri=head.uri,
            version=head.version,
            headers=dict(head.headers),
            query=head.query,
            body=state.body,
        )
    return HttpRequest()
