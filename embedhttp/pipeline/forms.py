"""Query-string and form body decoding."""

import logging
from typing import Optional
from urllib.parse import unquote_plus

from embedhttp.bootstrap.config import CRLF, HEADER_DELIMITER
from embedhttp.domain.correlation_id import CorrelationLoggerAdapter
from embedhttp.domain.headers import (
    media_type,
    parse_header_lines,
    parse_header_params,
)
from embedhttp.domain.http_types import FormValue, MultipartPart

FORMS_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("embedhttp.pipeline.forms"), {}
)

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM_DATA = "multipart/form-data"


def parse_query_string(query: str) -> dict[str, str]:
    """Split ``a=1&b=2`` into a dict; values are kept exactly as sent."""
    parsed = {}
    for pair in query.split("&"):
        key, separator, value = pair.partition("=")
        if not separator or not key:
            continue
        parsed[key] = value
    return parsed


def parse_urlencoded(body: bytes) -> dict[str, FormValue]:
    """Decode an ``application/x-www-form-urlencoded`` body."""
    fields: dict[str, FormValue] = {}
    text = body.decode("utf-8", "replace").rstrip("\r\n")
    for entry in text.split("&"):
        name, separator, value = entry.partition("=")
        if not separator or not name:
            continue
        fields[unquote_plus(name)] = unquote_plus(value)
    return fields


def _parse_part(segment: bytes) -> Optional[MultipartPart]:
    if segment.startswith(CRLF):
        segment = segment[len(CRLF) :]
    head, separator, body = segment.partition(HEADER_DELIMITER)
    if not separator:
        return None
    if body.endswith(CRLF):
        body = body[: -len(CRLF)]
    headers = parse_header_lines(head.decode("utf-8", "replace").split("\r\n"))
    disposition = headers.get("content-disposition")
    if not disposition:
        return None
    _, params = parse_header_params(disposition)
    name = params.get("name")
    if not name:
        return None
    return MultipartPart(
        name=name, headers=headers, body=body, filename=params.get("filename")
    )


def parse_multipart(body: bytes, boundary: str) -> dict[str, FormValue]:
    """Decode a ``multipart/form-data`` body delimited by ``boundary``."""
    delimiter = b"--" + boundary.encode("latin-1", "replace")
    fields: dict[str, FormValue] = {}
    # segments[0] is the preamble before the first delimiter
    for segment in body.split(delimiter)[1:]:
        if segment.startswith(b"--"):
            break
        part = _parse_part(segment)
        if part is None:
            FORMS_LOGGER.debug(
                "Dropped multipart segment without a name",
                extra={"event": "multipart_part_dropped", "bytes_in": len(segment)},
            )
            continue
        fields[part.name] = part
    return fields


def decode_post(
    headers: dict[str, str], body: bytes
) -> Optional[dict[str, FormValue]]:
    """Decode the body when Content-Type is one of the supported form encodings."""
    content_type = headers.get("content-type")
    if content_type is None:
        return None
    kind = media_type(content_type)
    if kind == MULTIPART_FORM_DATA:
        boundary = parse_header_params(content_type)[1].get("boundary")
        if not boundary:
            FORMS_LOGGER.debug(
                "Multipart body without boundary",
                extra={"event": "multipart_boundary_missing"},
            )
            return {}
        return parse_multipart(body, boundary)
    if kind == FORM_URLENCODED:
        return parse_urlencoded(body)
    return None
