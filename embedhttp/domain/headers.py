"""Header codec: default response headers, overrides, and parameter parsing."""

from email.utils import formatdate
from typing import Iterable, Mapping, Optional, Sequence, Union

from embedhttp.bootstrap.config import KEEP_ALIVE_TIMEOUT, SERVER_TOKEN

HeaderValue = Union[str, int, Sequence[str]]
HeaderOverrides = Union[
    Mapping[str, HeaderValue], Iterable[tuple[str, HeaderValue]], None
]
HeaderList = list[tuple[str, str]]

DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"


def http_date(timestamp: Optional[float] = None) -> str:
    """Return an RFC 1123 GMT date, e.g. ``Sun, 06 Nov 1994 08:49:37 GMT``."""
    return formatdate(timestamp, usegmt=True)


def format_header_value(value: HeaderValue) -> str:
    """Render a header value; multi-part values are joined with ``"; "``."""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("latin-1")
    if isinstance(value, int):
        return str(value)
    return "; ".join(str(part) for part in value)


def default_headers(
    content_length: int, timestamp: Optional[float] = None
) -> HeaderList:
    """Return the default response headers in their fixed order."""
    return [
        ("Accept-ranges", "bytes"),
        ("Date", http_date(timestamp)),
        ("Server", SERVER_TOKEN),
        ("Content-Type", DEFAULT_CONTENT_TYPE),
        ("Content-Length", str(content_length)),
        ("Connection", "Keep-Alive"),
        ("Keep-Alive", f"timeout={KEEP_ALIVE_TIMEOUT}"),
    ]


def _override_items(overrides: HeaderOverrides) -> list[tuple[str, HeaderValue]]:
    if overrides is None:
        return []
    if isinstance(overrides, Mapping):
        return list(overrides.items())
    return list(overrides)


def compose_headers(
    content_length: int,
    overrides: HeaderOverrides = None,
    timestamp: Optional[float] = None,
) -> HeaderList:
    """Merge caller overrides into the default header set.

    Each override drops any default whose name matches case-insensitively and
    is appended after the surviving defaults, in caller order. Overrides never
    replace one another, so repeated names (``Set-Cookie``) are all kept.
    """
    defaults = default_headers(content_length, timestamp)
    appended: HeaderList = []
    for name, value in _override_items(overrides):
        name = name.strip()
        lowered = name.lower()
        defaults = [(key, val) for key, val in defaults if key.lower() != lowered]
        appended.append((name, format_header_value(value)))
    return defaults + appended


def _split_unquoted(value: str, separator: str = ";") -> list[str]:
    """Split on ``separator`` outside of double-quoted sections."""
    pieces = []
    current = []
    quoted = False
    for char in value:
        if char == '"':
            quoted = not quoted
        elif char == separator and not quoted:
            pieces.append("".join(current))
            current = []
            continue
        current.append(char)
    pieces.append("".join(current))
    return pieces


def unquote(value: str) -> str:
    """Strip one pair of surrounding double quotes, if present."""
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    return value


def parse_header_params(value: str) -> tuple[str, dict[str, str]]:
    """Split ``type/subtype; key=value`` into the main value and its params.

    Parameter names are lower-cased; malformed parameters are skipped.
    """
    pieces = _split_unquoted(value)
    main_value = pieces[0].strip()
    params: dict[str, str] = {}
    for piece in pieces[1:]:
        key, separator, raw_value = piece.partition("=")
        key = key.strip().lower()
        if not separator or not key:
            continue
        params[key] = unquote(raw_value.strip())
    return main_value, params


def parse_header_lines(lines: Iterable[str]) -> dict[str, str]:
    """Convert raw header lines into a lowercase-keyed dictionary.

    Lines without a colon are ignored; a later duplicate name overwrites an
    earlier one.
    """
    parsed = {}
    for line in lines:
        name, separator, value = line.partition(":")
        if not separator:
            continue
        name = name.strip().lower()
        if not name:
            continue
        parsed[name] = value.strip()
    return parsed


def media_type(value: str) -> str:
    """Return the lower-cased media type of a Content-Type value."""
    return parse_header_params(value)[0].lower()
