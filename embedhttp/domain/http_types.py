"""Shared HTTP and host-boundary type definitions to avoid circular imports."""

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

from embedhttp.domain.field_lookup import MISSING, resolve, to_text

CLOSED_SOCKET = -1


@dataclass
class MultipartPart:
    """One decoded ``multipart/form-data`` part."""

    name: str
    headers: dict[str, str]
    body: bytes
    filename: Optional[str] = None

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", "replace")

    def as_tree(self) -> dict[str, Any]:
        tree: dict[str, Any] = {
            "name": self.name,
            "headers": self.headers,
            "body": self.body,
        }
        if self.filename is not None:
            tree["filename"] = self.filename
        return tree


FormValue = Union[str, MultipartPart]


@dataclass
class HttpRequest:
    """Represents an in-progress or fully received HTTP request."""

    method: Optional[str] = None
    uri: Optional[str] = None
    version: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)
    query: Optional[dict[str, str]] = None
    body: bytes = b""
    post: Optional[dict[str, FormValue]] = None

    def as_tree(self) -> dict[str, Any]:
        """Expose the request as nested maps; request-line fields shadow headers."""
        tree: dict[str, Any] = dict(self.headers)
        tree["headers"] = self.headers
        tree["method"] = self.method
        tree["uri"] = self.uri
        tree["version"] = self.version
        tree["body"] = self.body
        tree["query"] = self.query
        tree["post"] = self.post
        return tree

    def has(self, path: str) -> bool:
        """Return True when the dotted ``path`` resolves to a present field."""
        return resolve(self, path) is not MISSING

    def get(self, path: str) -> str:
        """Return the string value at the dotted ``path`` or an empty string."""
        return to_text(resolve(self, path))


@dataclass
class HttpResponse:
    """Represents a response an application wants sent on a connection."""

    status: int
    body: Union[str, bytes] = b""
    headers: dict[str, Union[str, list[str]]] = field(default_factory=dict)


class EventKind(enum.Enum):
    """Kinds of host events the connection registry understands."""

    CONNECT = "connect"
    DATA = "data"
    DISCONNECT = "disconnect"


@dataclass(frozen=True)
class HostEvent:
    """A single event delivered by the host socket layer."""

    kind: EventKind
    socket: int
    payload: bytes = b""


class SocketHost(Protocol):
    """Socket capability provided by the embedding host."""

    def create_listener(self, port: int) -> int:
        """Return a listener handle, or a negative value on failure."""

    def destroy(self, handle: int) -> None:
        """Close the listener or connection behind ``handle``."""

    def send(self, handle: int, data: bytes) -> int:
        """Write ``data`` and return the byte count, or a negative value on failure."""
