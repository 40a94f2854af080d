"""Dotted-path lookup over a tree of string-keyed maps."""

from typing import Any, Mapping, Sequence

MISSING = object()


def _children(node: Any) -> Any:
    as_tree = getattr(node, "as_tree", None)
    if callable(as_tree):
        return as_tree()
    return node


def _walk(node: Any, segments: Sequence[str]) -> Any:
    if not segments:
        return node
    node = _children(node)
    if not isinstance(node, Mapping):
        return MISSING
    head = segments[0]
    if head not in node:
        head = head.lower()
        if head not in node:
            return MISSING
    child = node[head]
    if child is None:
        return MISSING
    return _walk(child, segments[1:])


def resolve(tree: Any, path: str) -> Any:
    """Return the node at ``path`` (e.g. ``post.email``) or ``MISSING``."""
    if not path:
        return MISSING
    return _walk(tree, path.split("."))


def to_text(value: Any) -> str:
    """Render a resolved node as a string; maps render as the empty string."""
    if value is MISSING or value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "replace")
    text = getattr(value, "text", None)
    if isinstance(text, str):
        return text
    if isinstance(value, Mapping):
        return ""
    return str(value)
