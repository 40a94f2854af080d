"""Maps request paths onto the demo handlers."""

import logging
from typing import Callable, Optional

from embedhttp.domain.correlation_id import CorrelationLoggerAdapter
from embedhttp.domain.http_types import HttpRequest, HttpResponse
from embedhttp.handlers.system_handlers import (
    handle_echo,
    handle_healthz,
    handle_index,
    not_found_response,
)

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("embedhttp.pipeline.router"), {}
)

# Handlers receive the request and the number of tracked connections.
Handler = Callable[[HttpRequest, int], HttpResponse]

EXACT_ROUTES: dict[str, Handler] = {
    "/": lambda request, _count: handle_index(request),
    "/echo": lambda request, _count: handle_echo(request),
    "/healthz": lambda _request, count: handle_healthz(count),
}
PREFIX_ROUTES: tuple[tuple[str, Handler], ...] = (
    ("/echo/", EXACT_ROUTES["/echo"]),
)


def match_route(path: str) -> Optional[tuple[str, Handler]]:
    """Return ``(route, handler)`` for ``path``; exact matches win over prefixes."""
    handler = EXACT_ROUTES.get(path)
    if handler is not None:
        return path, handler
    for prefix, handler in PREFIX_ROUTES:
        if path.startswith(prefix):
            return prefix, handler
    return None


def route_request(request: HttpRequest, connection_count: int = 0) -> HttpResponse:
    """Dispatch ``request`` to its handler, or answer 404."""
    match = match_route(request.uri or "")
    if match is None:
        ROUTER_LOGGER.info(
            "No matching route found",
            extra={
                "event": "route_not_found",
                "route": request.uri or "-",
                "method": request.method or "-",
            },
        )
        return not_found_response(request)

    route, handler = match
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Route matched", extra={"event": "route_matched", "route": route}
        )
    return handler(request, connection_count)
