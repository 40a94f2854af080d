"""Single-threaded event loop driving the connection registry."""

import argparse
import logging

from embedhttp.bootstrap.socket_factory import SelectorSocketHost
from embedhttp.domain.correlation_id import CorrelationLoggerAdapter, connection_scope
from embedhttp.handlers.system_handlers import server_error_response
from embedhttp.lifecycle.state import ServerLifecycle
from embedhttp.pipeline.router import route_request
from embedhttp.transport.connection import Connection
from embedhttp.transport.registry import HttpServer

LOOP_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("embedhttp.transport.loop"), {}
)


def serve_connection(connection: Connection, server: HttpServer) -> int:
    """Answer every complete request on ``connection``; return how many."""
    served = 0
    with connection_scope(connection.id):
        while connection.connected and connection.has_request:
            request = connection.request
            try:
                response = route_request(request, len(server.connections))
            except Exception as error:  # pylint: disable=broad-except
                LOOP_LOGGER.error(
                    "Handler raised an exception",
                    extra={
                        "event": "handler_error",
                        "connection_id": connection.id,
                        "route": request.uri or "-",
                        "error_type": type(error).__name__,
                    },
                    exc_info=True,
                )
                response = server_error_response()
            connection.respond(response.status, response.body, response.headers)
            served += 1
    return served


def run_tick(host: SelectorSocketHost, server: HttpServer, timeout: float) -> int:
    """Drain one batch of host events, answer complete requests, then reap."""
    events = host.poll(timeout)
    for event in events:
        connection = server.dispatch(event)
        if connection is not None:
            serve_connection(connection, server)
    server.reap()
    return len(events)


def run_server(args: argparse.Namespace, lifecycle: ServerLifecycle) -> int:
    """Listen on the configured port and serve until a stop is requested."""
    host = SelectorSocketHost(args.host)
    server = HttpServer(host)
    if server.listen(args.port) is None:
        LOOP_LOGGER.critical(
            "Unable to listen, exiting",
            extra={"event": "server_failed", "host": args.host, "port": args.port},
        )
        host.close()
        return 1

    LOOP_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": args.host,
            "port": args.port,
            "poll_interval_ms": args.poll_interval_ms,
        },
    )
    timeout = max(args.poll_interval_ms, 1) / 1000
    try:
        while not lifecycle.should_stop():
            run_tick(host, server, timeout)
    finally:
        server.remove()
        host.close()
        LOOP_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})
    return 0
