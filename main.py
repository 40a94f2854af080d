"""Run the embedded HTTP server with the demo application."""

import logging
import signal
import sys

from embedhttp.bootstrap.config import parse_cli_args
from embedhttp.bootstrap.logging_setup import configure_logging
from embedhttp.domain.correlation_id import CorrelationLoggerAdapter
from embedhttp.lifecycle.state import ServerLifecycle
from embedhttp.transport.event_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("embedhttp.server"), {})


def main(argv: list[str] | None = None) -> int:
    """Start the server and block until SIGINT or SIGTERM."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_json)

    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info("Received shutdown signal", extra={"signal": signum})
        lifecycle.request_stop()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
        },
    )
    return run_server(args, lifecycle)


if __name__ == "__main__":
    sys.exit(main())
