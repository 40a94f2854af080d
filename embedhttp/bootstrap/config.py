"""Server configuration and CLI argument parsing."""

import argparse
import os


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


DEFAULT_HOST = os.getenv("EMBEDHTTP_HOST", "localhost")
DEFAULT_PORT = _env_int("EMBEDHTTP_PORT", 4221)
DEFAULT_POLL_INTERVAL_MS = _env_int("EMBEDHTTP_POLL_INTERVAL_MS", 100)
DEFAULT_VERBOSE = _env_bool("EMBEDHTTP_VERBOSE", False)
DEFAULT_LOG_JSON = _env_bool("EMBEDHTTP_LOG_JSON", True)

CRLF = b"\r\n"
HEADER_DELIMITER = b"\r\n\r\n"
HTTP_VERSION = "HTTP/1.1"
SERVER_TOKEN = "embedhttp/0.1"
KEEP_ALIVE_TIMEOUT = 15
RECV_BUFFER_SIZE = 4096
SEND_TIMEOUT_SECONDS = 5
LISTEN_BACKLOG = 64


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Embedded HTTP server")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    default_log_level = os.getenv("EMBEDHTTP_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("EMBEDHTTP_LOG_DESTINATION", "stdout")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-json",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_LOG_JSON,
        help="Emit structured JSON log lines",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_VERBOSE,
        help="Enable diagnostic (DEBUG) logging",
    )
    parser.add_argument(
        "--poll-interval-ms",
        type=int,
        default=DEFAULT_POLL_INTERVAL_MS,
        help="Maximum time in milliseconds to wait for host events per tick",
    )
    args = parser.parse_args(argv)
    if args.verbose:
        args.log_level = "DEBUG"
    return args
