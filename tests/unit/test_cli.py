"""Golden unit tests validating CLI parsing behavior."""

from typing import TYPE_CHECKING

from embedhttp.bootstrap.config import (
    DEFAULT_LOG_JSON,
    DEFAULT_POLL_INTERVAL_MS,
    parse_cli_args,
)

if TYPE_CHECKING:
    from _pytest.monkeypatch import MonkeyPatch


def test_parse_cli_args_uses_defaults() -> None:
    """Defaults ensure server launches with local settings."""
    args = parse_cli_args([])

    assert args.host == "localhost"
    assert args.port == 4221
    assert args.log_level == "INFO"
    assert args.log_destination == "stdout"
    assert args.log_json is DEFAULT_LOG_JSON
    assert args.verbose is False
    assert args.poll_interval_ms == DEFAULT_POLL_INTERVAL_MS


def test_parse_cli_args_honors_overrides() -> None:
    """Overrides should replace defaults when flags are present."""
    args = parse_cli_args(
        [
            "--host",
            "0.0.0.0",
            "--port",
            "9090",
            "--log-level",
            "warning",
            "--log-destination",
            "server.log",
            "--no-log-json",
            "--poll-interval-ms",
            "25",
        ]
    )

    assert args.host == "0.0.0.0"
    assert args.port == 9090
    assert args.log_level == "WARNING"
    assert args.log_destination == "server.log"
    assert args.log_json is False
    assert args.poll_interval_ms == 25


def test_verbose_forces_debug_level() -> None:
    args = parse_cli_args(["--log-level", "ERROR", "-v"])

    assert args.verbose is True
    assert args.log_level == "DEBUG"


def test_parse_cli_args_honors_environment(monkeypatch: "MonkeyPatch") -> None:
    """Environment variables should seed default logging configuration."""

    monkeypatch.setenv("EMBEDHTTP_LOG_LEVEL", "warning")
    monkeypatch.setenv("EMBEDHTTP_LOG_DESTINATION", "app.log")

    args = parse_cli_args([])

    assert args.log_level == "WARNING"
    assert args.log_destination == "app.log"
