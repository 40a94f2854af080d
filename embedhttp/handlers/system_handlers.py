"""Demo handlers for the index page, request echo, and health checks."""

import json
import logging
from typing import Any

from embedhttp.domain.correlation_id import CorrelationLoggerAdapter
from embedhttp.domain.http_types import HttpRequest, HttpResponse, MultipartPart

SYSTEM_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("embedhttp.handlers.system"), {}
)

JSON_CONTENT_TYPE = ["application/json", "charset=utf-8"]
TEXT_CONTENT_TYPE = ["text/plain", "charset=utf-8"]

INDEX_PAGE = (
    "<!doctype html><html><head><title>embedhttp</title></head>"
    "<body><h1>embedhttp</h1><p>POST a form to /echo to see it decoded.</p>"
    "</body></html>"
)


def _describe_field(value: Any) -> Any:
    if isinstance(value, MultipartPart):
        return {
            "filename": value.filename,
            "content_type": value.headers.get("content-type"),
            "body": value.text,
        }
    return value


def describe_request(request: HttpRequest) -> dict[str, Any]:
    """Return a JSON-serializable summary of a parsed request."""
    post = None
    if request.post is not None:
        post = {name: _describe_field(value) for name, value in request.post.items()}
    summary = {
        "method": request.method,
        "uri": request.uri,
        "version": request.version,
        "query": request.query,
        "headers": request.headers,
        "post": post,
    }
    if post is None:
        summary["body"] = request.body.decode("utf-8", "replace")
    return summary


def handle_index(_request: HttpRequest) -> HttpResponse:
    """Serve the landing page with the default HTML content type."""
    return HttpResponse(200, INDEX_PAGE)


def handle_echo(request: HttpRequest) -> HttpResponse:
    """Reflect the decoded request back as JSON."""
    summary = describe_request(request)
    if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
        SYSTEM_LOGGER.debug(
            "Echo request processed",
            extra={"event": "echo_request", "content_length": len(request.body)},
        )
    return HttpResponse(
        200, json.dumps(summary), {"Content-Type": JSON_CONTENT_TYPE}
    )


def handle_healthz(connection_count: int) -> HttpResponse:
    """Report liveness and the number of tracked connections."""
    SYSTEM_LOGGER.info(
        "Health check performed",
        extra={"event": "healthz_check", "remaining": connection_count},
    )
    payload = {"status": "ok", "connections": connection_count}
    return HttpResponse(200, json.dumps(payload), {"Content-Type": JSON_CONTENT_TYPE})


def not_found_response(request: HttpRequest) -> HttpResponse:
    """Return a 404 naming the missing path."""
    return HttpResponse(
        404, f"No route for {request.uri or '/'}", {"Content-Type": TEXT_CONTENT_TYPE}
    )


def server_error_response() -> HttpResponse:
    """Return a generic 500 used when a handler raises."""
    return HttpResponse(
        500, "Internal Server Error", {"Content-Type": TEXT_CONTENT_TYPE}
    )
