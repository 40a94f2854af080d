"""Unit tests covering per-connection parsing and response behavior."""

import logging

from embedhttp.domain.http_types import CLOSED_SOCKET
from embedhttp.transport.connection import Connection
from tests.utils.host import header_map, split_response

GET_REQUEST = b"GET /search?q=cats HTTP/1.1\r\nHost: localhost\r\n\r\n"


def test_new_connection_is_open_and_empty(fake_host):
    connection = Connection(1, 7, fake_host, connect_time=10.0)

    assert connection.connected
    assert connection.connect_time == 10.0
    assert connection.disconnect_time is None
    assert not connection.has_request
    assert connection.request.method is None


def test_feed_reports_completion(fake_host):
    connection = Connection(1, 7, fake_host)

    assert not connection.feed(GET_REQUEST[:10])
    assert connection.feed(GET_REQUEST[10:])
    assert connection.get("query.q") == "cats"
    assert connection.has("host")


def test_respond_sends_once_and_flushes(fake_host):
    connection = Connection(1, 7, fake_host)
    connection.feed(GET_REQUEST)

    sent = connection.respond(200, "hi", {"Content-Type": "text/plain"})

    assert len(fake_host.sent) == 1
    handle, data = fake_host.sent[0]
    assert handle == 7
    assert sent == len(data)
    status, headers, body = split_response(data)
    assert status == "HTTP/1.1 200 OK"
    assert header_map(headers)["content-type"] == "text/plain"
    assert body == b"hi\r\n"
    assert not connection.has_request
    assert connection.request.method is None


def test_respond_without_flush_keeps_request(fake_host):
    connection = Connection(1, 7, fake_host)
    connection.feed(GET_REQUEST)

    connection.respond(204, flush=False)

    assert connection.has_request
    assert connection.request.uri == "/search"
    connection.flush()
    assert not connection.has_request


def test_flush_replays_backlogged_request(fake_host):
    connection = Connection(1, 7, fake_host)
    connection.feed(GET_REQUEST)
    connection.feed(b"GET /second HTTP/1.1\r\n")
    connection.feed(b"\r\n")

    assert connection.request.uri == "/search"
    assert connection.backlog == b"GET /second HTTP/1.1\r\n\r\n"

    connection.respond(200, "first")

    assert connection.has_request
    assert connection.request.uri == "/second"
    assert connection.backlog == b""


def test_next_request_parses_cleanly_after_unframed_post(fake_host):
    connection = Connection(1, 7, fake_host)
    connection.feed(
        b"POST /f HTTP/1.1\r\n"
        b"Content-Type: application/x-www-form-urlencoded\r\n\r\n"
        b"a=1&b=2"
    )
    assert connection.get("post.a") == "1"

    connection.respond(200, "ok")
    assert connection.feed(b"GET /next HTTP/1.1\r\nHost: x\r\n\r\n")

    assert connection.request.method == "GET"
    assert connection.request.uri == "/next"
    assert connection.get("host") == "x"


def test_send_failure_is_reported(fake_host, caplog):
    fake_host.fail_send = True
    connection = Connection(1, 7, fake_host)
    connection.feed(GET_REQUEST)

    caplog.set_level(logging.WARNING, logger="embedhttp")
    assert connection.respond(500) < 0
    assert any(getattr(r, "event", None) == "send_failed" for r in caplog.records)


def test_remove_destroys_socket_and_marks_closed(fake_host):
    connection = Connection(3, 9, fake_host)

    connection.remove()
    connection.remove()

    assert fake_host.destroyed == [9]
    assert not connection.connected
    assert connection.socket == CLOSED_SOCKET
    assert connection.disconnect_time is not None
    assert connection.id == 3


def test_respond_on_closed_connection_does_not_send(fake_host):
    connection = Connection(3, 9, fake_host)
    connection.feed(GET_REQUEST)
    connection.mark_disconnected()

    assert connection.respond(200, "late") == -1
    assert connection.send(b"raw") == -1
    assert fake_host.sent == []
    assert not connection.has_request
