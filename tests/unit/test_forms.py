"""Unit tests for form body decoding and dotted field lookup."""

from embedhttp.domain.http_types import HttpRequest, MultipartPart
from embedhttp.pipeline.forms import (
    decode_post,
    parse_multipart,
    parse_query_string,
    parse_urlencoded,
)

MULTIPART_BODY = (
    b"preamble is ignored\r\n"
    b"--boundary42\r\n"
    b'Content-Disposition: form-data; name="email"\r\n'
    b"\r\n"
    b"alice@example.com\r\n"
    b"--boundary42\r\n"
    b'Content-Disposition: form-data; name="file"; filename="notes.txt"\r\n'
    b"Content-Type: text/plain\r\n"
    b"\r\n"
    b"line one\r\nline two\r\n"
    b"--boundary42\r\n"
    b"Content-Disposition: form-data\r\n"
    b"\r\n"
    b"nameless part\r\n"
    b"--boundary42--\r\n"
    b"epilogue"
)


def test_urlencoded_pairs_are_decoded():
    assert parse_urlencoded(b"a=1&b=2") == {"a": "1", "b": "2"}


def test_urlencoded_skips_malformed_entries_and_unescapes():
    fields = parse_urlencoded(b"=orphan&flag&name=J%C3%BCrgen+M&empty=&x=1=2\r\n")
    assert fields == {"name": "Jürgen M", "empty": "", "x": "1=2"}


def test_query_string_keeps_raw_values():
    assert parse_query_string("q=a+b&lang=en") == {"q": "a+b", "lang": "en"}


def test_multipart_parts_are_keyed_by_name():
    fields = parse_multipart(MULTIPART_BODY, "boundary42")

    assert set(fields) == {"email", "file"}
    email = fields["email"]
    assert isinstance(email, MultipartPart)
    assert email.body == b"alice@example.com"
    assert email.filename is None

    upload = fields["file"]
    assert upload.filename == "notes.txt"
    assert upload.headers["content-type"] == "text/plain"
    assert upload.body == b"line one\r\nline two"


def test_multipart_without_boundary_yields_empty_post():
    headers = {"content-type": "multipart/form-data"}
    assert decode_post(headers, MULTIPART_BODY) == {}


def test_quoted_boundary_parameter_is_unquoted():
    headers = {"content-type": 'multipart/form-data; boundary="boundary42"'}
    assert set(decode_post(headers, MULTIPART_BODY)) == {"email", "file"}


def test_unrecognized_content_type_leaves_post_unset():
    assert decode_post({"content-type": "application/json"}, b"{}") is None
    assert decode_post({}, b"a=1") is None


def test_content_type_match_ignores_case_and_parameters():
    headers = {"content-type": "Application/X-WWW-Form-Urlencoded; charset=UTF-8"}
    assert decode_post(headers, b"a=1") == {"a": "1"}


def test_multipart_type_match_ignores_case():
    headers = {"content-type": "Multipart/Form-Data; boundary=boundary42"}
    assert set(decode_post(headers, MULTIPART_BODY)) == {"email", "file"}


def test_has_and_get_walk_nested_fields():
    request = HttpRequest(
        method="POST",
        uri="/upload",
        headers={"content-type": "multipart/form-data; boundary=boundary42"},
        query={"q": "cats"},
        post=parse_multipart(MULTIPART_BODY, "boundary42"),
    )

    assert request.has("post.file")
    assert request.get("post.file") == "line one\r\nline two"
    assert request.get("post.email") == "alice@example.com"
    assert request.get("post.file.filename") == "notes.txt"
    assert request.get("post.file.headers.content-type") == "text/plain"
    assert request.get("query.q") == "cats"
    assert request.get("method") == "POST"
    assert request.get("Content-Type").startswith("multipart/form-data")
    assert request.get("headers.content-type") == request.get("content-type")


def test_lookup_of_missing_paths_is_quiet():
    request = HttpRequest()

    assert not request.has("method")
    assert not request.has("post.email")
    assert not request.has("query")
    assert not request.has("")
    assert request.get("post.email") == ""
    assert request.get("uri.deeper") == ""
    assert request.get("body") == ""
