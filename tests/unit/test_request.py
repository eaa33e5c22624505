"""
Unit tests for HTTP request decoding.
"""

import dataclasses

import pytest

from staticserver.errors import (
    LineTooLong,
    MalformedHeaderLine,
    MalformedRequestLine,
    MissingHostHeader,
    RequestLineError,
    TransportReadError,
    UnsupportedMethod,
    UnsupportedVersion,
)
from staticserver.http.request import (
    HTTPRequest,
    decode_headers,
    decode_request_line,
    read_request,
)


class TestDecodeRequestLine:
    """Tests for decode_request_line()."""

    @pytest.mark.parametrize("path", [
        "/",
        "/index.html",
        "/docs/guide.txt",
        "/search?q=a%20b",
        "/a%2Fb",
        "/../etc/passwd",
    ])
    def test_returns_path_verbatim(self, source_factory, path):
        """No percent-decoding and no query stripping."""
        source = source_factory(f"GET {path} HTTP/1.1\r\n".encode())

        assert decode_request_line(source) == path

    def test_consumes_only_the_request_line(self, source_factory):
        source = source_factory(b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")
        decode_request_line(source)

        assert source.remaining == b"Host: x\r\n\r\n"

    @pytest.mark.parametrize("line", [
        b"GET",
        b"GET /",
        b"GET / HTTP/1.1 extra",
        b"GET  / HTTP/1.1",
        b"GET / HTTP/1.1 ",
        b"",
    ])
    def test_wrong_token_count(self, source_factory, line):
        with pytest.raises(MalformedRequestLine):
            decode_request_line(source_factory(line + b"\r\n"))

    @pytest.mark.parametrize("method", ["POST", "HEAD", "get", "Get", "PUT", "DELETE"])
    def test_unsupported_method(self, source_factory, method):
        """Only the exact, case-sensitive GET is accepted."""
        source = source_factory(f"{method} /index.html HTTP/1.1\r\n".encode())

        with pytest.raises(UnsupportedMethod):
            decode_request_line(source)

    def test_method_checked_before_version(self, source_factory):
        with pytest.raises(UnsupportedMethod):
            decode_request_line(source_factory(b"POST / HTTP/1.0\r\n"))

    @pytest.mark.parametrize("version", ["HTTP/1.0", "HTTP/2", "http/1.1", "HTTP/1.1x"])
    def test_unsupported_version(self, source_factory, version):
        source = source_factory(f"GET / {version}\r\n".encode())

        with pytest.raises(UnsupportedVersion):
            decode_request_line(source)

    @pytest.mark.parametrize("path", ["index.html", "", "*"])
    def test_path_must_start_with_slash(self, source_factory, path):
        source = source_factory(f"GET {path} HTTP/1.1\r\n".encode())

        with pytest.raises(MalformedRequestLine):
            decode_request_line(source)

    def test_errors_carry_the_line(self, source_factory):
        with pytest.raises(RequestLineError) as exc_info:
            decode_request_line(source_factory(b"BREW /pot HTTP/1.1\r\n"))

        assert exc_info.value.line == "BREW /pot HTTP/1.1"

    def test_read_error_propagates(self, source_factory):
        with pytest.raises(TransportReadError):
            decode_request_line(source_factory(b"GET / HT"))

    def test_line_too_long(self, source_factory):
        source = source_factory(b"GET /" + b"a" * 100 + b" HTTP/1.1\r\n")

        with pytest.raises(LineTooLong):
            decode_request_line(source, max_length=50)


class TestDecodeHeaders:
    """Tests for decode_headers()."""

    def test_parse_headers(self, source_factory):
        source = source_factory(
            b"Host: localhost:9980\r\n"
            b"User-Agent: pytest\r\n"
            b"Accept: */*\r\n"
            b"\r\n"
        )

        assert decode_headers(source) == {
            "Host": "localhost:9980",
            "User-Agent": "pytest",
            "Accept": "*/*",
        }

    def test_no_headers(self, source_factory):
        assert decode_headers(source_factory(b"\r\n")) == {}

    def test_stops_at_blank_line(self, source_factory):
        """Nothing after the blank line is read."""
        source = source_factory(b"A: 1\r\n\r\nbody bytes")
        decode_headers(source)

        assert source.remaining == b"body bytes"

    def test_last_value_wins(self, source_factory):
        assert decode_headers(source_factory(b"A: 1\r\nA: 2\r\n\r\n")) == {"A": "2"}

    def test_split_on_first_colon_only(self, source_factory):
        headers = decode_headers(source_factory(b"Host: localhost:9980\r\n\r\n"))

        assert headers["Host"] == "localhost:9980"

    def test_whitespace_trimmed(self, source_factory):
        headers = decode_headers(source_factory(b"  X-Key \t:   some value  \r\n\r\n"))

        assert headers == {"X-Key": "some value"}

    def test_keys_are_case_sensitive(self, source_factory):
        headers = decode_headers(source_factory(b"host: a\r\nHost: b\r\n\r\n"))

        assert headers == {"host": "a", "Host": "b"}

    def test_empty_value(self, source_factory):
        assert decode_headers(source_factory(b"X-Empty:\r\n\r\n")) == {"X-Empty": ""}

    def test_missing_colon(self, source_factory):
        with pytest.raises(MalformedHeaderLine) as exc_info:
            decode_headers(source_factory(b"Host: x\r\nNoColonHere\r\n\r\n"))

        assert exc_info.value.line == "NoColonHere"

    def test_close_before_blank_line(self, source_factory):
        with pytest.raises(TransportReadError):
            decode_headers(source_factory(b"Host: x\r\n"))

    def test_line_too_long(self, source_factory):
        source = source_factory(b"X-Big: " + b"z" * 64 + b"\r\n\r\n")

        with pytest.raises(LineTooLong):
            decode_headers(source, max_length=32)


class TestReadRequest:
    """Tests for read_request()."""

    def test_full_request(self, source_factory):
        source = source_factory(
            b"GET /index.html HTTP/1.1\r\n"
            b"Host: example.com\r\n"
            b"Accept: text/html\r\n"
            b"\r\n"
        )

        request = read_request(source)

        assert request.path == "/index.html"
        assert request.host == "example.com"
        assert request.headers["Accept"] == "text/html"

    def test_missing_host(self, source_factory):
        source = source_factory(b"GET / HTTP/1.1\r\nAccept: */*\r\n\r\n")

        with pytest.raises(MissingHostHeader):
            read_request(source)

    def test_lowercase_host_is_not_host(self, source_factory):
        source = source_factory(b"GET / HTTP/1.1\r\nhost: x\r\n\r\n")

        with pytest.raises(MissingHostHeader):
            read_request(source)

    def test_header_error_wins_over_missing_host(self, source_factory):
        source = source_factory(b"GET / HTTP/1.1\r\nbroken\r\n\r\n")

        with pytest.raises(MalformedHeaderLine):
            read_request(source)


class TestHTTPRequest:
    """Tests for the HTTPRequest dataclass."""

    def test_is_immutable(self):
        request = HTTPRequest(path="/", headers={"Host": "x"})

        with pytest.raises(dataclasses.FrozenInstanceError):
            request.path = "/other"

    def test_host_missing(self):
        assert HTTPRequest(path="/").host is None
