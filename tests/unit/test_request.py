"""Unit tests for outgoing request assembly."""

import json

import httpx
import pytest

from fluenthttp.errors import EncodingError
from fluenthttp.models import BytesBody, JsonBody, JsonOptions, TextBody
from fluenthttp.request import OutgoingRequest


@pytest.fixture
def request_() -> OutgoingRequest:
    """Create an empty outgoing request."""
    return OutgoingRequest(method="POST", url=httpx.URL("http://example.test/"))


class TestUnvalidatedHeaders:
    """Tests for relaxed header attachment."""

    def test_attaches_header(self, request_: OutgoingRequest) -> None:
        """A new header is attached."""
        assert request_.add_header_unvalidated("X-Id", "1") is True
        assert request_.headers == [("X-Id", "1")]

    def test_existing_name_not_overwritten(self, request_: OutgoingRequest) -> None:
        """Names are compared case-insensitively and never overwritten."""
        request_.add_header_unvalidated("Accept", "text/plain")

        assert request_.add_header_unvalidated("accept", "application/json") is False
        assert request_.headers == [("Accept", "text/plain")]

    def test_value_rendering(self, request_: OutgoingRequest) -> None:
        """None becomes empty and objects use str()."""
        request_.add_header_unvalidated("X-None", None)
        request_.add_header_unvalidated("X-Num", 42)

        assert dict(request_.headers) == {"X-None": "", "X-Num": "42"}

    def test_no_syntax_validation(self, request_: OutgoingRequest) -> None:
        """Values a strict validator rejects are still attached."""
        request_.add_header_unvalidated("Content-Type", "weird;;=value (x)")

        assert request_.has_header("content-type")

    def test_raw_headers_encoding(self, request_: OutgoingRequest) -> None:
        """Raw headers are byte pairs in insertion order."""
        request_.add_header_unvalidated("B", "2")
        request_.add_header_unvalidated("A", "ü")

        assert request_.raw_headers() == [(b"B", b"2"), (b"A", "ü".encode())]


class TestAttachBody:
    """Tests for body materialization."""

    def test_bytes_body(self, request_: OutgoingRequest) -> None:
        """Bytes are attached verbatim with an optional media type."""
        request_.attach_body(BytesBody(data=b"\x01\x02", media_type="x/y"))

        assert request_.content == b"\x01\x02"
        assert dict(request_.headers) == {"Content-Type": "x/y"}

    def test_text_body_without_media_type(self, request_: OutgoingRequest) -> None:
        """Text without a media type sets no Content-Type."""
        request_.attach_body(TextBody(text="hi"))

        assert request_.content == b"hi"
        assert request_.headers == []

    def test_text_body_with_media_type(self, request_: OutgoingRequest) -> None:
        """Text with a media type includes the charset."""
        request_.attach_body(
            TextBody(text="ñ", media_type="text/csv", encoding="utf-16")
        )

        assert request_.content.decode("utf-16") == "ñ"
        assert dict(request_.headers) == {"Content-Type": "text/csv; charset=utf-16"}

    def test_text_body_unencodable(self, request_: OutgoingRequest) -> None:
        """Characters outside the encoding raise EncodingError."""
        with pytest.raises(EncodingError):
            request_.attach_body(TextBody(text="日本", encoding="ascii"))

    def test_json_body_round_trip(self, request_: OutgoingRequest) -> None:
        """JSON bodies decode back to the original value."""
        value = {"name": "x", "tags": ["a", "b"], "n": 1.5}

        request_.attach_body(JsonBody(value=value), JsonOptions(indent=2))

        assert request_.content is not None
        assert json.loads(request_.content) == value
        assert b"\n" in request_.content

    def test_json_body_media_type(self, request_: OutgoingRequest) -> None:
        """JSON media types are attached as given."""
        request_.attach_body(JsonBody(value=[], media_type="application/json"))

        assert request_.content == b"[]"
        assert dict(request_.headers) == {"Content-Type": "application/json"}
