"""Unit tests for output shape resolution and decoders."""

from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

from fluenthttp.errors import DecodingError, TransportError
from fluenthttp.shapes import (
    BYTES,
    RAW,
    STREAM,
    TEXT,
    Json,
    ResponseStream,
    resolve_shape,
)


class TestResolveShape:
    """Tests for first-match shape resolution."""

    def test_shape_instance_passthrough(self) -> None:
        """Decoders resolve to themselves."""
        shape = Json(int)

        assert resolve_shape(shape) is shape
        assert resolve_shape(TEXT) is TEXT

    @pytest.mark.parametrize(
        ("shape", "expected"),
        [
            (httpx.Response, RAW),
            (bytes, BYTES),
            (str, TEXT),
            (ResponseStream, STREAM),
            (AsyncIterator, STREAM),
        ],
    )
    def test_dedicated_types(self, shape: Any, expected: Any) -> None:
        """Dedicated types map to their decoders."""
        assert resolve_shape(shape) is expected

    @pytest.mark.parametrize("shape", [int, dict, list[int], dict[str, Any]])
    def test_other_types_become_json(self, shape: Any) -> None:
        """Everything else is decoded as JSON into the type."""
        resolved = resolve_shape(shape)

        assert isinstance(resolved, Json)
        assert resolved.target == shape

    def test_buffering(self) -> None:
        """Only raw and stream shapes leave the body unread."""
        assert RAW.buffered is False
        assert STREAM.buffered is False
        assert BYTES.buffered is True
        assert TEXT.buffered is True
        assert Json(int).buffered is True


class TestDecoders:
    """Tests for decoders against prepared responses."""

    @pytest.mark.asyncio
    async def test_json_error_carries_response_details(self) -> None:
        """Decoding errors record the URL and status."""
        request = httpx.Request("GET", "http://example.test/data")
        response = httpx.Response(500, text="oops", request=request)

        with pytest.raises(DecodingError) as exc_info:
            await Json(dict).decode(response)

        assert exc_info.value.url == "http://example.test/data"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_text_decoder(self) -> None:
        """Text decoder returns the decoded body."""
        response = httpx.Response(200, text="hello")

        assert await TEXT.decode(response) == "hello"


class FailingStream(httpx.AsyncByteStream):
    """Body stream that breaks after the first chunk."""

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield b"partial"
        raise httpx.ReadError("connection reset")


class TestResponseStream:
    """Tests for the live stream wrapper."""

    @pytest.mark.asyncio
    async def test_properties(self) -> None:
        """The wrapper exposes status and headers."""
        response = httpx.Response(203, headers={"X-A": "1"}, content=b"abc")
        stream = ResponseStream(response)

        assert stream.status_code == 203
        assert stream.headers["x-a"] == "1"
        assert stream.response is response

    @pytest.mark.asyncio
    async def test_stream_errors_are_wrapped(self) -> None:
        """Network failures mid-stream surface as TransportError."""
        request = httpx.Request("GET", "http://example.test/big")
        response = httpx.Response(200, stream=FailingStream(), request=request)

        stream = ResponseStream(response)

        with pytest.raises(TransportError):
            await stream.read()
        await stream.aclose()
