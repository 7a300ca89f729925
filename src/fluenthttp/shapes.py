"""Output shapes: how a response is turned into the value a caller asked for.

The set of shapes is closed. :func:`resolve_shape` maps a caller's choice to
one of them, checking in a fixed order where the first match wins: raw
response, bytes, text, stream, and finally JSON into the requested type.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator
from types import GenericAlias, TracebackType
from typing import Any, Generic, TypeVar

import httpx

from fluenthttp.codec import decode_json
from fluenthttp.constants import DEFAULT_CHUNK_SIZE
from fluenthttp.errors import DecodingError, TransportError
from fluenthttp.models import JsonOptions
from fluenthttp.redact import redact_url


T = TypeVar("T")


class ResponseStream:
    """Live, unbuffered view over a response body.

    Iterating yields body chunks as they arrive. The underlying response
    stays open until the stream is exhausted or closed, so use it as an
    async context manager or call :meth:`aclose`.
    """

    def __init__(
        self, response: httpx.Response, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> None:
        self._response = response
        self._chunk_size = chunk_size

    @property
    def response(self) -> httpx.Response:
        return self._response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iter_chunks()

    async def _iter_chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_bytes(self._chunk_size):
                yield chunk
        except httpx.HTTPError as e:
            msg = f"Response stream failed: {e}"
            url = redact_url(str(self._response.url))
            raise TransportError(msg, url=url) from e

    async def read(self) -> bytes:
        """Read the rest of the body."""
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        await self._response.aclose()

    async def __aenter__(self) -> "ResponseStream":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


class OutputShape(ABC, Generic[T]):
    """Decoder for one output shape.

    ``buffered`` shapes read the whole body during dispatch, after which the
    response is closed. Unbuffered shapes hand the open response over to the
    caller.
    """

    buffered: bool = True
    name: str = "shape"

    @abstractmethod
    async def decode(
        self, response: httpx.Response, options: JsonOptions | None = None
    ) -> T:
        """Turn a response into the shape's value."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class RawShape(OutputShape[httpx.Response]):
    """The response object itself, body unread.

    The response keeps its pooled connection until the caller reads it to
    the end or calls ``aclose()``.
    """

    buffered = False
    name = "raw"

    async def decode(
        self, response: httpx.Response, options: JsonOptions | None = None
    ) -> httpx.Response:
        return response


class BytesShape(OutputShape[bytes]):
    name = "bytes"

    async def decode(
        self, response: httpx.Response, options: JsonOptions | None = None
    ) -> bytes:
        return await response.aread()


class TextShape(OutputShape[str]):
    """Body decoded as text using the response charset."""

    name = "text"

    async def decode(
        self, response: httpx.Response, options: JsonOptions | None = None
    ) -> str:
        await response.aread()
        return response.text


class StreamShape(OutputShape[ResponseStream]):
    buffered = False
    name = "stream"

    async def decode(
        self, response: httpx.Response, options: JsonOptions | None = None
    ) -> ResponseStream:
        return ResponseStream(response)


class Json(OutputShape[T]):
    """Body parsed as JSON and validated into ``target``.

    ``target`` is anything pydantic can validate against: builtins,
    generic aliases, dataclasses, TypedDicts or models.
    """

    name = "json"

    def __init__(self, target: type[T] | Any = Any) -> None:
        self.target = target

    async def decode(
        self, response: httpx.Response, options: JsonOptions | None = None
    ) -> T:
        data = await response.aread()
        try:
            return decode_json(data, self.target, options)
        except DecodingError as e:
            e.url = redact_url(str(response.url))
            e.status_code = response.status_code
            raise

    def __repr__(self) -> str:
        return f"Json({self.target!r})"


RAW = RawShape()
BYTES = BytesShape()
TEXT = TextShape()
STREAM = StreamShape()


def resolve_shape(shape: OutputShape[T] | type[T] | Any) -> OutputShape[Any]:
    """Map a caller's shape choice to a decoder.

    Args:
        shape: A decoder, or a type to resolve in first-match order.

    Returns:
        The decoder for the shape.
    """
    if isinstance(shape, OutputShape):
        return shape
    if shape is httpx.Response:
        return RAW
    if shape is bytes:
        return BYTES
    if shape is str:
        return TEXT
    if _is_stream_type(shape):
        return STREAM
    return Json(shape)


def _is_stream_type(shape: Any) -> bool:
    # Parameterized generics like list[int] are not classes
    if not isinstance(shape, type) or isinstance(shape, GenericAlias):
        return False
    return issubclass(shape, ResponseStream | AsyncIterable)
