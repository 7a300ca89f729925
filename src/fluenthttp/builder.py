"""Fluent request builder bound to a pooled transport.

A builder accumulates request configuration through chained calls that
never touch the network. A terminal call (``send`` or one of the method
shorthands) merges that state into a fresh request, applies the shared
options of the bound pool entry, dispatches, and decodes the response into
the requested output shape.
"""

import asyncio
import time
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, TypeVar
from uuid import UUID

import httpx
import structlog

from fluenthttp.cancellation import run_cancellable
from fluenthttp.constants import (
    METHOD_DELETE,
    METHOD_GET,
    METHOD_HEAD,
    METHOD_OPTIONS,
    METHOD_PATCH,
    METHOD_POST,
    METHOD_PUT,
)
from fluenthttp.errors import (
    CancellationError,
    FluentHttpError,
    RequestTimeoutError,
    TransportError,
)
from fluenthttp.metrics import DispatchMetrics
from fluenthttp.models import (
    Body,
    Cookie,
    Credentials,
    JsonOptions,
    to_body,
    to_seconds,
)
from fluenthttp.observability import get_logger
from fluenthttp.pool import PoolEntry, TransportPool
from fluenthttp.redact import redact_headers, redact_url
from fluenthttp.request import OutgoingRequest
from fluenthttp.shapes import OutputShape, resolve_shape


T = TypeVar("T")

logger = get_logger()


class RequestBuilder:
    """Accumulates request configuration and dispatches it.

    Cookies, credentials, timeout and user agent are applied to the bound
    pool entry at dispatch time and therefore affect every builder sharing
    that entry. Body and headers only affect this builder's requests.

    Dispatching does not reset the builder; a second dispatch sends the
    same configuration again.
    """

    def __init__(
        self,
        url: str | httpx.URL,
        pool: TransportPool | None = None,
        force_new_transport: bool = False,
    ) -> None:
        """Initialize the builder and bind it to a pool entry.

        Args:
            url: Target URL.
            pool: Transport pool to draw from; the process default if omitted.
            force_new_transport: Create a dedicated pool entry instead of
                reusing the last one.
        """
        self._url = httpx.URL(url)
        self._pool = pool if pool is not None else TransportPool.get_instance()
        self._pool_key = self._pool.acquire(force_new=force_new_transport)

        self._body: Body | None = None
        self._cookies: list[Cookie] = []
        self._credentials: Credentials | None = None
        self._headers: dict[str, object | None] = {}
        self._json_options: JsonOptions | None = None
        self._timeout: float | None = None
        self._user_agent: str | None = None

        self._metrics = DispatchMetrics.get_instance()
        self._log = logger.bind(component="builder", pool_key=str(self._pool_key))

    @property
    def url(self) -> httpx.URL:
        return self._url

    @property
    def pool_key(self) -> UUID:
        """Key of the bound pool entry. Fixed for the builder's lifetime."""
        return self._pool_key

    @property
    def pool(self) -> TransportPool:
        return self._pool

    # Configuration

    def add_content(
        self,
        content: object,
        media_type: str | None = None,
        encoding: str | None = None,
    ) -> "RequestBuilder":
        """Set the request body.

        Bytes are sent verbatim, text is encoded with ``encoding`` (UTF-8 by
        default), and any other value is serialized to JSON at dispatch.

        Args:
            content: Body payload.
            media_type: Media type for the Content-Type header.
            encoding: Character encoding for text payloads.

        Returns:
            This builder.
        """
        self._body = to_body(content, media_type=media_type, encoding=encoding)
        return self

    def add_cookie(self, cookie: Cookie) -> "RequestBuilder":
        self._cookies.append(cookie)
        return self

    def add_cookies(self, *cookies: Cookie) -> "RequestBuilder":
        self._cookies.extend(cookies)
        return self

    def add_header(self, name: str, value: object | None = None) -> "RequestBuilder":
        """Add a header unless one with the same name was added before.

        Args:
            name: Header name.
            value: Header value; rendered with ``str()`` at dispatch.

        Returns:
            This builder.
        """
        self._headers.setdefault(name, value)
        return self

    def add_headers(self, headers: Mapping[str, object | None]) -> "RequestBuilder":
        """Add several headers; names added before keep their first value."""
        for name, value in headers.items():
            self._headers.setdefault(name, value)
        return self

    def set_credentials(
        self, username: str | Credentials, password: str | None = None
    ) -> "RequestBuilder":
        """Set basic auth credentials for the bound transport.

        Args:
            username: Username, or a complete ``Credentials`` object.
            password: Password when a username string is given.

        Returns:
            This builder.
        """
        if isinstance(username, Credentials):
            self._credentials = username
        else:
            self._credentials = Credentials(username=username, password=password or "")
        return self

    def set_json_options(self, options: JsonOptions) -> "RequestBuilder":
        self._json_options = options
        return self

    def set_timeout(self, timeout: float | timedelta) -> "RequestBuilder":
        """Set the dispatch timeout in seconds or as a timedelta."""
        self._timeout = to_seconds(timeout)
        return self

    def set_timeout_ms(self, milliseconds: int) -> "RequestBuilder":
        self._timeout = milliseconds / 1000.0
        return self

    def set_user_agent(self, user_agent: str) -> "RequestBuilder":
        self._user_agent = user_agent
        return self

    # Dispatch

    async def send(
        self,
        method: str,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        """Dispatch the request and decode the response.

        Args:
            method: HTTP method.
            shape: Output shape, or a type resolved to one (``httpx.Response``,
                ``bytes``, ``str``, ``ResponseStream``, else JSON). Raw and
                stream results hold a pooled connection until the caller
                closes them; pick a buffered shape such as ``BYTES`` when
                the body is not needed.
            cancel_event: Setting this event aborts the dispatch.

        Returns:
            The decoded response, or None if the transport gave no response.

        Raises:
            EncodingError: The body could not be serialized.
            TransportError: The network call failed or timed out.
            CancellationError: ``cancel_event`` was set before completion.
            DecodingError: The body did not parse into the requested shape.
            PoolEntryNotFoundError: The bound pool entry was discarded.
        """
        method = method.upper()
        output = resolve_shape(shape)
        url = redact_url(str(self._url))
        log = self._log.bind(method=method, url=url, shape=output.name)

        self._metrics.record_request(method)
        start_time_ns = time.perf_counter_ns()

        try:
            if cancel_event is not None and cancel_event.is_set():
                raise CancellationError("Dispatch cancelled before start", url=url)

            entry = self._pool.get(self._pool_key)
            outgoing = self._build_request(method)
            await self._merge_shared_options(entry)

            result: T | None = await run_cancellable(
                self._exchange(entry, outgoing, output, log),
                cancel_event,
                url=url,
            )
        except FluentHttpError as e:
            self._metrics.record_failure(e.error_class)
            log.warning(
                "request_failed",
                error_class=e.error_class.value,
                error=e.message,
            )
            raise
        finally:
            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_duration(duration_ms)

        return result

    async def delete(
        self,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        return await self.send(METHOD_DELETE, shape, cancel_event)

    async def get(
        self,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        return await self.send(METHOD_GET, shape, cancel_event)

    async def head(
        self,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        return await self.send(METHOD_HEAD, shape, cancel_event)

    async def options(
        self,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        return await self.send(METHOD_OPTIONS, shape, cancel_event)

    async def patch(
        self,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        return await self.send(METHOD_PATCH, shape, cancel_event)

    async def post(
        self,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        return await self.send(METHOD_POST, shape, cancel_event)

    async def put(
        self,
        shape: OutputShape[T] | type[T] | Any,
        cancel_event: asyncio.Event | None = None,
    ) -> T | None:
        return await self.send(METHOD_PUT, shape, cancel_event)

    def _build_request(self, method: str) -> OutgoingRequest:
        """Materialize body and headers onto a fresh request.

        The body goes first, so a media type configured with the body takes
        precedence over a Content-Type header added separately.
        """
        outgoing = OutgoingRequest(method=method, url=self._url)

        if self._body is not None:
            outgoing.attach_body(self._body, self._json_options)

        for name, value in self._headers.items():
            outgoing.add_header_unvalidated(name, value)

        return outgoing

    async def _merge_shared_options(self, entry: PoolEntry) -> None:
        """Apply cookies, credentials, timeout and user agent to the entry."""
        if (
            not self._cookies
            and self._credentials is None
            and self._timeout is None
            and self._user_agent is None
        ):
            return

        async with entry.lock:
            for cookie in self._cookies:
                entry.add_cookie(cookie, default_domain=self._url.host)
            if self._credentials is not None:
                entry.set_credentials(self._credentials)
            if self._timeout is not None:
                entry.set_timeout(self._timeout)
            if self._user_agent is not None:
                entry.merge_user_agent(self._user_agent)

    async def _exchange(
        self,
        entry: PoolEntry,
        outgoing: OutgoingRequest,
        output: OutputShape[T],
        log: structlog.stdlib.BoundLogger,
    ) -> T | None:
        """Send the request through the entry's client and decode the reply.

        The entry timeout covers the send and, for buffered shapes, the body
        read.
        """
        timeout = entry.timeout
        url = redact_url(str(outgoing.url))
        start_time_ns = time.perf_counter_ns()
        request = entry.client.build_request(
            outgoing.method,
            outgoing.url,
            content=outgoing.content,
            headers=outgoing.raw_headers(),
        )
        log.debug(
            "request_dispatch",
            headers=redact_headers(outgoing.headers),
            body_bytes=len(outgoing.content or b""),
            timeout=timeout,
        )

        try:
            async with asyncio.timeout(timeout):
                response = await entry.client.send(request, stream=True)
                if response is None:
                    return None
                try:
                    value = await output.decode(response, self._json_options)
                except BaseException:
                    await response.aclose()
                    raise
                if output.buffered:
                    await response.aclose()
        except httpx.TimeoutException as e:
            msg = f"Request timed out: {e}"
            raise RequestTimeoutError(
                msg, url=url, timeout_seconds=timeout
            ) from e
        except httpx.HTTPError as e:
            msg = f"Request failed: {e}"
            raise TransportError(msg, url=url) from e
        except TimeoutError as e:
            msg = f"Request exceeded timeout of {timeout}s"
            raise RequestTimeoutError(
                msg, url=url, timeout_seconds=timeout
            ) from e

        bytes_received = len(response.content) if output.buffered else 0
        self._metrics.record_response(response.status_code, bytes_received)
        log.info(
            "request_complete",
            status_code=response.status_code,
            bytes=bytes_received,
            duration_ms=(time.perf_counter_ns() - start_time_ns) // 1_000_000,
        )
        return value


def create(
    url: str | httpx.URL,
    force_new_transport: bool = False,
    pool: TransportPool | None = None,
) -> RequestBuilder:
    """Create a request builder.

    Args:
        url: Target URL.
        force_new_transport: Create a dedicated pool entry instead of
            reusing the last one.
        pool: Transport pool to draw from; the process default if omitted.

    Returns:
        A new builder bound to a pool entry.
    """
    return RequestBuilder(url, pool=pool, force_new_transport=force_new_transport)
