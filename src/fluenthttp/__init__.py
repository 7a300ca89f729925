"""Fluent HTTP request builder over pooled httpx transports.

This package provides:
- A chainable request builder (body, headers, cookies, credentials,
  timeout, user agent)
- A registry of pooled ``httpx.AsyncClient`` transports shared by builders
- Response decoding into raw, bytes, text, stream or JSON shapes
- Cooperative cancellation and whole-dispatch timeouts
- Structured logging and dispatch metrics
"""

from fluenthttp.builder import RequestBuilder, create
from fluenthttp.config import ClientSettings, TransportConfig, get_settings
from fluenthttp.errors import (
    CancellationError,
    DecodingError,
    DispatchErrorClass,
    EncodingError,
    FluentHttpError,
    PoolEntryNotFoundError,
    RequestTimeoutError,
    TransportError,
)
from fluenthttp.metrics import DispatchMetrics
from fluenthttp.models import (
    BytesBody,
    Cookie,
    Credentials,
    JsonBody,
    JsonOptions,
    TextBody,
)
from fluenthttp.pool import PoolEntry, TransportPool
from fluenthttp.shapes import (
    BYTES,
    RAW,
    STREAM,
    TEXT,
    Json,
    OutputShape,
    ResponseStream,
    resolve_shape,
)


__all__ = [
    # Builder
    "RequestBuilder",
    "create",
    # Pool
    "TransportPool",
    "PoolEntry",
    # Config
    "TransportConfig",
    "ClientSettings",
    "get_settings",
    # Models
    "BytesBody",
    "TextBody",
    "JsonBody",
    "Cookie",
    "Credentials",
    "JsonOptions",
    # Shapes
    "OutputShape",
    "RAW",
    "BYTES",
    "TEXT",
    "STREAM",
    "Json",
    "ResponseStream",
    "resolve_shape",
    # Errors
    "FluentHttpError",
    "DispatchErrorClass",
    "EncodingError",
    "TransportError",
    "RequestTimeoutError",
    "CancellationError",
    "DecodingError",
    "PoolEntryNotFoundError",
    # Metrics
    "DispatchMetrics",
]
