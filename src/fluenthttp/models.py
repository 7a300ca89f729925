"""Data models for request configuration.

The request body is a tagged union over three variants. Dispatch matches
on the ``kind`` discriminator instead of inspecting the payload type.
"""

from datetime import timedelta
from typing import Annotated, Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from fluenthttp.constants import DEFAULT_TEXT_ENCODING


class Cookie(BaseModel):
    """A cookie to place in the shared cookie jar of a pool entry.

    An empty domain is filled in with the request host at dispatch time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: Annotated[str, Field(min_length=1, description="Cookie name")]
    value: str = Field(default="", description="Cookie value")
    domain: str = Field(default="", description="Domain the cookie applies to")
    path: str = Field(default="/", description="Path the cookie applies to")


class Credentials(BaseModel):
    """Username/password pair applied as HTTP basic auth."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    username: str
    password: SecretStr

    def to_auth(self) -> httpx.BasicAuth:
        """Build the transport-level auth object."""
        return httpx.BasicAuth(self.username, self.password.get_secret_value())


class JsonOptions(BaseModel):
    """Options for JSON body serialization and response deserialization.

    Serialization converts the value with pydantic (so models, dataclasses,
    datetimes and UUIDs are supported) and renders it with ``json.dumps``.
    Without ``indent`` the output is compact.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    indent: Annotated[int, Field(ge=0, le=16)] | None = None
    sort_keys: bool = False
    ensure_ascii: bool = False
    allow_nan: bool = True
    by_alias: bool = False
    exclude_none: bool = False
    strict: bool = Field(
        default=False, description="Use strict validation when decoding"
    )


class BytesBody(BaseModel):
    """Raw bytes attached verbatim."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["bytes"] = "bytes"
    data: bytes
    media_type: str | None = None


class TextBody(BaseModel):
    """Text encoded with a character encoding at dispatch time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["text"] = "text"
    text: str
    media_type: str | None = None
    encoding: str = DEFAULT_TEXT_ENCODING


class JsonBody(BaseModel):
    """Structured value serialized to JSON at dispatch time."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["json"] = "json"
    value: Any
    media_type: str | None = None


Body = Annotated[BytesBody | TextBody | JsonBody, Field(discriminator="kind")]


def to_body(
    payload: object,
    media_type: str | None = None,
    encoding: str | None = None,
) -> BytesBody | TextBody | JsonBody:
    """Wrap a caller payload in the matching body variant.

    Args:
        payload: Raw bytes, text, a prebuilt body, or any JSON-serializable value.
        media_type: Optional media type for the Content-Type header.
        encoding: Optional text encoding, used for text payloads only.

    Returns:
        The body variant for the payload.
    """
    if isinstance(payload, BytesBody | TextBody | JsonBody):
        return payload
    if isinstance(payload, bytes | bytearray | memoryview):
        return BytesBody(data=bytes(payload), media_type=media_type)
    if isinstance(payload, str):
        return TextBody(
            text=payload,
            media_type=media_type,
            encoding=encoding or DEFAULT_TEXT_ENCODING,
        )
    return JsonBody(value=payload, media_type=media_type)


def to_seconds(timeout: float | timedelta) -> float:
    """Normalize a timeout to seconds."""
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)
