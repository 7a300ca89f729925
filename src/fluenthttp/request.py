"""Ephemeral outgoing request assembled from builder state."""

from dataclasses import dataclass, field
from typing import assert_never

import httpx

from fluenthttp.codec import encode_json
from fluenthttp.constants import CONTENT_TYPE_HEADER
from fluenthttp.errors import EncodingError
from fluenthttp.models import BytesBody, JsonBody, JsonOptions, TextBody


@dataclass
class OutgoingRequest:
    """Method, URL, body and headers for a single dispatch.

    Headers are held as an ordered list of raw pairs. Attaching a header
    skips name/value syntax validation and never overwrites a name that is
    already present (compared case-insensitively).
    """

    method: str
    url: httpx.URL
    content: bytes | None = None
    headers: list[tuple[str, str]] = field(default_factory=list)

    def has_header(self, name: str) -> bool:
        """Check whether a header name is already attached."""
        lowered = name.lower()
        return any(key.lower() == lowered for key, _ in self.headers)

    def add_header_unvalidated(self, name: str, value: object | None) -> bool:
        """Attach a header without validating its syntax.

        Args:
            name: Header name, used as given.
            value: Header value; ``None`` attaches an empty value and other
                objects are converted with ``str()``.

        Returns:
            True if the header was attached, False if the name was present.
        """
        if self.has_header(name):
            return False
        self.headers.append((name, "" if value is None else str(value)))
        return True

    def attach_body(
        self,
        body: BytesBody | TextBody | JsonBody,
        json_options: JsonOptions | None = None,
    ) -> None:
        """Materialize a body variant onto the request.

        Args:
            body: Body variant configured on the builder.
            json_options: Options for serializing a JSON body.

        Raises:
            EncodingError: If the body cannot be encoded.
        """
        if isinstance(body, BytesBody):
            self.content = body.data
            if body.media_type is not None:
                self.add_header_unvalidated(CONTENT_TYPE_HEADER, body.media_type)
        elif isinstance(body, TextBody):
            self.content = _encode_text(body.text, body.encoding)
            # Without a media type the body goes out with no Content-Type
            if body.media_type is not None:
                self.add_header_unvalidated(
                    CONTENT_TYPE_HEADER,
                    f"{body.media_type}; charset={body.encoding}",
                )
        elif isinstance(body, JsonBody):
            self.content = encode_json(body.value, json_options)
            if body.media_type is not None:
                self.add_header_unvalidated(CONTENT_TYPE_HEADER, body.media_type)
        else:
            assert_never(body)

    def raw_headers(self) -> list[tuple[bytes, bytes]]:
        """Encode headers for the transport as raw byte pairs."""
        return [
            (key.encode("latin-1", "replace"), value.encode("utf-8"))
            for key, value in self.headers
        ]


def _encode_text(text: str, encoding: str) -> bytes:
    try:
        return text.encode(encoding)
    except (LookupError, UnicodeEncodeError) as e:
        msg = f"Cannot encode text body as {encoding}: {e}"
        raise EncodingError(msg) from e
