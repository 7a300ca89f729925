"""JSON encoding and decoding for request and response bodies."""

import json
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from fluenthttp.errors import DecodingError, EncodingError
from fluenthttp.models import JsonOptions


T = TypeVar("T")

DEFAULT_JSON_OPTIONS = JsonOptions()


def encode_json(value: object, options: JsonOptions | None = None) -> bytes:
    """Serialize a value to JSON bytes.

    Args:
        value: Value to serialize.
        options: Serialization options, defaults when omitted.

    Returns:
        UTF-8 encoded JSON document.

    Raises:
        EncodingError: If the value cannot be serialized.
    """
    opts = options or DEFAULT_JSON_OPTIONS
    try:
        jsonable = to_jsonable_python(
            value,
            by_alias=opts.by_alias,
            exclude_none=opts.exclude_none,
        )
        text = json.dumps(
            jsonable,
            indent=opts.indent,
            sort_keys=opts.sort_keys,
            ensure_ascii=opts.ensure_ascii,
            allow_nan=opts.allow_nan,
            separators=(",", ":") if opts.indent is None else None,
        )
    except (PydanticSerializationError, TypeError, ValueError) as e:
        msg = f"Cannot serialize {type(value).__name__} to JSON: {e}"
        raise EncodingError(msg) from e
    return text.encode("utf-8")


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def decode_json(
    data: bytes,
    target: type[T] | Any,
    options: JsonOptions | None = None,
) -> T:
    """Deserialize JSON bytes into the target type.

    Args:
        data: Raw JSON document.
        target: Type to validate the document against.
        options: Deserialization options, defaults when omitted.

    Returns:
        Validated value of the target type.

    Raises:
        DecodingError: On malformed JSON or a type mismatch.
    """
    opts = options or DEFAULT_JSON_OPTIONS
    try:
        result: T = _adapter(target).validate_json(data, strict=opts.strict)
    except ValidationError as e:
        msg = f"Cannot decode response body as {_type_name(target)}: {e}"
        raise DecodingError(msg) from e
    return result


def _type_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)
