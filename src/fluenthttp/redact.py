"""Masking of secrets before request data reaches logs or error messages."""

import re
from collections.abc import Iterable, Mapping


REDACTED_VALUE = "[REDACTED]"

# Compared lower-cased
SENSITIVE_HEADERS = frozenset(
    {
        "authorization",
        "cookie",
        "proxy-authorization",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
        "x-csrf-token",
    }
)

SENSITIVE_QUERY_PARAMS = frozenset(
    {"access_token", "api_key", "apikey", "password", "secret", "signature", "token"}
)

_USERINFO = re.compile(r"(?<=://)[^/?#@\s]+@")
_QUERY_PARAM = re.compile(r"(?<=[?&])([^=&#]+)=([^&#]*)")


def is_sensitive_header(name: str) -> bool:
    return name.lower() in SENSITIVE_HEADERS


def redact_headers(
    headers: Mapping[str, str] | Iterable[tuple[str, str]],
) -> dict[str, str]:
    """Copy headers with secret values masked.

    Args:
        headers: A mapping, or raw ``(name, value)`` pairs as held by an
            outgoing request.

    Returns:
        New dictionary safe to log. Later pairs with a repeated name win.
    """
    pairs = headers.items() if isinstance(headers, Mapping) else headers
    return {
        name: REDACTED_VALUE if is_sensitive_header(name) else value
        for name, value in pairs
    }


def _mask_query_param(match: re.Match[str]) -> str:
    name = match.group(1)
    if name.lower() in SENSITIVE_QUERY_PARAMS:
        return f"{name}={REDACTED_VALUE}"
    return match.group(0)


def redact_url(url: str) -> str:
    """Mask userinfo and secret query parameters in a URL.

    Works on the string form, so malformed URLs are still scrubbed.

    Args:
        url: URL that may embed ``user:password@`` or tokens in its query.

    Returns:
        URL safe to log.
    """
    url = _USERINFO.sub(f"{REDACTED_VALUE}:{REDACTED_VALUE}@", url)
    if "?" not in url:
        return url
    head, _, rest = url.partition("?")
    return f"{head}?{_QUERY_PARAM.sub(_mask_query_param, '&' + rest)[1:]}"
