"""Logging setup for applications embedding fluenthttp.

The library only emits events through ``structlog.get_logger()``, so it
follows whatever configuration the host application installs. Calling
:func:`configure_logging` is optional and mostly useful for scripts and
tests.
"""

import logging
import sys
from collections.abc import Mapping, MutableMapping
from typing import Any, TextIO

import structlog

from fluenthttp.redact import redact_headers, redact_url


LIBRARY_NAME = "fluenthttp"


def redact_event(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Scrub secrets from ``headers`` and ``url`` fields of an event.

    Dispatch events already redact what they log; this catches events that
    callers log themselves with request data attached.
    """
    headers = event_dict.get("headers")
    if isinstance(headers, Mapping):
        event_dict["headers"] = redact_headers(headers)
    url = event_dict.get("url")
    if url is not None:
        event_dict["url"] = redact_url(str(url))
    return event_dict


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Install a structlog pipeline suited to dispatch events.

    Args:
        level: Minimum level, as a number or a name such as ``"DEBUG"``.
        output: Stream to write to (default: stderr).
        json_format: JSON lines when True, colored console output otherwise.
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]

    renderer: structlog.types.Processor
    if json_format:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_event,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )


def get_logger(**initial_values: Any) -> structlog.stdlib.BoundLogger:
    """Get a logger tagged with the library name.

    Args:
        **initial_values: Extra key/value pairs bound to every event.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(
        library=LIBRARY_NAME, **initial_values
    )
    return logger


def bind_request_context(request_id: str) -> None:
    """Attach a correlation id to every event logged in this context."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    structlog.contextvars.unbind_contextvars("request_id")
