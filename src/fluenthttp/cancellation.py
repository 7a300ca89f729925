"""Cooperative cancellation of in-flight dispatches."""

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from fluenthttp.errors import CancellationError


T = TypeVar("T")


async def run_cancellable(
    coro: Coroutine[Any, Any, T],
    cancel_event: asyncio.Event | None,
    url: str | None = None,
) -> T:
    """Await a coroutine that is aborted when an event is set.

    If the work and the event finish in the same loop iteration, the
    work's outcome wins.

    Args:
        coro: The work to run.
        cancel_event: Setting this event aborts the work. None runs the
            work without a cancellation hook.
        url: Target URL, for the error message.

    Returns:
        The result of the work.

    Raises:
        CancellationError: If the event was set before the work finished.
    """
    if cancel_event is None:
        return await coro
    if cancel_event.is_set():
        coro.close()
        raise CancellationError("Dispatch cancelled before start", url=url)

    work = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not work.done():
            work.cancel()

    if work.done():
        return work.result()

    # Event fired first; let the transport call unwind, whatever it raises
    await asyncio.gather(work, return_exceptions=True)
    raise CancellationError("Dispatch cancelled in flight", url=url)
