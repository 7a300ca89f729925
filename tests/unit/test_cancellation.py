"""Unit tests for cooperative cancellation."""

import asyncio

import pytest

from fluenthttp.cancellation import run_cancellable
from fluenthttp.errors import CancellationError


async def answer(delay: float = 0.0) -> int:
    await asyncio.sleep(delay)
    return 42


class TestRunCancellable:
    """Tests for run_cancellable."""

    @pytest.mark.asyncio
    async def test_without_event(self) -> None:
        """No event simply awaits the work."""
        assert await run_cancellable(answer(), None) == 42

    @pytest.mark.asyncio
    async def test_event_never_set(self) -> None:
        """An unset event returns the work's result."""
        assert await run_cancellable(answer(0.01), asyncio.Event()) == 42

    @pytest.mark.asyncio
    async def test_event_already_set(self) -> None:
        """A set event aborts before the work starts."""
        event = asyncio.Event()
        event.set()

        with pytest.raises(CancellationError) as exc_info:
            await run_cancellable(answer(), event, url="http://example.test/")

        assert exc_info.value.url == "http://example.test/"

    @pytest.mark.asyncio
    async def test_event_set_during_work(self) -> None:
        """Setting the event cancels the running work."""
        event = asyncio.Event()
        cancelled = asyncio.Event()

        async def hang() -> int:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return 0

        asyncio.get_running_loop().call_later(0.01, event.set)

        with pytest.raises(CancellationError):
            await run_cancellable(hang(), event)

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_work_errors_propagate(self) -> None:
        """Failures of the work are not masked."""

        async def boom() -> int:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await run_cancellable(boom(), asyncio.Event())

    @pytest.mark.asyncio
    async def test_cancellation_wins_over_unwind_errors(self) -> None:
        """Errors raised while the work unwinds still report cancellation."""
        event = asyncio.Event()

        async def fail_on_cancel() -> int:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                raise OSError("socket closed") from None
            return 0

        asyncio.get_running_loop().call_later(0.01, event.set)

        with pytest.raises(CancellationError):
            await run_cancellable(fail_on_cancel(), event)
