"""Once-only async memo.

Each pipeline stage owns one of these: the first await starts the work, every
later await (from this stage or any stage derived from it) shares the same
Future and never re-runs the work.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


def consume_future_exception(fut: asyncio.Future[Any]) -> None:
    """Avoid 'Future exception was never retrieved' for shared futures."""
    if fut.cancelled():
        return
    _ = fut.exception()


class Once[T]:
    """Lazily computed, shared result of an async callable."""

    __slots__ = ("_future", "_work")

    def __init__(self, work: Callable[[], Awaitable[T]]) -> None:
        self._work = work
        self._future: asyncio.Future[T] | None = None

    @property
    def started(self) -> bool:
        """True once the work has been scheduled."""
        return self._future is not None

    async def get(self) -> T:
        """Return the result, starting the work on first call."""
        if self._future is None:
            self._future = asyncio.ensure_future(self._work())
            self._future.add_done_callback(consume_future_exception)
        # A cancelled awaiter must not cancel work shared with other stages.
        return await asyncio.shield(self._future)
