"""Asynchronous producers: a ready awaitable or a factory that starts one.

``as_producer`` resolves the ambiguity once, at the API edge; the resolver and
the pipeline only ever see the tagged variants.
"""

from __future__ import annotations

from dataclasses import dataclass
import inspect
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable


@dataclass(frozen=True, slots=True)
class Ready[T]:
    """Work that is already in flight (a coroutine, task or future)."""

    source: Awaitable[T] | T


@dataclass(frozen=True, slots=True)
class Deferred[T]:
    """A zero-argument factory, called only when the result is needed."""

    factory: Callable[[], Awaitable[T] | T]


type Producer[T] = Ready[T] | Deferred[T]


def as_producer(source: Any) -> Producer[Any]:
    """Tag *source* as ``Ready`` or ``Deferred``.

    Awaitables are checked first so awaitable objects that also happen to be
    callable are never invoked. Plain values become already-resolved
    ``Ready`` producers.
    """
    if isinstance(source, (Ready, Deferred)):
        return source
    if inspect.isawaitable(source):
        return Ready(source)
    if callable(source):
        return Deferred(source)
    return Ready(source)


async def await_maybe(value: Any) -> Any:
    """Await *value* when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def settle[T](producer: Producer[T]) -> T:
    """Run *producer* to completion, raising whatever it raises.

    A factory that raises synchronously surfaces here exactly like a
    rejected awaitable.
    """
    match producer:
        case Ready(source=source):
            return await await_maybe(source)
        case Deferred(factory=factory):
            return await await_maybe(factory())
