"""The ``(value, error)`` pair returned by every promisefor operation."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from promisefor.errors import ErrorDescriptor


class ResultPair[T](NamedTuple):
    """Outcome of a resolver call or pipeline stage.

    Unpacks like a plain tuple: ``value, error = await promise_for(...)``.
    The error side is authoritative; when it is set, ``value`` is ``None``.
    """

    value: T | None
    error: ErrorDescriptor | None

    @property
    def ok(self) -> bool:
        """True when no failure was captured."""
        return self.error is None

    @classmethod
    def success(cls, value: T | None) -> ResultPair[T]:  # noqa: D102
        return cls(value, None)

    @classmethod
    def failure(cls, error: ErrorDescriptor) -> ResultPair[T]:  # noqa: D102
        return cls(None, error)
