"""Error descriptors, normalization, and the exception hierarchy for promisefor.

Every failure captured by the resolver or a pipeline becomes an
``ErrorDescriptor`` exactly once, at the step where it happened. The
exception types here exist for callers that prefer to raise at a boundary;
the core never raises them itself.
"""

from __future__ import annotations

import errno
import traceback
from typing import TYPE_CHECKING, Any, ClassVar

import httpx
from pydantic import BaseModel, ConfigDict

from promisefor.constants import DEFAULT_NORMALIZE_CONTEXT, StepType

if TYPE_CHECKING:
    from collections.abc import Iterator


class PromiseForLibError(Exception):
    """Base exception for all promisefor errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(PromiseForLibError):
    """Settings validation or resolution failed."""


_HTTP_ERROR_HINTS = {
    400: "Check the request payload against the endpoint's schema.",
    401: "Verify the credentials sent with the request.",
    403: "Check permissions for the calling identity.",
    404: "Resource or endpoint not found; check the URL.",
    409: "The resource changed concurrently; refetch and retry.",
    429: "Rate limit exceeded; wait and retry.",
    500: "Upstream internal error; retry later.",
    502: "Bad gateway; the upstream service may be restarting.",
    503: "Service unavailable; the upstream might be overloaded.",
    504: "Upstream timed out; retry later.",
}


def get_http_error_hint(status_code: int | None) -> str | None:
    """Return an actionable hint for a given HTTP status code."""
    if status_code is None:
        return None
    return _HTTP_ERROR_HINTS.get(status_code)


class HTTPError(PromiseForLibError):
    """A resolved transport response that represents a failed request.

    Synthesized by the domain-failure classifier; ``response_data`` keeps the
    parsed JSON body (or raw text) for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int,
        url: str | None = None,
        method: str | None = None,
        response_data: Any = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(
            message, hint=hint if hint is not None else get_http_error_hint(status)
        )
        self.status = status
        self.url = url
        self.method = method
        self.response_data = response_data


# =============================================================================
# Descriptors
# =============================================================================


class StepInfo(BaseModel):
    """Where in a pipeline a failure originated."""

    model_config = ConfigDict(frozen=True)

    #: Zero-based position within the lineage; ``-1`` for the initial producer.
    index: int
    type: StepType
    #: Context of the stage that defined the step.
    pipeline_context: str


class ErrorDescriptor(BaseModel):
    """Canonical, immutable record of one failure."""

    model_config = ConfigDict(frozen=True)

    message: str
    name: str
    context: str
    stack: str | None = None
    status: int | None = None
    url: str | None = None
    method: str | None = None
    code: str | None = None
    step_info: StepInfo | None = None
    #: Parsed body (or raw text) of a failed transport response.
    response_data: Any = None


# =============================================================================
# Normalization
# =============================================================================


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)


def _probe(obj: object, *path: str) -> Any:
    # Some SDK properties raise instead of returning None (httpx ``.request``).
    cur: Any = obj
    for name in path:
        try:
            cur = getattr(cur, name, None)
        except Exception:
            return None
        if cur is None:
            return None
    return cur


def _first(exc: BaseException, paths: tuple[tuple[str, ...], ...], accept: Any) -> Any:
    for e in _walk_exception_chain(exc):
        for path in paths:
            value = _probe(e, *path)
            if value is not None and accept(value):
                return value
    return None


def _is_status(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599


def _is_url(value: object) -> bool:
    return isinstance(value, (str, httpx.URL))


_STATUS_PATHS = (
    ("status",),
    ("status_code",),
    ("response", "status_code"),
    ("response", "status"),
)
_URL_PATHS = (("url",), ("response", "url"), ("request", "url"))
_METHOD_PATHS = (("method",), ("request", "method"), ("response", "request", "method"))


def _extract_code(exc: BaseException) -> str | None:
    for e in _walk_exception_chain(exc):
        code = _probe(e, "code")
        if isinstance(code, str) and code:
            return code
        if isinstance(e, OSError) and isinstance(e.errno, int):
            name = errno.errorcode.get(e.errno)
            if name:
                return name
    return None


def _capture_stack_enabled() -> bool:
    from promisefor.config import get_settings

    try:
        return get_settings().capture_stack
    except ConfigurationError:
        return True


def _format_stack(exc: BaseException) -> str | None:
    if exc.__traceback__ is None or not _capture_stack_enabled():
        return None
    try:
        return "".join(traceback.format_exception(exc))
    except Exception:
        return None


def _safe_str(value: object) -> str:
    try:
        return str(value)
    except Exception:
        return "Unknown error"


def normalize_error(
    raised: object,
    context: str = DEFAULT_NORMALIZE_CONTEXT,
    step_info: StepInfo | None = None,
) -> ErrorDescriptor:
    """Convert any raised value into an ``ErrorDescriptor``.

    Exceptions keep their message, class name and traceback; transport
    details (status, url, method, code) are probed along the exception chain.
    Anything else becomes an ``UnknownError`` with its string form as message.
    Never raises.

    Args:
        raised: The exception (or arbitrary value) that signalled the failure.
        context: Human-readable description of what failed.
        step_info: Pipeline provenance, attached verbatim.

    Returns:
        A frozen descriptor.
    """
    if not isinstance(raised, BaseException):
        return ErrorDescriptor(
            message=_safe_str(raised),
            name="UnknownError",
            context=context,
            step_info=step_info,
        )

    url = _first(raised, _URL_PATHS, _is_url)
    return ErrorDescriptor(
        message=_safe_str(raised) or "Unknown error",
        name=type(raised).__name__,
        context=context,
        stack=_format_stack(raised),
        status=_first(raised, _STATUS_PATHS, _is_status),
        url=str(url) if url is not None else None,
        method=_first(raised, _METHOD_PATHS, lambda v: isinstance(v, str)),
        code=_extract_code(raised),
        step_info=step_info,
        response_data=_probe(raised, "response_data"),
    )


# =============================================================================
# Throwable adapters
# =============================================================================


def _default_status_code() -> int:
    from promisefor.config import get_settings

    return get_settings().default_status_code


class DescriptorError(PromiseForLibError):
    """Raise-able wrapper around an ``ErrorDescriptor``.

    Callers that received a failed result pair build one of the concrete
    subclasses when they want exception semantics at a boundary.
    """

    name: ClassVar[str] = "DescriptorError"

    def __init__(self, error_context: ErrorDescriptor) -> None:
        status_code = (
            error_context.status
            if error_context.status is not None
            else _default_status_code()
        )
        super().__init__(
            error_context.message, hint=get_http_error_hint(error_context.status)
        )
        self.error_context = error_context
        self.status_code = status_code
        self.stack = error_context.stack


class PipelineError(DescriptorError):
    """A failure surfaced from ``pipe_for(...).execute()``."""

    name: ClassVar[str] = "PipelineError"


class PromiseForError(DescriptorError):
    """A failure surfaced from ``promise_for(...)``."""

    name: ClassVar[str] = "PromiseForError"
