"""Single-step resolver: one awaitable in, one ``(value, error)`` pair out."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any

from promisefor.classify import classify_response, run_classifier
from promisefor.constants import DEFAULT_POST_PROCESS_CONTEXT, DEFAULT_RESOLVE_CONTEXT
from promisefor.errors import normalize_error
from promisefor.producers import as_producer, await_maybe, settle
from promisefor.result import ResultPair

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from promisefor.classify import DomainFailureClassifier

    type PostProcessor = Callable[[Any], Any | Awaitable[Any]]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromiseForOptions:
    """Options record for ``promise_for``."""

    #: Applied to the resolved value; may be sync or async.
    post_processor: PostProcessor | None = None
    #: Overrides the context attached to any failure from this call.
    context: str | None = None

    def __post_init__(self) -> None:
        """Validate option shapes early for clear errors."""
        if self.post_processor is not None and not callable(self.post_processor):
            raise TypeError("post_processor must be callable")
        if self.context is not None and not isinstance(self.context, str):
            raise TypeError("context must be a string")


def coerce_options(
    options_or_post_processor: PromiseForOptions | Mapping[str, Any] | PostProcessor | None = None,
    legacy_context: str | None = None,
) -> PromiseForOptions:
    """Fold both call conventions into one ``PromiseForOptions``.

    A callable second argument always means the legacy positional form
    ``(post_processor, context)``; otherwise it is an options record, given
    either as ``PromiseForOptions`` or a mapping with the same keys.
    """
    if options_or_post_processor is None:
        return PromiseForOptions(context=legacy_context or None)
    if isinstance(options_or_post_processor, PromiseForOptions):
        return options_or_post_processor
    if isinstance(options_or_post_processor, Mapping):
        unknown = set(options_or_post_processor) - {"post_processor", "context"}
        if unknown:
            raise TypeError(f"unknown promise_for options: {sorted(unknown)}")
        return PromiseForOptions(
            post_processor=options_or_post_processor.get("post_processor"),
            context=options_or_post_processor.get("context") or None,
        )
    if callable(options_or_post_processor):
        return PromiseForOptions(
            post_processor=options_or_post_processor,
            context=legacy_context or None,
        )
    raise TypeError(
        "promise_for expects PromiseForOptions, a mapping, or a post-processor callable; "
        f"got {type(options_or_post_processor).__name__}"
    )


async def resolve_one(
    source: Any,
    options: PromiseForOptions,
    *,
    classifier: DomainFailureClassifier | None = classify_response,
) -> ResultPair[Any]:
    """Resolve *source* once with canonical options; never raises."""
    context = options.context or DEFAULT_RESOLVE_CONTEXT

    try:
        value = await settle(as_producer(source))
    except Exception as exc:
        log.debug("Promise resolution failed (%s): %r", context, exc)
        return ResultPair.failure(normalize_error(exc, context))

    failure = run_classifier(classifier, value)
    if failure is not None:
        log.debug("Resolved value classified as failure (%s): %s", context, failure)
        return ResultPair.failure(normalize_error(failure, context))

    if options.post_processor is None:
        return ResultPair.success(value)

    try:
        processed = await await_maybe(options.post_processor(value))
    except Exception as exc:
        post_context = options.context or DEFAULT_POST_PROCESS_CONTEXT
        log.debug("Post-processing failed (%s): %r", post_context, exc)
        return ResultPair.failure(normalize_error(exc, post_context))
    return ResultPair.success(processed)


async def promise_for(
    source: Any,
    options_or_post_processor: PromiseForOptions | Mapping[str, Any] | PostProcessor | None = None,
    legacy_context: str | None = None,
    *,
    classifier: DomainFailureClassifier | None = classify_response,
) -> ResultPair[Any]:
    """Await *source* and return ``(value, None)`` or ``(None, ErrorDescriptor)``.

    Args:
        source: An awaitable, or a zero-argument callable returning one. A
            callable that raises synchronously is captured like a rejection.
        options_or_post_processor: ``PromiseForOptions`` (or a mapping with
            ``post_processor`` / ``context``), or a post-processor callable
            for the legacy positional form.
        legacy_context: Context for the legacy positional form.
        classifier: Flags resolved values that are failures by convention;
            defaults to non-2xx ``httpx.Response`` detection. ``None`` disables.

    Returns:
        A ``ResultPair``; this coroutine never raises for failures of *source*.

    Example:
        value, error = await promise_for(
            client.get("/users/1"),
            PromiseForOptions(post_processor=lambda r: r.json(), context="Load user"),
        )

        # Legacy positional form
        value, error = await promise_for(fetch_user, parse_user, "Load user")
    """
    options = coerce_options(options_or_post_processor, legacy_context)
    return await resolve_one(source, options, classifier=classifier)
