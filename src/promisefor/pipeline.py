"""Chained async pipelines with a single error channel.

``pipe_for`` seeds a pipeline from one producer; ``transform`` and ``pipe``
derive new stages; ``execute`` awaits the accumulated ``ResultPair``.

Every stage is immutable and lazy. Deriving a stage never mutates its parent
and never starts work: the whole lineage runs, strictly in order, the first
time any descendant pair is awaited, and each stage computes its pair at most
once. The first failure is captured as an ``ErrorDescriptor`` tagged with
``StepInfo`` and carried unchanged to the end of the chain; later step
functions are never called.
"""

from __future__ import annotations

from dataclasses import dataclass
import inspect
import logging
from typing import TYPE_CHECKING, Any

from promisefor._once import Once
from promisefor.classify import classify_response, run_classifier
from promisefor.constants import (
    DEFAULT_PIPELINE_CONTEXT,
    INITIAL_STEP_INDEX,
    INITIALIZATION,
    PIPE,
    TRANSFORM,
    StepType,
)
from promisefor.errors import ErrorDescriptor, StepInfo, normalize_error
from promisefor.producers import as_producer, await_maybe, settle
from promisefor.result import ResultPair

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Generator

    from promisefor.classify import DomainFailureClassifier

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StepDescriptor:
    """Introspection record for one chained step."""

    index: int
    type: StepType
    context: str
    fn: Callable[[Any], Any]


def _empty_failure(message: str, context: str, step_info: StepInfo) -> ErrorDescriptor:
    # Raised and caught so the descriptor carries a real traceback.
    try:
        raise ValueError(message)
    except ValueError as exc:
        return normalize_error(exc, context, step_info)


class Pipeline[T]:
    """One immutable stage of a chain.

    Build stages with ``pipe_for``; the constructor is internal.
    """

    __slots__ = ("_classifier", "_context", "_outcome", "_steps")

    def __init__(
        self,
        outcome: Once[ResultPair[T]],
        context: str,
        steps: tuple[StepDescriptor, ...],
        classifier: DomainFailureClassifier | None,
    ) -> None:
        self._outcome = outcome
        self._context = context
        self._steps = steps
        self._classifier = classifier

    @property
    def context(self) -> str:
        """Label of this stage; the default ``pipeline_context`` of the next step."""
        return self._context

    @property
    def steps(self) -> tuple[StepDescriptor, ...]:
        """Steps chained so far in this lineage, in order."""
        return self._steps

    def __repr__(self) -> str:
        return f"Pipeline(context={self._context!r}, steps={len(self._steps)})"

    # -- chaining -----------------------------------------------------------

    def transform[R](
        self,
        fn: Callable[[T], R | Awaitable[R]],
        step_context: str | None = None,
    ) -> Pipeline[R]:
        """Map the current value with *fn* (sync or async).

        A ``None`` input or a ``None`` result is a failure of this step.
        """
        index = len(self._steps)
        context = step_context or f"Transform step {index}"
        step_info = StepInfo(index=index, type=TRANSFORM, pipeline_context=self._context)
        upstream = self._outcome

        async def run() -> ResultPair[R]:
            value, error = await upstream.get()
            if error is not None:
                log.debug("Skipping transform %d (%s): upstream failed", index, context)
                return ResultPair.failure(error)
            if value is None:
                return ResultPair.failure(
                    _empty_failure("Transformation input was empty", context, step_info)
                )
            try:
                transformed = await await_maybe(fn(value))
            except Exception as exc:
                log.debug("Transform %d failed (%s): %r", index, context, exc)
                return ResultPair.failure(normalize_error(exc, context, step_info))
            if transformed is None:
                return ResultPair.failure(
                    _empty_failure("Transformation resulted in empty", context, step_info)
                )
            return ResultPair.success(transformed)

        return self._derive(run, context, StepDescriptor(index, TRANSFORM, context, fn))

    def pipe[R](
        self,
        fn: Callable[[T], Awaitable[R]],
        step_context: str | None = None,
    ) -> Pipeline[R]:
        """Start a new async operation from the current value.

        *fn* must return an awaitable. A ``None`` input is a failure of this
        step; a ``None`` result is a success. The awaited result goes through
        the pipeline's domain-failure classifier.
        """
        index = len(self._steps)
        context = step_context or f"Pipe step {index}"
        step_info = StepInfo(index=index, type=PIPE, pipeline_context=self._context)
        upstream = self._outcome
        classifier = self._classifier

        async def run() -> ResultPair[R]:
            value, error = await upstream.get()
            if error is not None:
                log.debug("Skipping pipe %d (%s): upstream failed", index, context)
                return ResultPair.failure(error)
            if value is None:
                return ResultPair.failure(
                    _empty_failure("Pipe input was empty", context, step_info)
                )
            try:
                pending = fn(value)
                if not inspect.isawaitable(pending):
                    raise TypeError(
                        f"pipe step must return an awaitable, got {type(pending).__name__}"
                    )
                result = await pending
            except Exception as exc:
                log.debug("Pipe %d failed (%s): %r", index, context, exc)
                return ResultPair.failure(normalize_error(exc, context, step_info))
            failure = run_classifier(classifier, result)
            if failure is not None:
                log.debug("Pipe %d result classified as failure (%s): %s", index, context, failure)
                return ResultPair.failure(normalize_error(failure, context, step_info))
            return ResultPair.success(result)

        return self._derive(run, context, StepDescriptor(index, PIPE, context, fn))

    def _derive[R](
        self,
        run: Callable[[], Awaitable[ResultPair[R]]],
        context: str,
        step: StepDescriptor,
    ) -> Pipeline[R]:
        return Pipeline(Once(run), context, (*self._steps, step), self._classifier)

    # -- terminal -----------------------------------------------------------

    async def execute(self) -> ResultPair[T]:
        """Await this stage's pair; safe to call repeatedly, never re-runs steps."""
        return await self._outcome.get()

    def __await__(self) -> Generator[Any, None, ResultPair[T]]:
        return self.execute().__await__()


def pipe_for[T](
    source: Awaitable[T] | Callable[[], Awaitable[T]],
    context: str = DEFAULT_PIPELINE_CONTEXT,
    *,
    classifier: DomainFailureClassifier | None = classify_response,
) -> Pipeline[T]:
    """Start a pipeline from an awaitable or a zero-argument factory.

    The producer is resolved once, lazily, when the chain is first executed.
    A ``None`` initial value is a failure tagged as the initialization step.

    Example:
        name, error = await (
            pipe_for(client.get("/users/1"), "Load user")
            .transform(lambda r: r.json())
            .transform(lambda user: user["name"], "Extract name")
            .execute()
        )
    """
    context = context or DEFAULT_PIPELINE_CONTEXT
    producer = as_producer(source)
    step_info = StepInfo(
        index=INITIAL_STEP_INDEX, type=INITIALIZATION, pipeline_context=context
    )

    async def run() -> ResultPair[T]:
        try:
            value = await settle(producer)
        except Exception as exc:
            log.debug("Pipeline initialization failed (%s): %r", context, exc)
            return ResultPair.failure(normalize_error(exc, context, step_info))
        if value is None:
            return ResultPair.failure(
                _empty_failure("Initial value resolved to empty", context, step_info)
            )
        failure = run_classifier(classifier, value)
        if failure is not None:
            log.debug("Initial value classified as failure (%s): %s", context, failure)
            return ResultPair.failure(normalize_error(failure, context, step_info))
        return ResultPair.success(value)

    return Pipeline(Once(run), context, (), classifier)
