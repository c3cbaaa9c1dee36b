"""promisefor: uniform ``(value, error)`` results for async code.

Public API:
    - promise_for(): await one operation, get ``(value, error)``
    - pipe_for(): chain ``transform`` / ``pipe`` steps over one error channel
    - ErrorDescriptor / StepInfo: what the error side carries
    - PipelineError / PromiseForError: raise-able wrappers for descriptors
"""

from __future__ import annotations

import logging

from promisefor.classify import DomainFailureClassifier, classify_response
from promisefor.config import Settings, get_settings, reset_settings
from promisefor.errors import (
    ConfigurationError,
    DescriptorError,
    ErrorDescriptor,
    HTTPError,
    PipelineError,
    PromiseForError,
    PromiseForLibError,
    StepInfo,
    normalize_error,
)
from promisefor.pipeline import Pipeline, StepDescriptor, pipe_for
from promisefor.producers import Deferred, Ready
from promisefor.resolve import PromiseForOptions, promise_for
from promisefor.result import ResultPair

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("promisefor")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("promisefor").addHandler(logging.NullHandler())

__all__ = [
    "ConfigurationError",
    "Deferred",
    "DescriptorError",
    "DomainFailureClassifier",
    "ErrorDescriptor",
    "HTTPError",
    "Pipeline",
    "PipelineError",
    "PromiseForError",
    "PromiseForLibError",
    "PromiseForOptions",
    "Ready",
    "ResultPair",
    "Settings",
    "StepDescriptor",
    "StepInfo",
    "classify_response",
    "get_settings",
    "normalize_error",
    "pipe_for",
    "promise_for",
    "reset_settings",
]
