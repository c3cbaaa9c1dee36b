"""Domain-failure classification for resolved values.

A resolved value can still be a failure by convention; the canonical case is
an ``httpx.Response`` carrying a non-2xx status. Classifiers turn such values
into an exception that the normalizer then canonicalizes.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import httpx

from promisefor.errors import HTTPError

log = logging.getLogger(__name__)

_MESSAGE_KEYS = ("message", "error", "detail", "error_description")


class DomainFailureClassifier(Protocol):
    """Callable that flags a resolved value as a conventional failure."""

    def __call__(self, value: Any, /) -> BaseException | None: ...  # noqa: D102


def _message_from_payload(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in _MESSAGE_KEYS:
        candidate = payload.get(key)
        if isinstance(candidate, str) and candidate.strip():
            return candidate
        # {"error": {"message": "..."}} as used by many JSON APIs
        if isinstance(candidate, dict):
            nested = candidate.get("message")
            if isinstance(nested, str) and nested.strip():
                return nested
    return None


def _read_body(response: httpx.Response) -> tuple[str | None, Any]:
    """Return ``(message, response_data)`` from the body, best effort."""
    try:
        text = response.text
    except (httpx.StreamError, UnicodeDecodeError, LookupError) as exc:
        log.debug("Response body unavailable for %s: %s", response.status_code, exc)
        return None, None

    if not text.strip():
        return None, None

    try:
        payload = json.loads(text)
    except ValueError:
        return text, text
    return _message_from_payload(payload) or text, payload


def _request_detail(response: httpx.Response) -> tuple[str | None, str | None]:
    try:
        request = response.request
    except RuntimeError:
        return None, None
    return str(request.url), request.method


def classify_response(value: Any) -> HTTPError | None:
    """Return an ``HTTPError`` when *value* is a non-2xx ``httpx.Response``.

    The message prefers a ``message``/``error`` field of a JSON object body,
    then the raw body text, then ``"HTTP error! status: <code>"``. The parsed
    body (or raw text) is kept as ``response_data``. Never raises.
    """
    if not isinstance(value, httpx.Response) or value.is_success:
        return None

    status = value.status_code
    message, data = _read_body(value)
    url, method = _request_detail(value)
    return HTTPError(
        message or f"HTTP error! status: {status}",
        status=status,
        url=url,
        method=method,
        response_data=data,
    )


def run_classifier(classifier: DomainFailureClassifier | None, value: Any) -> BaseException | None:
    """Apply *classifier* to *value*, treating a crashing classifier as the failure."""
    if classifier is None:
        return None
    try:
        return classifier(value)
    except Exception as exc:
        log.debug("Domain-failure classifier raised: %r", exc)
        return exc
