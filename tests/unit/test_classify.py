from __future__ import annotations

import httpx
import pytest

from promisefor.classify import classify_response, run_classifier
from promisefor.errors import HTTPError, normalize_error

pytestmark = pytest.mark.unit

_REQUEST = httpx.Request("POST", "https://api.example.com/login")


def test_success_response_is_not_a_failure() -> None:
    response = httpx.Response(200, json={"ok": True}, request=_REQUEST)
    assert classify_response(response) is None


@pytest.mark.parametrize("value", [None, 0, "", {"status": 500}, [1, 2]])
def test_non_response_values_flow_through(value: object) -> None:
    assert classify_response(value) is None


def test_json_message_is_extracted() -> None:
    response = httpx.Response(401, json={"message": "invalid credentials"}, request=_REQUEST)

    failure = classify_response(response)

    assert isinstance(failure, HTTPError)
    assert str(failure) == "invalid credentials"
    assert failure.status == 401
    assert failure.url == "https://api.example.com/login"
    assert failure.method == "POST"
    assert failure.response_data == {"message": "invalid credentials"}


def test_descriptor_from_classified_response() -> None:
    response = httpx.Response(401, json={"message": "invalid credentials"}, request=_REQUEST)

    desc = normalize_error(classify_response(response), "login")

    assert desc.message == "invalid credentials"
    assert desc.name == "HTTPError"
    assert desc.status == 401
    assert desc.response_data == {"message": "invalid credentials"}


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"error": "bad token"}, "bad token"),
        ({"error": {"code": 7, "message": "quota exhausted"}}, "quota exhausted"),
        ({"detail": "Not authenticated"}, "Not authenticated"),
    ],
)
def test_alternative_message_fields(payload: dict, expected: str) -> None:
    response = httpx.Response(400, json=payload, request=_REQUEST)
    failure = classify_response(response)

    assert failure is not None
    assert str(failure) == expected
    assert failure.response_data == payload


def test_json_without_message_uses_raw_text() -> None:
    response = httpx.Response(422, json={"fields": ["email"]}, request=_REQUEST)
    failure = classify_response(response)

    assert failure is not None
    assert str(failure) == response.text
    assert failure.response_data == {"fields": ["email"]}


def test_plain_text_body() -> None:
    response = httpx.Response(502, text="upstream exploded", request=_REQUEST)
    failure = classify_response(response)

    assert failure is not None
    assert str(failure) == "upstream exploded"
    assert failure.response_data == "upstream exploded"


def test_empty_body_uses_status_line() -> None:
    response = httpx.Response(404, request=_REQUEST)
    failure = classify_response(response)

    assert failure is not None
    assert str(failure) == "HTTP error! status: 404"
    assert failure.response_data is None


def test_unread_stream_falls_back_to_status_line() -> None:
    async def body():
        yield b'{"message": "never read"}'

    response = httpx.Response(500, content=body(), request=_REQUEST)
    failure = classify_response(response)

    assert failure is not None
    assert str(failure) == "HTTP error! status: 500"
    assert failure.status == 500


def test_response_without_request() -> None:
    failure = classify_response(httpx.Response(503))

    assert failure is not None
    assert failure.url is None
    assert failure.method is None


def test_run_classifier_captures_crashing_classifier() -> None:
    def broken(_value: object) -> BaseException | None:
        raise KeyError("status")

    failure = run_classifier(broken, {"anything": 1})
    assert isinstance(failure, KeyError)


def test_run_classifier_disabled() -> None:
    assert run_classifier(None, httpx.Response(500)) is None
