"""Unit tests for the response envelope: defaults, status mapping, wire keys."""

import json

import pytest

from projecthub.schemas.envelope import (
    ResponseError,
    build_envelope,
    build_paginated_envelope,
    envelope_response,
    error_for_status,
    status_code_for,
)
from projecthub.schemas.pagination import PageInfo


def test_build_envelope_defaults():
    env = build_envelope()
    assert env.data == []
    assert env.error is None
    assert env.is_error is False
    assert env.error_details is None


def test_build_envelope_with_error_sets_is_error():
    env = build_envelope(error=ResponseError.NOT_FOUND, error_details="nothing here")
    assert env.is_error is True
    assert env.data == []
    assert env.error_details == "nothing here"


def test_falsy_data_is_kept():
    assert build_envelope(False).data is False
    assert build_envelope(0).data == 0


def test_error_wire_strings():
    assert ResponseError.NOT_FOUND.value == "Not Found"
    assert ResponseError.VALIDATION_ERROR.value == "Validation Error"
    assert ResponseError.INCORRECT_LOGIN_DATA.value == "Incorrect username or password"
    assert len(ResponseError) == 11


@pytest.mark.parametrize(
    "error, expected",
    [
        (None, 200),
        (ResponseError.NOT_FOUND, 404),
        (ResponseError.SERVER_ERROR, 500),
        (ResponseError.UNAUTHORIZED, 401),
        (ResponseError.NOT_AUTHENTICATED, 401),
        (ResponseError.FORBIDDEN, 403),
        (ResponseError.TOO_MANY_REQUESTS, 429),
        (ResponseError.UNSUPPORTED_MEDIA_TYPE, 415),
        (ResponseError.BAD_REQUEST, 400),
        (ResponseError.VALIDATION_ERROR, 400),
        (ResponseError.INCORRECT_LOGIN_DATA, 400),
        ("Something custom", 400),
    ],
)
def test_status_code_for(error, expected):
    assert status_code_for(build_envelope(error=error)) == expected


def test_status_code_for_success_status():
    assert status_code_for(build_envelope({"id": 1}), success_status=201) == 201


@pytest.mark.parametrize(
    "status, expected",
    [
        (400, ResponseError.BAD_REQUEST),
        (401, ResponseError.NOT_AUTHENTICATED),
        (403, ResponseError.FORBIDDEN),
        (404, ResponseError.NOT_FOUND),
        (405, ResponseError.BAD_REQUEST),
        (422, ResponseError.VALIDATION_ERROR),
        (429, ResponseError.TOO_MANY_REQUESTS),
        (500, ResponseError.SERVER_ERROR),
        (503, ResponseError.SERVER_ERROR),
    ],
)
def test_error_for_status(status, expected):
    assert error_for_status(status) == expected


def test_paginated_envelope_dumps_camel_case():
    env = build_paginated_envelope([{"id": 1}], PageInfo(page=1, total_pages=3, remaining_pages=0))
    dumped = env.model_dump(mode="json", by_alias=True)
    assert dumped == {
        "data": [{"id": 1}],
        "error": None,
        "isError": False,
        "errorDetails": None,
        "pagination": {"page": 1, "totalPages": 3, "remainingPages": 0},
    }


def test_envelope_response_status_and_body():
    resp = envelope_response(build_envelope(error=ResponseError.FORBIDDEN, error_details="no"))
    assert resp.status_code == 403
    body = json.loads(resp.body)
    assert body["error"] == "Forbidden"
    assert body["isError"] is True
    assert body["errorDetails"] == "no"


def test_envelope_response_explicit_status_wins():
    resp = envelope_response(build_envelope(error=ResponseError.INCORRECT_LOGIN_DATA), status_code=401)
    assert resp.status_code == 401
