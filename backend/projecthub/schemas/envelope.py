"""Uniform response envelope returned by every endpoint.

Wire shape: ``{"data", "error", "isError", "errorDetails"}``; paginated listings add
``{"pagination": {"page", "totalPages", "remainingPages"}}``.
"""

import enum
from typing import Any

from fastapi.responses import JSONResponse
from pydantic import Field

from projecthub.schemas.common import CamelModel
from projecthub.schemas.pagination import PageInfo


class ResponseError(str, enum.Enum):
    NOT_FOUND = "Not Found"
    SERVER_ERROR = "Server Error"
    BAD_REQUEST = "Bad Request"
    UNAUTHORIZED = "Unauthorized"
    NOT_AUTHENTICATED = "Not Authenticated"
    FORBIDDEN = "Forbidden"
    VALIDATION_ERROR = "Validation Error"
    TOO_MANY_REQUESTS = "Too Many Requests"
    INVALID_CREDENTIALS = "Invalid Credentials"
    UNSUPPORTED_MEDIA_TYPE = "Unsupported Media Type"
    INCORRECT_LOGIN_DATA = "Incorrect username or password"


class ResponseEnvelope(CamelModel):
    data: Any = Field(default_factory=list)
    error: ResponseError | str | None = None
    is_error: bool = False
    error_details: str | None = None


class PaginatedEnvelope(ResponseEnvelope):
    pagination: PageInfo


_STATUS_BY_ERROR: dict[str, int] = {
    ResponseError.NOT_FOUND.value: 404,
    ResponseError.SERVER_ERROR.value: 500,
    ResponseError.UNAUTHORIZED.value: 401,
    ResponseError.NOT_AUTHENTICATED.value: 401,
    ResponseError.FORBIDDEN.value: 403,
    ResponseError.TOO_MANY_REQUESTS.value: 429,
    ResponseError.UNSUPPORTED_MEDIA_TYPE.value: 415,
}

_ERROR_BY_STATUS: dict[int, ResponseError] = {
    401: ResponseError.NOT_AUTHENTICATED,
    403: ResponseError.FORBIDDEN,
    404: ResponseError.NOT_FOUND,
    415: ResponseError.UNSUPPORTED_MEDIA_TYPE,
    422: ResponseError.VALIDATION_ERROR,
    429: ResponseError.TOO_MANY_REQUESTS,
}


def _error_value(error: ResponseError | str | None) -> str | None:
    if isinstance(error, ResponseError):
        return error.value
    return error


def build_envelope(
    data: Any = None,
    error: ResponseError | str | None = None,
    error_details: str | None = None,
) -> ResponseEnvelope:
    return ResponseEnvelope(
        data=[] if data is None else data,
        error=error,
        is_error=error is not None,
        error_details=error_details,
    )


def build_paginated_envelope(
    data: Any,
    pagination: PageInfo,
    error: ResponseError | str | None = None,
    error_details: str | None = None,
) -> PaginatedEnvelope:
    return PaginatedEnvelope(
        data=[] if data is None else data,
        pagination=pagination,
        error=error,
        is_error=error is not None,
        error_details=error_details,
    )


def status_code_for(envelope: ResponseEnvelope, success_status: int = 200) -> int:
    """HTTP status for an envelope: success -> success_status, known errors mapped, else 400."""
    if envelope.error is None:
        return success_status
    return _STATUS_BY_ERROR.get(_error_value(envelope.error), 400)


def error_for_status(status_code: int) -> ResponseError:
    if status_code >= 500:
        return ResponseError.SERVER_ERROR
    return _ERROR_BY_STATUS.get(status_code, ResponseError.BAD_REQUEST)


def envelope_response(
    envelope: ResponseEnvelope,
    status_code: int | None = None,
    success_status: int = 200,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Serialize an envelope with camelCase keys; status derived from its error unless given."""
    return JSONResponse(
        status_code=status_code if status_code is not None else status_code_for(envelope, success_status),
        content=envelope.model_dump(mode="json", by_alias=True),
        headers=headers,
    )
