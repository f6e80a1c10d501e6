"""Response envelope shared by every endpoint: {success, data, error, meta}."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from api.middleware import current_request_id
from utils.timezone import now_utc


class ErrorCodes:
    """Machine-readable error codes. Each code is its own name."""

    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    ACCOUNT_BLOCKED = "ACCOUNT_BLOCKED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class APIError(BaseModel):
    code: str = Field(..., description="One of ErrorCodes")
    message: str = Field(..., description="Message fit to show the user")
    fields: dict[str, str] | None = Field(None, description="Form field -> message")


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="UTC time the response was built")
    request_id: str = Field(..., description="Matches the X-Request-ID header")


class APIResponse(BaseModel):
    """
    Envelope for every JSON body, success or failure.

    Exactly one of data and error is meaningful, as told by success.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta() -> APIMeta:
    # Outside a request (tests, scripts) there is no header id to echo
    return APIMeta(timestamp=now_utc(), request_id=current_request_id() or str(uuid4()))


def success_response(data: Any) -> APIResponse:
    return APIResponse(success=True, data=data, meta=_meta())


def error_response(code: str, message: str, fields: dict[str, str] | None = None) -> APIResponse:
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message, fields=fields),
        meta=_meta(),
    )
