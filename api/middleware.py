"""Request-scoped middleware for API requests."""

import re
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def current_request_id() -> str | None:
    """Id of the request being served, or None outside a request."""
    return _request_id.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every request and response with an X-Request-ID.

    A well-formed id supplied by an upstream proxy is kept; anything else is
    replaced with a fresh UUID. The id is also the envelope's meta.request_id.
    """

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get("X-Request-ID", "")
        request_id = incoming if _REQUEST_ID_PATTERN.match(incoming) else str(uuid4())
        request.state.request_id = request_id
        token = _request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response
