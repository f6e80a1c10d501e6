"""App-wide exception handlers. Every failure leaves as an error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes

logger = logging.getLogger(__name__)

# Location prefixes that name the request part, not the field
_LOCATION_ROOTS = ("body", "query", "path")


def error_json(status_code: int, code: str, message: str, fields: dict[str, str] | None = None) -> JSONResponse:
    body = error_response(code, message, fields=fields).model_dump(mode="json")
    return JSONResponse(status_code=status_code, content=body)


def field_messages(exc: RequestValidationError) -> dict[str, str]:
    """{field: first message} from pydantic error locations."""
    fields: dict[str, str] = {}
    for error in exc.errors():
        path = [str(part) for part in error.get("loc", ()) if part not in _LOCATION_ROOTS]
        fields.setdefault(".".join(path) or "request", error.get("msg", "Invalid value"))
    return fields


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError):
        return error_json(
            422,
            ErrorCodes.VALIDATION_ERROR,
            "Please correct the highlighted fields.",
            fields=field_messages(exc),
        )

    @app.exception_handler(ValueError)
    async def on_value_error(request: Request, exc: ValueError):
        message = str(exc)
        if "not found" in message.lower():
            return error_json(404, ErrorCodes.NOT_FOUND, message)
        return error_json(400, ErrorCodes.INVALID_REQUEST, message)

    @app.exception_handler(Exception)
    async def on_unhandled(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_json(500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
