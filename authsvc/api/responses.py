from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from authsvc.api.schemas.auth import ErrorEnvelope


logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    message: str,
    *,
    error: Any = None,
    errors: list[str] | None = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(message=message, error=error, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(by_alias=True, exclude_none=True),
    )


def _validation_messages(exc: RequestValidationError) -> list[str]:
    messages = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        message = str(item.get("msg", "Invalid value."))
        messages.append(f"{location}: {message}" if location else message)
    return messages


def register_exception_handlers(app: FastAPI, *, expose_internal_errors: bool = False) -> None:
    """Render every error as ``{success: false, message, error?, errors?}``."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            message = str(exc.detail.get("message", "Request failed."))
            error = exc.detail.get("error")
        else:
            message = str(exc.detail)
            error = None
        if exc.status_code >= 500:
            logger.error(
                "responses: http_error path=%s status=%s message=%s",
                request.url.path,
                exc.status_code,
                message,
            )
        return error_response(exc.status_code, message, error=error)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        messages = _validation_messages(exc)
        logger.info("responses: validation_error path=%s count=%s", request.url.path, len(messages))
        return error_response(400, "Validation error", errors=messages)

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception(
            "responses: unhandled_exception path=%s type=%s",
            request.url.path,
            type(exc).__name__,
        )
        return error_response(
            500,
            "Internal server error",
            error=str(exc) if expose_internal_errors else "Something went wrong",
        )
