"""
bot_access.api.errors

Exception handlers rendering the standard error envelope.

Responsibilities:
- Map `AccessError` subclasses to their HTTP status and a JSON envelope.
- Map unexpected database errors to a retryable 503 instead of leaking internals.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from bot_access.errors import AccessError, DataUnavailable
from bot_access.observability.logging import get_logger

log = get_logger(__name__)


def error_envelope(
    *, code: str, message: str, details: dict[str, Any] | None = None, retryable: bool = False
) -> dict[str, Any]:
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "retryable": retryable,
        },
    }


async def _access_error_handler(request: Request, exc: AccessError) -> JSONResponse:
    log.info("request_rejected", code=exc.code, status_code=exc.status_code)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(
            code=exc.code, message=exc.message, details=exc.details, retryable=exc.retryable
        ),
        headers=headers,
    )


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error("database_error", error=str(exc))
    return JSONResponse(
        status_code=HTTP_503_SERVICE_UNAVAILABLE,
        content=error_envelope(
            code=DataUnavailable.code, message="Data service unavailable", retryable=True
        ),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=error_envelope(
            code="validation_error",
            message="Request validation failed",
            details={"errors": jsonable_encoder(exc.errors())},
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccessError, _access_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
