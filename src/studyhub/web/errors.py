"""Exception handlers producing the failure envelope.

Route code raises HTTPException; data-service and auth failures that
escape a route are mapped here.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from studyhub.db.data_service import AuthError, DataServiceError

logger = structlog.get_logger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
    )


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p != "body"]
    return ".".join(parts) or "body"


def validation_message(exc: RequestValidationError | ValidationError) -> str:
    """One line per invalid field, e.g. 'firstName: Field required'."""
    messages = []
    for error in exc.errors():
        field = _field_name(tuple(error.get("loc", ())))
        messages.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(messages) or "Invalid request"


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return error_response(exc.status_code, "Route not found")
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = validation_message(exc)
    logger.info("request_invalid", path=request.url.path, detail=message)
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def data_service_error_handler(request: Request, exc: DataServiceError) -> JSONResponse:
    # Upstream detail stays in the logs
    logger.error(
        "data_service_error",
        path=request.url.path,
        table=exc.table,
        operation=exc.operation,
        error=str(exc),
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    logger.info("auth_failed", path=request.url.path, error=str(exc))
    return error_response(status.HTTP_401_UNAUTHORIZED, str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DataServiceError, data_service_error_handler)
    app.add_exception_handler(AuthError, auth_error_handler)
