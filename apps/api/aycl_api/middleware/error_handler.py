from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from aycl_api.context import get_correlation_id
from aycl_api.core.errors import HttpError


logger = logging.getLogger("aycl_api.errors")

_STATUS_CODES = {
    404: ("ROUTE_NOT_FOUND", "Route not found"),
    405: ("METHOD_NOT_ALLOWED", "Method not allowed"),
}


def _resolve_correlation_id(request: Request) -> str:
    return (
        getattr(request.state, "correlation_id", None)
        or get_correlation_id()
        or request.headers.get("x-correlation-id")
        or "unknown"
    )


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    correlation_id = _resolve_correlation_id(request)
    content: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        content["details"] = details
    content["correlationId"] = correlation_id

    response = JSONResponse(status_code=status_code, content=content, headers=headers)
    response.headers["x-correlation-id"] = correlation_id
    return response


async def handle_http_error(request: Request, exc: HttpError) -> JSONResponse:
    logger.warning(
        "http.handled_error",
        extra={"code": exc.code, "status_code": exc.status, "path": request.url.path},
    )
    return error_response(
        request,
        status_code=exc.status,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": str(error.get("msg", "")),
            "type": str(error.get("type", "")),
        }
        for error in exc.errors()
    ]
    logger.warning(
        "http.validation_error",
        extra={"code": "VALIDATION_ERROR", "status_code": 400, "path": request.url.path},
    )
    return error_response(
        request,
        status_code=400,
        code="VALIDATION_ERROR",
        message="Invalid request",
        details=details,
    )


async def handle_starlette_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code, message = _STATUS_CODES.get(exc.status_code, (f"HTTP_{exc.status_code}", str(exc.detail)))
    logger.warning(
        "http.handled_error",
        extra={"code": code, "status_code": exc.status_code, "path": request.url.path},
    )
    return error_response(
        request,
        status_code=exc.status_code,
        code=code,
        message=message,
        headers=dict(exc.headers) if exc.headers else None,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.unhandled_error",
        exc_info=exc,
        extra={"status_code": 500, "path": request.url.path, "error": str(exc)},
    )
    return error_response(
        request,
        status_code=500,
        code="INTERNAL_SERVER_ERROR",
        message="Unexpected error",
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HttpError, handle_http_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_starlette_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)
