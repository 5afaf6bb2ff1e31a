"""
JSON error responses.

Every error leaves the API as:

    {
        "success": false,
        "error": {"code": ..., "message": ..., "details": {...}},
        "timestamp": "2025-11-15T12:00:00+00:00",
        "path": "/api/v1/weather/..."
    }
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.core.errors import AppError


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
        },
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"❌ {exc.code} | {request.method} {request.url.path} | "
        f"{exc.message}"
    )
    return error_response(
        request, exc.status_code, exc.code, exc.message, exc.details
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.warning(
        f"⚠️ VALIDATION_ERROR | {request.method} {request.url.path} | "
        f"{exc.errors()}"
    )
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"errors": jsonable_errors(exc)},
    )


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(
        request, exc.status_code, "HTTP_ERROR", str(exc.detail)
    )


async def unhandled_error_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    logger.opt(exception=exc).error(
        f"❌ INTERNAL_ERROR | {request.method} {request.url.path} | "
        f"{type(exc).__name__}: {exc}"
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "Internal server error",
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Strip non-serializable context (e.g. exception objects)."""
    return [
        {
            "loc": list(err.get("loc", ())),
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
