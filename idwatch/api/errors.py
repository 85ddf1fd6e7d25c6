"""
API Error Handlers
==================

Every error response has the body ``{"error": str, "status": int}``.

Author: idwatch Team
Version: 1.0.0
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from idwatch.errors import IdWatchError
from idwatch.logging import get_logger


logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_response(message: str, status_code: int, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "status": status_code},
        headers=headers,
    )


async def idwatch_error_handler(request: Request, exc: IdWatchError) -> JSONResponse:
    status_code = exc.http_status
    if status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc.message}",
            path=request.url.path,
            kind=exc.kind.value,
        )
        return error_response(INTERNAL_ERROR_MESSAGE, status_code)
    return error_response(exc.message, status_code)


async def http_error_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return error_response(
        str(exc.detail),
        exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid request: {location}: {first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    return error_response(message, status.HTTP_400_BAD_REQUEST)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path)
    return error_response(INTERNAL_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)


def register_error_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an app."""
    app.add_exception_handler(IdWatchError, idwatch_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
