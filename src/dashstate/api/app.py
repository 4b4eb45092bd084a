"""
FastAPI application setup for the dashstate API.

Creates the FastAPI app instance, registers routes, and maps the store's
exception taxonomy onto HTTP responses:

- ValidationError -> 400
- unsupported verb -> 405
- ConfigurationError, unexpected errors -> 500
- BackendError (incl. IndexUpdateError) -> 502
"""

import logging
import traceback
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashstate import __version__
from dashstate.api.routes import state
from dashstate.core.exceptions import (
    BackendError,
    ConfigurationError,
    DashStateError,
    IndexUpdateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
}


# Error codes for consistent error responses
class ErrorCode(str, Enum):
    """Standard error codes for API responses."""

    # Client errors (4xx)
    INVALID_ID = "INVALID_ID"
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Server errors (5xx)
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    BACKEND_ERROR = "BACKEND_ERROR"
    INDEX_UPDATE_ERROR = "INDEX_UPDATE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error_code: ErrorCode
    message: str
    detail: Any = None
    request_id: str | None = None


def _error_response(
    request: Request,
    status_code: int,
    error_code: ErrorCode,
    message: str,
    detail: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error_code=error_code,
        message=message,
        detail=detail,
        request_id=str(id(request)),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json"),
        headers=headers,
    )


# Create FastAPI app
app = FastAPI(
    title="Dashstate API",
    description="Dashboard state stored in a GitHub repository",
    version=__version__,
)

# Register routes
app.include_router(state.router, prefix="/api", tags=["state"])


@app.middleware("http")
async def add_cors_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Allow any origin to call the API; every response carries the CORS headers."""
    response = await call_next(request)
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


@app.get("/health")
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Malformed or missing dashboard id. No backend call was made."""
    logger.info("HTTP 400 on %s %s: %s", request.method, request.url.path, exc.message)
    return _error_response(
        request, status.HTTP_400_BAD_REQUEST, ErrorCode.INVALID_ID, exc.message, exc.message
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.error("Configuration error on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.CONFIGURATION_ERROR,
        exc.message,
        {"missing": exc.missing},
    )


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    """
    Surface a failed contents API call as 502.

    The backend's stage, status and raw body are passed through for diagnosis.
    IndexUpdateError additionally reports the commit of the document write
    that did go through.
    """
    error_code = (
        ErrorCode.INDEX_UPDATE_ERROR
        if isinstance(exc, IndexUpdateError)
        else ErrorCode.BACKEND_ERROR
    )
    logger.error(
        "Backend error on %s %s: %s (stage=%s, status=%s)",
        request.method,
        request.url.path,
        exc.message,
        exc.stage,
        exc.status_code,
    )
    return _error_response(
        request, status.HTTP_502_BAD_GATEWAY, error_code, exc.message, exc.to_detail()
    )


@app.exception_handler(DashStateError)
async def dashstate_error_handler(request: Request, exc: DashStateError) -> JSONResponse:
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        exc.message,
        {key: str(value) for key, value in exc.context.items()},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Routing errors (unknown path, unsupported verb) in the standard format."""
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        error_code = ErrorCode.METHOD_NOT_ALLOWED
        message = "Method not allowed"
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        error_code = ErrorCode.NOT_FOUND
        message = str(exc.detail)
    elif exc.status_code >= 500:
        error_code = ErrorCode.INTERNAL_ERROR
        message = str(exc.detail)
    else:
        error_code = ErrorCode.INVALID_REQUEST
        message = str(exc.detail)

    logger.info(
        "HTTP %d on %s %s: %s", exc.status_code, request.method, request.url.path, exc.detail
    )
    return _error_response(
        request,
        exc.status_code,
        error_code,
        message,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle malformed request bodies and query parameters.

    Reports the first error in a readable form.
    """
    logger.warning(
        "Validation error on %s %s: %s", request.method, request.url.path, exc.errors()
    )
    first_error = exc.errors()[0] if exc.errors() else {}
    field = " -> ".join(str(loc) for loc in first_error.get("loc", []))
    error_msg = first_error.get("msg", "Invalid input")

    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorCode.VALIDATION_ERROR,
        "Request validation failed",
        f"{field}: {error_msg}" if field else error_msg,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all uncaught exceptions.

    The message and traceback are returned so a failing deployment can be
    diagnosed from the client side.
    """
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        "Unhandled exception on %s %s: %s\n%s",
        request.method,
        request.url.path,
        str(exc),
        trace,
    )
    # Errors reaching this handler bypass the middleware stack
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR,
        "Unhandled",
        {"message": str(exc), "trace": trace},
        headers=CORS_HEADERS,
    )
