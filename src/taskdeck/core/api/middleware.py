"""Error handlers and request logging middleware."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from ulid import ULID

from taskdeck.core.exceptions import TaskdeckError
from taskdeck.core.logging import add_request_context, get_logger, reset_request_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_MISSING_ERROR_TYPES = {"missing", "string_too_short"}


def _describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    """Summarize request validation errors as a single human-readable message."""
    missing: list[str] = []
    invalid: list[str] = []

    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        field = ".".join(loc)
        is_missing = error.get("type") in _MISSING_ERROR_TYPES or (
            error.get("type") == "string_type" and error.get("input") is None
        )

        if not field:
            return "Missing or malformed request body" if is_missing else f"Invalid request body: {error.get('msg')}"
        if is_missing:
            missing.append(field)
        else:
            invalid.append(f"{field}: {error.get('msg')}")

    if missing and not invalid:
        return f"Missing required fields: {', '.join(missing)}"
    return "Invalid request: " + "; ".join([*(f"{field}: missing" for field in missing), *invalid])


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render request validation errors as 400 responses."""
    assert isinstance(exc, RequestValidationError)
    errors = list(exc.errors())
    message = _describe_validation_errors(errors)
    logger.info("request.validation_failed", path=request.url.path, error=message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "details": jsonable_encoder(errors, exclude={"ctx", "url"})},
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render HTTPException as an {error} JSON body."""
    assert isinstance(exc, StarletteHTTPException)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def taskdeck_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render domain errors that escaped a router with their mapped status code."""
    assert isinstance(exc, TaskdeckError)
    if exc.status_code >= 500:
        logger.error("request.failed", path=request.url.path, error=exc.message, error_type=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render unexpected exceptions as a generic 500 response."""
    logger.exception("request.unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def add_error_handlers(app: FastAPI) -> None:
    """Install exception handlers producing {error: message} JSON bodies."""
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(TaskdeckError, taskdeck_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def add_logging_middleware(app: FastAPI) -> None:
    """Log every request with a request id bound to the logging context."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(ULID())
        add_request_context(request_id=request_id, method=request.method, path=request.url.path)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("http.request.failed", duration_ms=round((time.perf_counter() - start) * 1000, 2))
            raise
        else:
            logger.info(
                "http.request",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            reset_request_context("request_id", "method", "path")
