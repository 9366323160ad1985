"""Map domain errors to JSON error envelopes."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from postgrest.exceptions import APIError as PostgrestAPIError

from ..errors import (
    ConcurrencyConflict,
    ConflictError,
    NotFoundError,
    OverlapError,
    PermissionDeniedError,
    PharmagardeError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[PharmagardeError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    OverlapError: status.HTTP_409_CONFLICT,
    ConcurrencyConflict: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
}


def status_for(exc: PharmagardeError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


def create_error_response(status_code: int, code: str, message: str, details: dict[str, Any] | None = None) -> JSONResponse:
    content: dict[str, Any] = {"code": code, "message": message}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def handle_domain_error(request: Request, exc: PharmagardeError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc.message}")
    return create_error_response(status_code, exc.code, exc.message, exc.details())


HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
}


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {code}: {exc.detail}")
    response = create_error_response(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def handle_storage_error(request: Request, exc: PostgrestAPIError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed in storage: {exc}")
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "STORAGE_UNAVAILABLE",
        "The data store could not complete the request.",
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PharmagardeError, handle_domain_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(PostgrestAPIError, handle_storage_error)
