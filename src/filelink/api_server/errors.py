# src/filelink/api_server/errors.py
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.exceptions import FileLinkError

log = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred on the server."

# Filesystem errors surfaced by the operation itself, most specific first.
OS_ERROR_STATUS = (
    (FileNotFoundError, 404, "Not Found: No item exists at the specified path."),
    (FileExistsError, 409, "Conflict: An item already exists at the specified path."),
    (IsADirectoryError, 400, "The specified path is a directory, not a file."),
    (NotADirectoryError, 400, "The specified path is a file, not a directory."),
)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "statusCode": status_code, "message": message},
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "form"))
    if location:
        return f"Invalid request: '{location}' {first.get('msg', 'is invalid').lower()}."
    return f"Invalid request: {first.get('msg', 'malformed input')}."


def register_error_handlers(app: FastAPI):
    """Every failure leaves the server as {status, statusCode, message}."""

    @app.exception_handler(FileLinkError)
    async def filelink_error_handler(request: Request, exc: FileLinkError):
        if exc.status_code >= 500:
            log.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        else:
            log.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        log.warning(f"{request.method} {request.url.path} rejected (400): {message}")
        return error_response(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(OSError)
    async def os_error_handler(request: Request, exc: OSError):
        for error_type, status_code, message in OS_ERROR_STATUS:
            if isinstance(exc, error_type):
                log.warning(f"{request.method} {request.url.path} failed ({status_code}): {exc}")
                return error_response(status_code, message)
        log.error(f"{request.method} {request.url.path} failed with I/O error: {exc}", exc_info=exc)
        return error_response(500, GENERIC_ERROR_MESSAGE)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        log.exception(f"Unhandled error in {request.method} {request.url.path}", exc_info=exc)
        return error_response(500, GENERIC_ERROR_MESSAGE)
