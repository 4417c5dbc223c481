# helpers/errors.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("errors")


class AppError(Exception):
    """
    Base for failures surfaced at the request boundary.
    `public_message` goes to the client; `args[0]` stays in the logs.
    """
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str = "", *, public_message: Optional[str] = None):
        super().__init__(message or self.public_message)
        if public_message:
            self.public_message = public_message


class AuthExchangeError(AppError):
    """HubSpot rejected an authorization code or refresh token."""
    status_code = 400
    public_message = "Authentication with HubSpot failed"


class NotFoundError(AppError):
    status_code = 404
    public_message = "Installation not found"


class UpstreamError(AppError):
    """A HubSpot API call returned a non-success response or never completed."""
    status_code = 500
    public_message = "HubSpot request failed"

    def __init__(self, message: str = "", *, status: Optional[int] = None, **kw):
        super().__init__(message, **kw)
        self.status = status


class PersistenceError(AppError):
    status_code = 500
    public_message = "Failed to access installation storage"


class MissingTokenError(AppError):
    status_code = 401
    public_message = "Access token is missing or invalid"


class UnauthorizedError(AppError):
    status_code = 401
    public_message = "No valid token found for this portal"


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.public_message})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
