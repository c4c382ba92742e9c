# boardtrack/errors.py
"""
Exception taxonomy shared by services and the HTTP layer.

Services raise these; ``register_exception_handlers`` maps them to JSON
responses so routers never have to translate them by hand.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

log = logging.getLogger("boardtrack.errors")


class BoardTrackError(Exception):
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(BoardTrackError):
    """A required field is missing or a transition is not allowed."""
    status_code = 422


class NotFoundError(BoardTrackError):
    """A referenced board / mill / partner / user does not exist."""
    status_code = 404


class StoreError(BoardTrackError):
    """The underlying persistence operation was rejected."""
    status_code = 503


class PermissionDeniedError(BoardTrackError):
    status_code = 403


class AuthenticationError(BoardTrackError):
    status_code = 401


async def _handle_boardtrack_error(request: Request, exc: BoardTrackError):
    if isinstance(exc, StoreError):
        log.error("Store error on %s %s: %s", request.method, request.url.path, exc.message)
    body = {"error": type(exc).__name__, "detail": exc.message}
    if exc.details:
        body["context"] = exc.details
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BoardTrackError, _handle_boardtrack_error)
