"""
Structured errors for callable endpoints and their FastAPI handlers.

Errors are rendered as ``{"error": {"status": <code>, "message": <text>}}`` so
mobile clients can branch on the code rather than on HTTP status alone.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger


class CallableError(Exception):
    """Base class for errors surfaced to callers of RPC endpoints."""

    code: str = "internal"
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": {"status": self.code, "message": self.message}}


class UnauthenticatedError(CallableError):
    code = "unauthenticated"
    http_status = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(CallableError):
    code = "permission-denied"
    http_status = status.HTTP_403_FORBIDDEN


class InvalidArgumentError(CallableError):
    code = "invalid-argument"
    http_status = status.HTTP_400_BAD_REQUEST


class NotFoundError(CallableError):
    code = "not-found"
    http_status = status.HTTP_404_NOT_FOUND


class InternalError(CallableError):
    code = "internal"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers translating domain errors into JSON responses."""

    @app.exception_handler(CallableError)
    async def callable_error_handler(request: Request, exc: CallableError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected ({exc.code}): {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{location}: {message}"
        error = InvalidArgumentError(message)
        return JSONResponse(status_code=error.http_status, content=error.to_dict())
