# app/core/errors.py
import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for every error surfaced to the client as a flat {message} body."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(AppError):
    message = "All fields are required"


class NotFoundError(AppError):
    message = "Not found"


class NoResultsError(NotFoundError):
    message = "No notes found"


class PageOutOfRangeError(AppError):
    message = "Page not found"


class DuplicateError(AppError):
    status_code = status.HTTP_409_CONFLICT
    message = "Duplicate record"


class DuplicateEmailError(DuplicateError):
    message = "Duplicate email"


class AuthError(AppError):
    message = "Invalid or expired token"


class WrongPasswordError(AuthError):
    message = "Wrong password"


class ResendUnauthorizedError(AuthError):
    message = "Email could not be sent"


class UnauthorizedError(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class ForbiddenError(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class DeliveryError(AppError):
    message = "Email could not be sent"


class EmailDeliveryError(DeliveryError):
    message = "Account could not be updated. Please try again"


def _message(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


async def app_error_handler(request: Request, exc: AppError):
    logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    return _message(exc.status_code, exc.message)


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _message(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return _message(status.HTTP_400_BAD_REQUEST, message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
