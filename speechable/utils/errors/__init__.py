"""Application exceptions and the handlers that turn them into JSON envelopes.

Every predictable failure is raised as an ``AppError`` subclass carrying the
HTTP status it maps to. Handlers registered on the FastAPI app convert them,
request validation failures and mongoengine write errors into
``{"status": "error", "message": ...}`` bodies. Anything else is logged and
reported as a generic 500.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mongoengine.errors import NotUniqueError, ValidationError as DocumentValidationError


logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for all expected application failures."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code or self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"status": "error", "message": self.message}


class BadRequestError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class RateLimitedError(AppError):
    status_code = 429


class InternalError(AppError):
    status_code = 500


class DeliveryError(Exception):
    """Raised by a notifier when a message could not be handed off."""


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "message": message})


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return error_response(400, f"Invalid input data. {'. '.join(messages)}")


async def document_validation_handler(request: Request, exc: DocumentValidationError) -> JSONResponse:
    errors = exc.to_dict() if exc.errors else {}
    if errors:
        detail = ". ".join(f"{field}: {msg}" for field, msg in errors.items())
    else:
        detail = exc.message
    return error_response(400, f"Invalid input data. {detail}")


async def not_unique_handler(request: Request, exc: NotUniqueError) -> JSONResponse:
    return error_response(400, "Duplicate field value: email. Please use another value!")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Something went wrong!")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(DocumentValidationError, document_validation_handler)
    app.add_exception_handler(NotUniqueError, not_unique_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
