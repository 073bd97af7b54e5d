"""Error taxonomy and the FastAPI handlers that report it."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class NotifierError(Exception):
    """Base class for errors reported to the caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(NotifierError):
    """A required field is missing or malformed."""

    status_code = 400


class UnsupportedEventError(NotifierError):
    """Event type has no notification plan."""

    status_code = 400


class UnsupportedTargetError(NotifierError):
    """Targeting mode is not one of all/role/users."""

    status_code = 400


class UnauthorizedError(NotifierError):
    """Missing or invalid credential or cron secret."""

    status_code = 401


class ForbiddenError(NotifierError):
    """Authenticated caller lacks the required role."""

    status_code = 403


class NotFoundError(NotifierError):
    """The referenced record does not exist."""

    status_code = 404


class GatewayError(NotifierError):
    """The push gateway call failed. Never retried.

    ``partial`` carries whatever a reminder loop had accumulated before the
    failure, if anything.
    """

    status_code = 502

    def __init__(self, message: str, partial: dict | None = None):
        super().__init__(message)
        self.partial = partial


async def notifier_error_handler(request: Request, exc: NotifierError) -> JSONResponse:
    """Render a NotifierError as ``{ok: false, error}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")

    content = {"ok": False, "error": exc.message}
    if isinstance(exc, GatewayError) and exc.partial is not None:
        content["partial"] = exc.partial
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as a ValidationError (400)."""
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())[1:]) or "body"
        problems.append(f"{field}: {error.get('msg', 'invalid')}")
    return await notifier_error_handler(request, ValidationError("; ".join(problems) or "Invalid request"))


def register_error_handlers(app: FastAPI):
    """Attach the error handlers to an application."""
    app.add_exception_handler(NotifierError, notifier_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
