"""
Error taxonomy

Every failure a client can see is an ApiError carrying its HTTP status and a
message safe to put in the response body. Handlers render all errors as
{"message": str}.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error"


class ApiError(Exception):
    status_code = 500
    default_message = GENERIC_SERVER_ERROR

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid input"


class Conflict(ApiError):
    status_code = 400
    default_message = "User already exists"


class InvalidCredentials(ApiError):
    status_code = 400
    default_message = "Invalid credentials"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Not authenticated"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Admin access required"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(ApiError):
    status_code = 500
    default_message = GENERIC_SERVER_ERROR


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ValidationError.default_message
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if location:
        return f"{location}: {first.get('msg', 'invalid value')}"
    return first.get("msg", ValidationError.default_message)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        # detail stays in the server log
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        return _message(exc.status_code, GENERIC_SERVER_ERROR)
    return _message(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _message(400, _describe_validation_error(exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _message(exc.status_code, str(exc.detail))


async def database_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error("%s %s database failure", request.method, request.url.path, exc_info=exc)
    return _message(500, GENERIC_SERVER_ERROR)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _message(500, GENERIC_SERVER_ERROR)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
