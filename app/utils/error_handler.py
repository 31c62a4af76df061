"""
Error taxonomy and the HTTP mapping for it

Services raise AppError subclasses that carry an ErrorKind only. Turning a
kind into a status code and a response envelope happens here, at the API edge.
"""

import enum
import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    VALIDATION = "VALIDATION_ERROR"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_TOKEN = "INVALID_TOKEN"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    CONFIGURATION = "CONFIGURATION_ERROR"
    INTERNAL = "INTERNAL_ERROR"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.EXPIRED_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INVALID_TRANSITION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.DUPLICATE_EMAIL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """Base class for expected application failures"""
    kind = ErrorKind.INTERNAL
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, original_error: Optional[Exception] = None):
        self.message = message or self.default_message
        self.original_error = original_error
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    default_message = "Validation error"


class Unauthenticated(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Token not provided"


class InvalidToken(AppError):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "Invalid token"


class ExpiredToken(AppError):
    kind = ErrorKind.EXPIRED_TOKEN
    default_message = "Token expired"


class InvalidCredentials(AppError):
    kind = ErrorKind.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class NotFound(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class InvalidTransition(AppError):
    kind = ErrorKind.INVALID_TRANSITION
    default_message = "Invalid state transition"


class DuplicateEmail(AppError):
    kind = ErrorKind.DUPLICATE_EMAIL
    default_message = "Email already registered"


class ConfigurationError(AppError):
    kind = ErrorKind.CONFIGURATION
    default_message = "Server misconfiguration"


class InternalError(AppError):
    kind = ErrorKind.INTERNAL


class ErrorContext:
    """Request details attached to every logged failure"""

    def __init__(self, request: Request):
        self.error_id = str(uuid.uuid4())
        self.request = request
        self.endpoint = str(request.url.path)
        self.method = request.method
        self.client_ip = self._get_client_ip()
        self.timestamp = datetime.now(timezone.utc)

    def _get_client_ip(self) -> Optional[str]:
        """Extract client IP from request headers"""
        if "x-forwarded-for" in self.request.headers:
            return self.request.headers["x-forwarded-for"].split(",")[0].strip()
        elif "x-real-ip" in self.request.headers:
            return self.request.headers["x-real-ip"]
        elif self.request.client:
            return self.request.client.host
        return None


def error_body(message: str, **extra: Any) -> Dict[str, Any]:
    body = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def format_validation_errors(errors) -> str:
    """Flatten pydantic error entries into one readable line"""
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        msg = err.get("msg", "invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts)


def _stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def register_exception_handlers(app: FastAPI, include_details: bool = False) -> None:
    """Install the JSON envelope handlers on the application"""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        context = ErrorContext(request)
        status_code = exc.status_code
        headers = None

        if exc.kind == ErrorKind.CONFIGURATION:
            logger.critical(f"Configuration error {context.error_id} in {context.method} {context.endpoint}: {exc.message}")
        elif status_code >= 500:
            logger.error(
                f"Error {context.error_id}: {exc.message} in {context.method} {context.endpoint}",
                exc_info=exc.original_error or exc,
            )
        else:
            logger.info(f"{context.method} {context.endpoint} -> {status_code} {exc.kind.value}")

        if status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}

        detail = None
        if include_details and status_code >= 500 and exc.original_error is not None:
            detail = str(exc.original_error)

        return JSONResponse(
            status_code=status_code,
            content=error_body(exc.message, error=detail),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Validation error", error=format_validation_errors(exc.errors())),
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded for {request.client.host if request.client else 'unknown'} on {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=error_body(f"Rate limit exceeded: {exc.detail}"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content=error_body(
                    f"Route not found: {request.url.path}",
                    suggested=str(request.base_url).rstrip("/"),
                ),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        context = ErrorContext(request)
        logger.error(
            f"Unhandled exception {context.error_id}: {type(exc).__name__} in {context.method} {context.endpoint}",
            extra={
                "error_id": context.error_id,
                "endpoint": context.endpoint,
                "method": context.method,
                "client_ip": context.client_ip,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
            exc_info=exc,
        )

        content = error_body("Internal server error", error_id=context.error_id)
        if include_details:
            content["error"] = str(exc)
            content["stack"] = _stack(exc)

        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
