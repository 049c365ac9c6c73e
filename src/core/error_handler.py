"""Centralized error handling and logging for the EduMind API.

This module provides:
- Structured logging with correlation IDs and redaction of sensitive keys
- A global exception handler that renders every failure as an ErrorResponse
- Environment-aware error bodies (diagnostics in development only)
"""

import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import get_settings
from core.exceptions import DomainError, DuplicateUserError, ResourceNotFoundError
from core.security_config import get_allowed_error_fields, is_sensitive_key
from schemas.api import ErrorResponse
from services.generation.exceptions import InputError


# Correlation ID shared by every log line and error body of one request
_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# status code -> canonical error type for HTTP exceptions
HTTP_ERROR_TYPES: dict[int, str] = {
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_429_TOO_MANY_REQUESTS: "rate_limited",
}

DOMAIN_ERRORS: dict[type[DomainError], tuple[int, str]] = {
    DuplicateUserError: (
        status.HTTP_409_CONFLICT,
        "The requested resource already exists",
    ),
    ResourceNotFoundError: (
        status.HTTP_404_NOT_FOUND,
        "The requested resource was not found",
    ),
}


def _domain_status(exc: DomainError) -> tuple[int, str]:
    for error_cls, mapped in DOMAIN_ERRORS.items():
        if isinstance(exc, error_cls):
            return mapped
    return status.HTTP_400_BAD_REQUEST, "Domain error"


def get_correlation_id() -> str:
    """Get or create a correlation ID for request tracing."""
    correlation_id = _correlation_id_var.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        _correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    _correlation_id_var.set(correlation_id)


def sanitize(value: Any) -> Any:
    """Recursively replace values stored under sensitive keys."""
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and is_sensitive_key(k) else sanitize(v)
            for k, v in value.items()
        }
    if isinstance(value, list | tuple):
        return [sanitize(item) for item in value]
    return value


class StructuredLogger:
    """Logger wrapper that adds the correlation ID and redacts context data.

    Keyword arguments passed to the level methods become the structured
    context of the record (``record.structured_data``). In production the
    JSON formatter emits them as fields; in development the message is
    prefixed with the correlation ID for readability.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def _log(
        self,
        level: int,
        message: str,
        context: dict[str, Any],
        exc_info: bool = False,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        correlation_id = get_correlation_id()
        structured = {"correlation_id": correlation_id, **sanitize(context)}

        if get_settings().ENVIRONMENT != "production":
            message = f"[{correlation_id}] {message}"
        self.logger.log(
            level,
            message,
            extra={"structured_data": structured},
            exc_info=exc_info,
        )

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log at error level with the active exception's traceback."""
        self._log(logging.ERROR, message, kwargs, exc_info=True)


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Final safety net: route any uncaught exception to the global handler."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


def _build_error_response(
    *,
    error_type: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
    traceback_str: str | None = None,
    exception_type: str | None = None,
    validation_errors: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Construct the error envelope, keeping only fields allowed in this environment."""
    allowed_fields = get_allowed_error_fields(get_settings().ENVIRONMENT)
    candidates: dict[str, Any] = {
        "details": details,
        "traceback": traceback_str,
        "exception_type": exception_type,
        "validation_errors": validation_errors,
    }
    error_body: dict[str, Any] = {
        "correlation_id": get_correlation_id(),
        "type": error_type,
    }
    error_body.update(
        {k: v for k, v in candidates.items() if k in allowed_fields and v is not None}
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, error=error_body).model_dump(),
        headers=headers,
    )


def _validation_errors(exc: ValidationError | RequestValidationError) -> list[Any]:
    # ctx may hold the raw exception object, which is not JSON serializable
    return [
        {k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()
    ]


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render ``exc`` as a sanitized ErrorResponse with a fitting status code."""
    if isinstance(exc, InputError):
        structured_logger.warning(
            "Rejected request input", field=exc.field, path=request.url.path
        )
        return _build_error_response(
            error_type="input_error",
            message=exc.message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": exc.field, "error_code": exc.error_code},
        )

    if isinstance(exc, RequestValidationError | ValidationError):
        errors = _validation_errors(exc)
        structured_logger.warning("Validation error", validation_errors=errors)
        return _build_error_response(
            error_type="validation_error",
            message="Invalid request data provided",
            status_code=status.HTTP_400_BAD_REQUEST,
            validation_errors=errors,
        )

    if isinstance(exc, StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else "An HTTP error occurred"
        return _build_error_response(
            error_type=HTTP_ERROR_TYPES.get(exc.status_code, "http_error"),
            message=detail,
            status_code=exc.status_code,
            details={"detail": exc.detail},
            exception_type=exc.__class__.__name__,
            headers=getattr(exc, "headers", None),
        )

    if isinstance(exc, DomainError):
        status_code, message = _domain_status(exc)
        structured_logger.warning(
            "Domain error", error_type=exc.__class__.__name__, domain_message=str(exc)
        )
        return _build_error_response(
            error_type="domain_error",
            message=message,
            status_code=status_code,
            details={"reason": str(exc)},
        )

    structured_logger.exception(
        "Unhandled exception", exception_type=exc.__class__.__name__, error=str(exc)
    )
    return _build_error_response(
        error_type="internal_server_error",
        message="An internal error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        traceback_str="".join(traceback.format_exception(exc)).strip(),
        exception_type=exc.__class__.__name__,
    )


def setup_logging() -> None:
    """Install one stdout handler on the root logger; safe to call repeatedly."""
    settings = get_settings()
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    log_level = logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO
    formatter: logging.Formatter
    if settings.ENVIRONMENT == "production":
        formatter = JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    if settings.ENVIRONMENT == "production":
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)
