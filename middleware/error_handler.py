
from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error Response Schema
# ---------------------------------------------------------------------------

class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


# ---------------------------------------------------------------------------
# Exception Hierarchy
# ---------------------------------------------------------------------------

class AppBaseException(Exception):
    """Base for all application-level exceptions."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None, details: str | None = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppBaseException):
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class AuthError(AppBaseException):
    http_status = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class QuotaExceeded(AppBaseException):
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "No coins remaining."


class NotFound(AppBaseException):
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class UpstreamFailure(AppBaseException):
    """A collaborator (profile store, search, LLM) failed or misbehaved."""
    default_message = "Upstream service failure."


class ParseFailure(AppBaseException):
    """The model's reply did not contain a usable JSON object."""
    default_message = "Could not parse the AI response."


class SchemaMismatch(ParseFailure):
    default_message = "The AI response does not match the prediction schema."


class PredictionFailed(AppBaseException):
    default_message = "An error occurred during prediction."


class AccountUpgradeFailed(AppBaseException):
    default_message = "Database error while upgrading account."


# ---------------------------------------------------------------------------
# Helper Utilities
# ---------------------------------------------------------------------------

def _get_request_id(request: Request) -> str:
    """Extract or generate a unique request ID."""
    existing = getattr(request.state, "request_id", None)
    if existing:
        return existing
    return (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or str(uuid.uuid4())
    )


def _build_response(
    request: Request,
    *,
    http_status: int,
    message: str,
    details: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    body = ErrorResponse(error=message, details=details)
    return JSONResponse(
        status_code=http_status,
        content=body.model_dump(exclude_none=True),
        headers={"X-Request-ID": request_id, **(headers or {})},
    )


def _log_error(
    request: Request,
    exc: Exception,
    *,
    level: int = logging.ERROR,
    include_traceback: bool = True,
) -> None:
    request_id = _get_request_id(request)
    extra = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_host": request.client.host if request.client else "unknown",
        "exception_type": type(exc).__name__,
    }
    logger.log(
        level,
        "[%s] %s: %s",
        request_id,
        type(exc).__name__,
        exc,
        extra=extra,
        exc_info=exc if include_traceback else None,
    )


# ---------------------------------------------------------------------------
# Alert Hook (Sentry is plugged in here from main.create_app)
# ---------------------------------------------------------------------------

AlertHook = Callable[[Request, Exception], Coroutine[Any, Any, None]]
_alert_hook: AlertHook | None = None


def register_alert_hook(hook: AlertHook | None) -> None:
    """Register an async callable that receives (request, exc) for 5xx errors."""
    global _alert_hook
    _alert_hook = hook


async def _maybe_alert(request: Request, exc: Exception) -> None:
    if _alert_hook:
        try:
            await _alert_hook(request, exc)
        except Exception as hook_exc:
            logger.warning("Alert hook raised an exception: %s", hook_exc)


# ---------------------------------------------------------------------------
# Exception Handlers
# ---------------------------------------------------------------------------

async def _handle_app_exception(request: Request, exc: AppBaseException) -> JSONResponse:
    if exc.http_status >= 500:
        cause = exc.__cause__ or exc
        _log_error(request, cause, level=logging.ERROR, include_traceback=True)
        await _maybe_alert(request, cause)
    else:
        _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=exc.http_status,
        message=exc.message,
        details=exc.details,
    )


async def _handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=exc.status_code,
        message=exc.detail if isinstance(exc.detail, str) else str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _handle_validation_exception(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', [])[1:]) or 'body'}: "
        f"{err.get('msg', 'invalid')}"
        for err in exc.errors()
    )
    _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=status.HTTP_400_BAD_REQUEST,
        message="Request validation failed.",
        details=details or None,
    )


async def _handle_rate_limit(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    _log_error(request, exc, level=logging.WARNING, include_traceback=False)
    return _build_response(
        request,
        http_status=status.HTTP_429_TOO_MANY_REQUESTS,
        message="Too many requests.",
        details=f"Rate limit exceeded: {exc.detail}",
    )


async def _handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
    _log_error(request, exc, level=logging.ERROR, include_traceback=True)
    await _maybe_alert(request, exc)
    return _build_response(
        request,
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="An unexpected error occurred. Please try again later.",
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def add_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI application."""
    app.add_exception_handler(AppBaseException, _handle_app_exception)
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_validation_exception)
    app.add_exception_handler(RateLimitExceeded, _handle_rate_limit)
    app.add_exception_handler(Exception, _handle_unhandled_exception)

    logger.debug("Exception handlers registered.")
