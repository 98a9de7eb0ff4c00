from __future__ import annotations

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from api.accounts import router as accounts_router
from api.predictions import router as predictions_router
from config import API_VERSION, Settings, get_settings
from config_validator import validate_env
from core.logging_config import setup_logging
from core.rate_limit import limiter
from core.sentry_config import init_sentry, sentry_alert_hook
from middleware.error_handler import add_exception_handlers, register_alert_hook
from middleware.http import BodySizeLimitMiddleware, SecurityHeadersMiddleware
from routes.health import router as health_router
from routes.web import STATIC_DIR, router as web_router

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application Lifecycle
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info(
        "Deep Statistics Score API starting",
        extra={"environment": settings.api_env, "version": API_VERSION, "model": settings.groq_model},
    )
    yield
    logger.info("Deep Statistics Score API shutting down")


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    # Logging first so every later step can emit structured logs.
    setup_logging(level=settings.log_level, json_output=settings.log_json, log_file=settings.log_file)
    validate_env(settings)
    if init_sentry(settings):
        register_alert_hook(sentry_alert_hook)

    is_production = settings.api_env == "production"
    application = FastAPI(
        title="Deep Statistics Score API",
        description=(
            "AI-generated soccer match predictions. Each prediction spends one "
            "coin from the caller's quota."
        ),
        version=API_VERSION,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.limiter = limiter

    # -------------------------------------------------------------------
    # Middleware  (last added runs first)
    # -------------------------------------------------------------------

    application.add_middleware(BodySizeLimitMiddleware, max_size=settings.max_body_bytes)
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials="*" not in settings.origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Request timing and correlation-ID propagation.
    @application.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        start = time.perf_counter()
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )
        request.state.request_id = request_id
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1_000
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
        response.headers["X-Request-ID"] = request_id
        logger.debug(
            "Request completed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    # -------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------

    add_exception_handlers(application)

    # -------------------------------------------------------------------
    # Routers
    # -------------------------------------------------------------------

    application.include_router(health_router, tags=["System"])
    application.include_router(predictions_router, prefix="/api", tags=["Predictions"])
    application.include_router(accounts_router, prefix="/api", tags=["Accounts"])
    application.include_router(web_router)
    application.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return application


# ---------------------------------------------------------------------------
# App Instance
# ---------------------------------------------------------------------------

app = create_app()

# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=settings.api_env != "production",
        log_level=settings.log_level.lower(),
        access_log=True,
    )
