import platform
import time
from datetime import datetime, timezone
from typing import Optional

import psutil
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from config import API_VERSION, Settings, get_settings
from dependencies.services import get_profile_store
from middleware.error_handler import UpstreamFailure
from services.profile_store import ProfileStore

router = APIRouter(prefix="/health", tags=["Health"])

_START_TIME = time.time()


# ── Schemas ──────────────────────────────────────────────────────────────────

class ComponentHealth(BaseModel):
    status: str  # "healthy" | "degraded" | "unhealthy"
    latency_ms: Optional[float] = None
    detail: Optional[str] = None


class SystemMetrics(BaseModel):
    cpu_percent: float
    memory_percent: float
    process_rss_mb: float
    python_version: str
    os: str


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    uptime_seconds: float
    timestamp: str
    components: dict[str, ComponentHealth]
    system: SystemMetrics


# ── Dependency Checks ────────────────────────────────────────────────────────

async def check_profile_store(store: ProfileStore) -> ComponentHealth:
    start = time.perf_counter()
    try:
        await run_in_threadpool(store.ping)
    except UpstreamFailure as exc:
        return ComponentHealth(status="unhealthy", detail=str(exc))
    latency_ms = (time.perf_counter() - start) * 1000
    return ComponentHealth(status="healthy", latency_ms=round(latency_ms, 2))


def check_api_key(value: str, name: str) -> ComponentHealth:
    """Search and LLM calls cost money, so these are checked for configuration only."""
    if value:
        return ComponentHealth(status="healthy")
    return ComponentHealth(status="degraded", detail=f"{name} is not configured")


def get_system_metrics() -> SystemMetrics:
    mem = psutil.virtual_memory()
    return SystemMetrics(
        cpu_percent=psutil.cpu_percent(interval=None),
        memory_percent=mem.percent,
        process_rss_mb=round(psutil.Process().memory_info().rss / 1_048_576, 1),
        python_version=platform.python_version(),
        os=platform.system(),
    )


def _aggregate_status(components: dict[str, ComponentHealth]) -> str:
    statuses = {c.status for c in components.values()}
    if "unhealthy" in statuses:
        return "unhealthy"
    if "degraded" in statuses:
        return "degraded"
    return "healthy"


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.get(
    "",
    summary="Full health check",
    response_model=HealthResponse,
    responses={
        200: {"description": "Service is healthy or degraded"},
        503: {"description": "One or more components are unhealthy"},
    },
)
async def health_check(
    settings: Settings = Depends(get_settings),
    store: ProfileStore = Depends(get_profile_store),
) -> JSONResponse:
    """
    Responds with **200** when healthy or degraded, **503** when unhealthy.
    """
    components: dict[str, ComponentHealth] = {
        "profile_store": await check_profile_store(store),
        "search": check_api_key(settings.tavily_api_key, "TAVILY_API_KEY"),
        "llm": check_api_key(settings.groq_api_key, "GROQ_API_KEY"),
    }
    overall = _aggregate_status(components)

    payload = HealthResponse(
        status=overall,
        version=API_VERSION,
        environment=settings.api_env,
        uptime_seconds=round(time.time() - _START_TIME, 2),
        timestamp=datetime.now(timezone.utc).isoformat(),
        components=components,
        system=get_system_metrics(),
    )

    http_status = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if overall == "unhealthy"
        else status.HTTP_200_OK
    )
    return JSONResponse(content=payload.model_dump(), status_code=http_status)


@router.get("/live", summary="Liveness probe")
async def liveness() -> dict:
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get(
    "/ready",
    summary="Readiness probe",
    responses={
        200: {"description": "Service is ready"},
        503: {"description": "Profile store unreachable"},
    },
)
async def readiness(store: ProfileStore = Depends(get_profile_store)) -> JSONResponse:
    db = await check_profile_store(store)
    if db.status == "unhealthy":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Profile store unavailable",
        )
    return JSONResponse(
        content={"status": "ready", "timestamp": datetime.now(timezone.utc).isoformat()}
    )
