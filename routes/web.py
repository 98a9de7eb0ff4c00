from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from config import Settings, get_settings
from schemas import PublicConfig

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

router = APIRouter(tags=["Web"])


@router.get("/", include_in_schema=False)
def index() -> FileResponse:
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


@router.get(
    "/api/public-config",
    response_model=PublicConfig,
    summary="Browser-safe Supabase settings for the sign-in client",
)
def public_config(settings: Settings = Depends(get_settings)) -> PublicConfig:
    # The anon key is meant to be public; row-level security guards the data.
    return PublicConfig(
        supabaseUrl=settings.supabase_url,
        supabaseAnonKey=settings.supabase_anon_key,
    )
