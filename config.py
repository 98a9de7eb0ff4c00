
from functools import lru_cache

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""
    supabase_jwt_secret: str = ""
    groq_api_key: str = ""
    tavily_api_key: str = ""

    groq_model: str = "llama-3.1-8b-instant"
    search_max_results: int = 10
    llm_timeout_seconds: float = 60.0

    auth_cookie_name: str = "sb-access-token"
    allowed_origins: str = "*"
    api_env: str = "production"
    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None
    sentry_dsn: str | None = None
    max_body_bytes: int = 64 * 1024
    predict_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def jwks_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/auth/v1/.well-known/jwks.json"


@lru_cache
def get_settings() -> Settings:
    return Settings()


API_VERSION: str = "1.0.0"
