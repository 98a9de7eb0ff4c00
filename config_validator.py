import logging

from config import Settings

logger = logging.getLogger(__name__)

# Settings attribute -> environment variable it is read from.
REQUIRED = {
    "supabase_url": "SUPABASE_URL",
    "supabase_service_role_key": "SUPABASE_SERVICE_ROLE_KEY",
    "groq_api_key": "GROQ_API_KEY",
    "tavily_api_key": "TAVILY_API_KEY",
}


def validate_env(settings: Settings) -> None:
    missing = [env for attr, env in REQUIRED.items() if not getattr(settings, attr)]
    if missing:
        raise RuntimeError(f"Missing environment variables: {missing}")

    if not settings.supabase_jwt_secret:
        logger.info("SUPABASE_JWT_SECRET not set; verifying tokens against %s", settings.jwks_url)
    if not settings.supabase_anon_key:
        logger.warning("SUPABASE_ANON_KEY not set; the browser client will not be able to sign in")
