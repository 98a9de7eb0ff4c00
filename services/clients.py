"""Process-wide API clients, built on first use and shared by every request."""

import logging
from functools import lru_cache

from groq import Groq
from supabase import Client, create_client
from tavily import TavilyClient

from config import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase() -> Client:
    settings = get_settings()
    logger.info("Creating Supabase client", extra={"supabase_url": settings.supabase_url})
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


@lru_cache
def get_groq() -> Groq:
    settings = get_settings()
    return Groq(api_key=settings.groq_api_key, timeout=settings.llm_timeout_seconds)


@lru_cache
def get_tavily() -> TavilyClient:
    return TavilyClient(api_key=get_settings().tavily_api_key)
