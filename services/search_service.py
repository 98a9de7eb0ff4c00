import logging
import time

import httpx
import requests
from tavily import TavilyClient
from tavily.errors import (
    BadRequestError,
    ForbiddenError,
    InvalidAPIKeyError,
    MissingAPIKeyError,
    TimeoutError as TavilyTimeoutError,
    UsageLimitExceededError,
)

from middleware.error_handler import UpstreamFailure
from prompts import CONTEXT_SEPARATOR, build_search_query

logger = logging.getLogger(__name__)

# Errors the Tavily client raises itself, plus transport failures underneath it.
SEARCH_ERRORS = (
    BadRequestError,
    ForbiddenError,
    InvalidAPIKeyError,
    MissingAPIKeyError,
    TavilyTimeoutError,
    UsageLimitExceededError,
    requests.RequestException,
    httpx.HTTPError,
)


class SearchService:
    """Web search context for a fixture, one Tavily query per request."""

    def __init__(self, client: TavilyClient, max_results: int = 10) -> None:
        self._client = client
        self.max_results = max_results

    def fetch_match_context(self, team_a: str, team_b: str) -> str:
        query = build_search_query(team_a, team_b)
        start = time.perf_counter()
        try:
            response = self._client.search(query, max_results=self.max_results)
        except SEARCH_ERRORS as exc:
            logger.exception("Search request failed", extra={"query": query})
            raise UpstreamFailure("Could not fetch match data.") from exc

        results = response.get("results", []) if isinstance(response, dict) else []
        bodies = [r["content"] for r in results if isinstance(r, dict) and r.get("content")]
        logger.info(
            "Search context fetched",
            extra={
                "results": len(bodies),
                "duration_ms": round((time.perf_counter() - start) * 1_000, 2),
            },
        )
        return CONTEXT_SEPARATOR.join(bodies)
