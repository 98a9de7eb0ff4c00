"""Shared fixtures. Environment defaults are set before the app is imported."""

import json
import os
import time

import jwt
import pytest

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-0123456789-abcdefghijklmnop")
os.environ.setdefault("GROQ_API_KEY", "test-groq-key")
os.environ.setdefault("TAVILY_API_KEY", "test-tavily-key")
os.environ.setdefault("API_ENV", "test")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.pop("SENTRY_DSN", None)

from fastapi.testclient import TestClient  # noqa: E402

from tests.fakes import FakeGroq, FakeSupabase, FakeTavily  # noqa: E402

USER_ID = "5f0c8a3e-1d2b-4c5d-9e8f-0a1b2c3d4e5f"
OTHER_USER_ID = "9a8b7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"

SLOTS = {
    "fullTimeWinner": {"prediction": "Chelsea", "probability": "45%"},
    "halfTimeWinner": {"prediction": "Draw", "probability": "40%"},
    "overUnderGoals": {"prediction": "Over 2.5 Goals", "probability": "60%"},
    "correctScoreSuggestion": {"prediction": "2-1", "probability": "12%"},
    "bothTeamsToScore": {"prediction": "Yes", "probability": "68%"},
    "doubleChance": {"prediction": "Chelsea or Draw", "probability": "72%"},
    "handicapResult": {"prediction": "Arsenal (+1)", "reasoning": "Tight recent H2H."},
    "keyInsights": {"prediction": "Saka to score", "reasoning": "Scored in 4 of last 5."},
}


def completion_text(slots=None) -> str:
    body = json.dumps(SLOTS if slots is None else slots, indent=2)
    return f"Here is the analysis you asked for:\n{body}\nGood luck!"


def make_token(sub: str = USER_ID, **claims) -> str:
    payload = {
        "sub": sub,
        "aud": "authenticated",
        "role": "authenticated",
        "email": "fan@example.com",
        "iat": int(time.time()),
        "exp": int(time.time()) + 3600,
        **claims,
    }
    return jwt.encode(payload, os.environ["SUPABASE_JWT_SECRET"], algorithm="HS256")


@pytest.fixture
def supabase():
    return FakeSupabase(
        {
            "profiles": [
                {"id": USER_ID, "user_type": "free", "coins_remaining": 3},
                {"id": OTHER_USER_ID, "user_type": "free", "coins_remaining": 0},
            ]
        }
    )


@pytest.fixture
def profiles(supabase):
    return supabase.tables["profiles"]


@pytest.fixture
def search_client():
    return FakeTavily(
        contents=[
            "Chelsea have won three of their last five league matches.",
            "Arsenal are missing two first-choice defenders through injury.",
        ]
    )


@pytest.fixture
def llm_client():
    return FakeGroq(content=completion_text())


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def client(supabase, search_client, llm_client):
    from dependencies.services import (
        get_prediction_generator,
        get_profile_store,
        get_search_service,
    )
    from main import app
    from services.prediction_generator import PredictionGenerator
    from services.profile_store import ProfileStore
    from services.search_service import SearchService

    app.dependency_overrides[get_profile_store] = lambda: ProfileStore(supabase)
    app.dependency_overrides[get_search_service] = lambda: SearchService(search_client, max_results=10)
    app.dependency_overrides[get_prediction_generator] = lambda: PredictionGenerator(
        llm_client, model="test-model"
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
