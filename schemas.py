from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class UserType(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    UNLIMITED = "unlimited"


class Profile(BaseModel):
    id: str
    user_type: UserType
    coins_remaining: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------


class PredictionRequest(BaseModel):
    """Two team names; missing, null or blank values are rejected with a 400."""

    teamA: str | None = None
    teamB: str | None = None


class PredictionSlot(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    prediction: str
    probability: str | None = None
    reasoning: str | None = None


class PredictionResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fullTimeWinner: PredictionSlot
    halfTimeWinner: PredictionSlot
    overUnderGoals: PredictionSlot
    correctScoreSuggestion: PredictionSlot
    bothTeamsToScore: PredictionSlot
    doubleChance: PredictionSlot
    handicapResult: PredictionSlot
    keyInsights: PredictionSlot


SLOT_NAMES: tuple[str, ...] = tuple(PredictionResult.model_fields)


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


class UpgradeRequest(BaseModel):
    accessCode: str = ""


class UpgradeResponse(BaseModel):
    message: str
    profile: Profile


class PublicConfig(BaseModel):
    supabaseUrl: str
    supabaseAnonKey: str
