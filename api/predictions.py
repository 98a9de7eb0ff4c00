
import logging

from fastapi import APIRouter, Depends, Request

from core.rate_limit import limiter, predict_limit
from dependencies.auth import CurrentUser, get_current_user
from dependencies.services import get_prediction_service
from middleware.error_handler import (
    ErrorResponse,
    ParseFailure,
    PredictionFailed,
    UpstreamFailure,
    ValidationError,
)
from schemas import PredictionRequest, PredictionResult
from services.prediction_service import PredictionService

logger = logging.getLogger(__name__)

router = APIRouter()


def require_team_names(body: PredictionRequest) -> PredictionRequest:
    team_a, team_b = (body.teamA or "").strip(), (body.teamB or "").strip()
    if not team_a or not team_b:
        raise ValidationError("Please provide two team names.")
    return PredictionRequest(teamA=team_a, teamB=team_b)


@router.post(
    "/predict",
    response_model=PredictionResult,
    response_model_exclude_none=True,
    summary="Generate an AI prediction for a match (costs one coin)",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
@limiter.limit(predict_limit)
def predict(
    request: Request,
    body: PredictionRequest = Depends(require_team_names),
    user: CurrentUser = Depends(get_current_user),
    service: PredictionService = Depends(get_prediction_service),
) -> PredictionResult:
    """
    Spends one of the caller's coins, gathers web context for the fixture and
    asks the model for the eight prediction slots.
    """
    try:
        return service.predict(user.id, body.teamA, body.teamB)
    except (UpstreamFailure, ParseFailure) as exc:
        details = f"{exc.message} ({exc.details})" if exc.details else exc.message
        raise PredictionFailed(details=details) from exc
