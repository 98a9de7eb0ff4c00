
import logging

from fastapi import APIRouter, Depends

from dependencies.auth import CurrentUser, get_current_user
from dependencies.services import get_profile_store
from middleware.error_handler import (
    AccountUpgradeFailed,
    ErrorResponse,
    NotFound,
    UpstreamFailure,
    ValidationError,
)
from schemas import Profile, UpgradeRequest, UpgradeResponse
from services.access_codes import resolve_access_code
from services.profile_store import ProfileStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/profile",
    response_model=Profile,
    summary="Current user's tier and coin balance",
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def read_profile(
    user: CurrentUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
) -> Profile:
    profile = store.get_profile(user.id)
    if profile is None:
        raise NotFound("No profile found for this account.")
    return profile


@router.post(
    "/upgrade-account",
    response_model=UpgradeResponse,
    summary="Redeem an access code for a new tier and coin balance",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
def upgrade_account(
    body: UpgradeRequest,
    user: CurrentUser = Depends(get_current_user),
    store: ProfileStore = Depends(get_profile_store),
) -> UpgradeResponse:
    if not body.accessCode.strip():
        raise ValidationError("Access code is required.")

    tier = resolve_access_code(body.accessCode)
    if tier is None:
        logger.warning("Rejected access code", extra={"user_id": user.id})
        raise ValidationError("Invalid PIN or Password.")

    try:
        profile = store.apply_tier(user.id, tier.user_type, tier.coins_remaining)
    except UpstreamFailure as exc:
        raise AccountUpgradeFailed(details=exc.message) from exc

    logger.info(
        "Account upgraded",
        extra={"user_id": user.id, "user_type": profile.user_type.value},
    )
    return UpgradeResponse(
        message=f"Account upgraded to {tier.user_type.value}!",
        profile=profile,
    )
