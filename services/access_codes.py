
import hmac
from typing import NamedTuple

from schemas import UserType


class Tier(NamedTuple):
    user_type: UserType
    coins_remaining: int


ACCESS_CODES: dict[str, Tier] = {
    "12345678": Tier(UserType.PREMIUM, 4),  # premium PIN
    "2580": Tier(UserType.UNLIMITED, 8),    # unlimited password
}


def resolve_access_code(code: str) -> Tier | None:
    """Return the tier unlocked by ``code``, or None when it matches no code."""
    match = None
    for known, tier in ACCESS_CODES.items():
        if hmac.compare_digest(code.encode(), known.encode()):
            match = tier
    return match
