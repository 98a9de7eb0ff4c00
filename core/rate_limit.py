"""
Request rate limiting for the expensive endpoints.

Every prediction costs one search query and one completion upstream, so
``POST /api/predict`` is capped per client address on top of the coin quota.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)


def predict_limit() -> str:
    return get_settings().predict_rate_limit
