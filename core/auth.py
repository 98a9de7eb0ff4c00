"""
core/auth.py
Verification of Supabase-issued access tokens.

Projects with a shared JWT secret sign tokens with HS256; projects on
asymmetric signing keys publish them at ``/auth/v1/.well-known/jwks.json``.
Both end up here and return the decoded claims, or raise ``AuthError``.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidAlgorithmError,
    InvalidAudienceError,
    InvalidSignatureError,
    InvalidTokenError,
    MissingRequiredClaimError,
    PyJWKClientError,
)

from config import Settings
from middleware.error_handler import AuthError

logger = logging.getLogger(__name__)

AUDIENCE = "authenticated"
ASYMMETRIC_ALGORITHMS = ["RS256", "ES256"]

_DECODE_OPTIONS: dict[str, Any] = {
    "verify_exp": True,
    "verify_nbf": True,
    "verify_aud": True,
    "require": ["sub", "exp", "aud"],
}


@lru_cache
def _jwks_client(jwks_url: str) -> PyJWKClient:
    return PyJWKClient(jwks_url, cache_keys=True)


def _signing_key(token: str, settings: Settings) -> tuple[Any, list[str]]:
    if settings.supabase_jwt_secret:
        return settings.supabase_jwt_secret, ["HS256"]
    try:
        key = _jwks_client(settings.jwks_url).get_signing_key_from_jwt(token)
    except PyJWKClientError as exc:
        logger.warning("JWKS lookup failed | detail=%s", exc)
        raise AuthError(details="Signing key could not be resolved.") from exc
    except DecodeError as exc:
        raise AuthError(details="Token could not be decoded.") from exc
    return key.key, ASYMMETRIC_ALGORITHMS


def verify_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode and verify an access token: signature, expiry, not-before and
    audience. Returns the claims; ``sub`` is the user id.
    """
    if not token or not isinstance(token, str):
        raise AuthError(details="Token must be a non-empty string.")

    key, algorithms = _signing_key(token, settings)
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=AUDIENCE,
            options=_DECODE_OPTIONS,
        )
    except ExpiredSignatureError as exc:
        logger.info("JWT expired | detail=%s", exc)
        raise AuthError(details="Access token has expired.") from exc
    except ImmatureSignatureError as exc:
        logger.warning("JWT not yet valid | detail=%s", exc)
        raise AuthError(details="Token is not yet valid.") from exc
    except InvalidAudienceError as exc:
        logger.warning("JWT audience mismatch | detail=%s", exc)
        raise AuthError(details="Token audience is invalid.") from exc
    except MissingRequiredClaimError as exc:
        logger.warning("JWT missing claim | detail=%s", exc)
        raise AuthError(details=f"Token is missing required claim: {exc.claim}") from exc
    except InvalidAlgorithmError as exc:
        logger.warning("JWT algorithm violation | detail=%s", exc)
        raise AuthError(details="Token algorithm is not permitted.") from exc
    except InvalidSignatureError as exc:
        logger.warning("JWT signature mismatch")
        raise AuthError(details="Token signature is invalid.") from exc
    except DecodeError as exc:
        logger.warning("JWT decode error | detail=%s", exc)
        raise AuthError(details="Token could not be decoded.") from exc
    except InvalidTokenError as exc:
        logger.warning("JWT rejected | detail=%s", exc)
        raise AuthError(details="Token is invalid.") from exc

    logger.debug("JWT verified | sub=%s", payload.get("sub"))
    return payload
