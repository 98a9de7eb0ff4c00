"""
Per-user profile rows (tier and coin balance) in the Supabase ``profiles``
table.

All writes are filtered updates so PostgREST applies them in one statement;
the coin decrement is a compare-and-set on the balance that was read, retried
when another request changed the balance in between.
"""

from __future__ import annotations

import logging

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError as PydanticValidationError
from supabase import Client
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_random

from middleware.error_handler import UpstreamFailure
from schemas import Profile, UserType

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, user_type, coins_remaining"

_STORE_ERRORS = (APIError, httpx.HTTPError)


class CoinContention(Exception):
    """The balance changed between read and conditional write."""


def _to_profile(row: dict, failure: str) -> Profile:
    try:
        return Profile.model_validate(row)
    except PydanticValidationError as exc:
        logger.error("Malformed profile row", extra={"user_id": row.get("id"), "error": str(exc)})
        raise UpstreamFailure(failure) from exc


class ProfileStore:
    def __init__(self, client: Client, table: str = "profiles", max_attempts: int = 5) -> None:
        self._client = client
        self._table = table
        self.max_attempts = max_attempts

    def _rows(self):
        return self._client.table(self._table)

    def get_profile(self, user_id: str) -> Profile | None:
        try:
            response = (
                self._rows()
                .select(PROFILE_COLUMNS)
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except _STORE_ERRORS as exc:
            logger.error("Profile read failed", extra={"user_id": user_id, "error": str(exc)})
            raise UpstreamFailure("Could not fetch your user profile.") from exc

        rows = response.data or []
        return _to_profile(rows[0], "Could not fetch your user profile.") if rows else None

    def consume_coin(self, user_id: str, current: Profile | None = None) -> Profile | None:
        """
        Spend one coin. Returns the updated profile, or None when the balance
        is already zero. ``current`` is a profile read earlier in the same
        request; it saves a round trip on the first attempt.
        """
        retrying = Retrying(
            retry=retry_if_exception_type(CoinContention),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random(0, 0.05),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    first = attempt.retry_state.attempt_number == 1
                    snapshot = current if first and current is not None else self.get_profile(user_id)
                    if snapshot is None:
                        raise UpstreamFailure("Could not fetch your user profile.")
                    return self._compare_and_decrement(snapshot)
        except CoinContention as exc:
            logger.warning(
                "Coin decrement kept losing to concurrent writes",
                extra={"user_id": user_id, "attempts": self.max_attempts},
            )
            raise UpstreamFailure("Could not update coin count.") from exc

    def _compare_and_decrement(self, snapshot: Profile) -> Profile | None:
        balance = snapshot.coins_remaining
        if balance <= 0:
            return None
        try:
            response = (
                self._rows()
                .update({"coins_remaining": balance - 1})
                .eq("id", snapshot.id)
                .eq("coins_remaining", balance)
                .gt("coins_remaining", 0)
                .execute()
            )
        except _STORE_ERRORS as exc:
            logger.error("Coin decrement failed", extra={"user_id": snapshot.id, "error": str(exc)})
            raise UpstreamFailure("Could not update coin count.") from exc

        if not response.data:
            raise CoinContention(snapshot.id)
        updated = _to_profile(response.data[0], "Could not update coin count.")
        logger.info(
            "Coin spent",
            extra={"user_id": updated.id, "coins_remaining": updated.coins_remaining},
        )
        return updated

    def apply_tier(self, user_id: str, user_type: UserType, coins_remaining: int) -> Profile:
        try:
            response = (
                self._rows()
                .update({"user_type": user_type.value, "coins_remaining": coins_remaining})
                .eq("id", user_id)
                .execute()
            )
        except _STORE_ERRORS as exc:
            logger.error("Tier update failed", extra={"user_id": user_id, "error": str(exc)})
            raise UpstreamFailure("Could not update your profile.") from exc

        if not response.data:
            raise UpstreamFailure("No profile exists for this account.")
        return _to_profile(response.data[0], "Could not update your profile.")

    def ping(self) -> None:
        try:
            self._rows().select("id").limit(1).execute()
        except _STORE_ERRORS as exc:
            raise UpstreamFailure("Profile store unreachable.") from exc
