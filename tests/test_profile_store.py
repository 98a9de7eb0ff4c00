import pytest

from middleware.error_handler import UpstreamFailure
from schemas import UserType
from services.profile_store import ProfileStore
from tests.conftest import OTHER_USER_ID, USER_ID


@pytest.fixture
def store(supabase):
    return ProfileStore(supabase)


class TestGetProfile:

    def test_existing_row(self, store):
        profile = store.get_profile(USER_ID)
        assert profile.id == USER_ID
        assert profile.user_type is UserType.FREE
        assert profile.coins_remaining == 3

    def test_missing_row_is_none(self, store):
        assert store.get_profile("no-such-user") is None

    def test_store_error_is_upstream_failure(self, store, profiles):
        profiles.fail_on.add("select")
        with pytest.raises(UpstreamFailure, match="Could not fetch your user profile."):
            store.get_profile(USER_ID)

    @pytest.mark.parametrize(
        "field, value", [("user_type", "gold"), ("coins_remaining", -1), ("coins_remaining", None)]
    )
    def test_malformed_row_is_upstream_failure(self, store, profiles, field, value):
        profiles.row(USER_ID)[field] = value
        with pytest.raises(UpstreamFailure, match="Could not fetch your user profile."):
            store.get_profile(USER_ID)


class TestConsumeCoin:

    def test_decrements_by_one(self, store, profiles):
        updated = store.consume_coin(USER_ID)
        assert updated.coins_remaining == 2
        assert profiles.row(USER_ID)["coins_remaining"] == 2

    def test_zero_balance_returns_none_without_writing(self, store, profiles):
        assert store.consume_coin(OTHER_USER_ID) is None
        assert "update" not in profiles.calls
        assert profiles.row(OTHER_USER_ID)["coins_remaining"] == 0

    def test_snapshot_saves_the_first_read(self, store, profiles):
        current = store.get_profile(USER_ID)
        profiles.calls.clear()

        store.consume_coin(USER_ID, current=current)
        assert profiles.calls == ["update"]

    def test_stale_snapshot_is_retried_against_fresh_balance(self, store, profiles):
        current = store.get_profile(USER_ID)

        def concurrent_spend(table):
            table.row(USER_ID)["coins_remaining"] = 1

        profiles.before_update = concurrent_spend
        updated = store.consume_coin(USER_ID, current=current)

        assert updated.coins_remaining == 0
        assert profiles.row(USER_ID)["coins_remaining"] == 0

    def test_losing_race_for_last_coin_returns_none(self, store, profiles):
        current = store.get_profile(USER_ID)

        def drain(table):
            table.row(USER_ID)["coins_remaining"] = 0

        profiles.before_update = drain
        assert store.consume_coin(USER_ID, current=current) is None
        assert profiles.row(USER_ID)["coins_remaining"] == 0

    def test_persistent_contention_gives_up(self, supabase, profiles):
        store = ProfileStore(supabase, max_attempts=3)

        # Every update attempt sees the balance move underneath it.
        def bump(table):
            table.row(USER_ID)["coins_remaining"] += 1
            table.before_update = bump

        profiles.before_update = bump
        with pytest.raises(UpstreamFailure, match="Could not update coin count."):
            store.consume_coin(USER_ID)
        assert profiles.calls.count("update") == 3

    def test_missing_row_is_upstream_failure(self, store):
        with pytest.raises(UpstreamFailure, match="Could not fetch your user profile."):
            store.consume_coin("no-such-user")

    def test_write_error_is_upstream_failure(self, store, profiles):
        profiles.fail_on.add("update")
        with pytest.raises(UpstreamFailure, match="Could not update coin count."):
            store.consume_coin(USER_ID)
        assert profiles.row(USER_ID)["coins_remaining"] == 3


class TestApplyTier:

    def test_sets_type_and_balance(self, store, profiles):
        profile = store.apply_tier(USER_ID, UserType.UNLIMITED, 8)
        assert profile.user_type is UserType.UNLIMITED
        assert profile.coins_remaining == 8
        assert profiles.row(USER_ID) == {
            "id": USER_ID,
            "user_type": "unlimited",
            "coins_remaining": 8,
        }

    def test_missing_row_is_upstream_failure(self, store):
        with pytest.raises(UpstreamFailure, match="No profile exists"):
            store.apply_tier("no-such-user", UserType.PREMIUM, 4)

    def test_write_error_is_upstream_failure(self, store, profiles):
        profiles.fail_on.add("update")
        with pytest.raises(UpstreamFailure, match="Could not update your profile."):
            store.apply_tier(USER_ID, UserType.PREMIUM, 4)


def test_ping_reports_unreachable_store(store, profiles):
    store.ping()
    profiles.fail_on.add("select")
    with pytest.raises(UpstreamFailure, match="unreachable"):
        store.ping()
