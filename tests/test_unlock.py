"""
Tests for the unlock protocol.

The pure decision is tested directly; the async wrapper is tested against the
in-memory store to check stats bookkeeping.
"""

from datetime import timedelta

import pytest

from geodrop.models.drop import Coordinates, DropFile, DropModel, DropScope, RetrievalMode
from geodrop.services.unlock import evaluate_unlock, hash_secret, secret_matches, unearth_drop, unlock_drop
from geodrop.utils.exceptions import (
    AuthorizationError,
    ExpiredError,
    InvalidSecretError,
    MissingLocationError,
    NotFoundError,
    OutOfRangeError,
)

SECRET = "open sesame"
SPOT = Coordinates(lat=40.7128, lng=-74.0060)
NEARBY = Coordinates(lat=40.7132, lng=-74.0060)
FAR_AWAY = Coordinates(lat=40.7228, lng=-74.0060)


def build_drop(**fields) -> DropModel:
    values = {
        "id": "drop-1",
        "owner_id": "owner-1",
        "title": "Hidden mixtape",
        "secret_hash": hash_secret(SECRET),
        "coords": SPOT,
        "geofence_radius_m": 100,
    }
    values.update(fields)
    return DropModel(**values)


class TestSecretMatching:
    def test_exact_match(self):
        assert secret_matches(SECRET, hash_secret(SECRET)) is True

    def test_case_and_whitespace_matter(self):
        assert secret_matches("Open Sesame", hash_secret(SECRET)) is False
        assert secret_matches(SECRET + " ", hash_secret(SECRET)) is False

    def test_missing_hash_never_matches(self):
        assert secret_matches(SECRET, "") is False


class TestEvaluateUnlock:
    """Test the ordered unlock checks."""

    def test_remote_drop_ignores_location(self, now):
        decision = evaluate_unlock(build_drop(), SECRET, coords=FAR_AWAY, now=now)
        assert decision.drop_id == "drop-1"
        assert decision.distance_m is None

    def test_wrong_secret(self, now):
        with pytest.raises(InvalidSecretError):
            evaluate_unlock(build_drop(), "wrong", now=now)

    def test_expired_before_secret(self, now):
        drop = build_drop(expires_at=now - timedelta(minutes=1))
        with pytest.raises(ExpiredError):
            evaluate_unlock(drop, "wrong", now=now)

    def test_expiry_instant_counts_as_expired(self, now):
        with pytest.raises(ExpiredError):
            evaluate_unlock(build_drop(expires_at=now), SECRET, now=now)

    def test_private_drop_refuses_other_users(self, now):
        drop = build_drop(scope=DropScope.PRIVATE)
        with pytest.raises(AuthorizationError):
            evaluate_unlock(drop, SECRET, requester_id="someone-else", now=now)

    def test_private_drop_opens_for_owner(self, now):
        drop = build_drop(scope=DropScope.PRIVATE)
        assert evaluate_unlock(drop, SECRET, requester_id="owner-1", now=now).drop_id == "drop-1"

    def test_private_checked_after_secret(self, now):
        drop = build_drop(scope=DropScope.PRIVATE)
        with pytest.raises(InvalidSecretError):
            evaluate_unlock(drop, "wrong", requester_id="someone-else", now=now)

    def test_physical_requires_location(self, now):
        drop = build_drop(retrieval_mode=RetrievalMode.PHYSICAL)
        with pytest.raises(MissingLocationError):
            evaluate_unlock(drop, SECRET, now=now)

    def test_physical_inside_fence(self, now):
        drop = build_drop(retrieval_mode=RetrievalMode.PHYSICAL)
        decision = evaluate_unlock(drop, SECRET, coords=NEARBY, now=now)
        assert decision.distance_m < 100

    def test_physical_outside_fence_hides_distance(self, now):
        drop = build_drop(retrieval_mode=RetrievalMode.PHYSICAL)
        with pytest.raises(OutOfRangeError) as exc_info:
            evaluate_unlock(drop, SECRET, coords=FAR_AWAY, now=now)
        assert exc_info.value.details == {"required": 100}

    def test_physical_outside_fence_can_disclose_distance(self, now):
        drop = build_drop(retrieval_mode=RetrievalMode.PHYSICAL)
        with pytest.raises(OutOfRangeError) as exc_info:
            evaluate_unlock(drop, SECRET, coords=FAR_AWAY, now=now, disclose_distance=True)
        assert exc_info.value.details["distance"] > 1000

    def test_expired_physical_drop_in_range(self, now):
        drop = build_drop(retrieval_mode=RetrievalMode.PHYSICAL, expires_at=now - timedelta(days=1))
        with pytest.raises(ExpiredError):
            evaluate_unlock(drop, SECRET, coords=NEARBY, now=now)

    def test_larger_radius_only_relaxes(self, now):
        outcomes = []
        for radius in [10, 50, 100, 1000, 5000]:
            drop = build_drop(retrieval_mode=RetrievalMode.PHYSICAL, geofence_radius_m=radius)
            try:
                evaluate_unlock(drop, SECRET, coords=FAR_AWAY, now=now)
                outcomes.append(True)
            except OutOfRangeError:
                outcomes.append(False)
        assert outcomes == sorted(outcomes)
        assert outcomes[0] is False and outcomes[-1] is True

    def test_error_codes(self, now):
        with pytest.raises(InvalidSecretError) as exc_info:
            evaluate_unlock(build_drop(), "wrong", now=now)
        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == "INVALID_SECRET"


@pytest.mark.asyncio
class TestUnlockDrop:
    """Test unlock with persistence."""

    async def test_missing_drop(self, drops, now):
        with pytest.raises(NotFoundError):
            await unlock_drop(drops, "nope", SECRET, now=now)

    async def test_success_returns_files_and_counts_once(self, drops, make_drop, now):
        drop = await make_drop(files=[DropFile(name="a.mp3", storage_path="drops/a.mp3", size_bytes=10)])

        result = await unlock_drop(drops, drop.id, SECRET, now=now)

        assert result.id == drop.id
        assert [f.storage_path for f in result.files] == ["drops/a.mp3"]
        stored = await drops.get_drop(drop.id)
        assert stored.stats.unlocks == 1
        assert stored.stats.views == 1
        assert stored.stats.last_accessed_at == now

    async def test_failed_unlock_leaves_stats(self, drops, make_drop, now):
        drop = await make_drop()

        with pytest.raises(InvalidSecretError):
            await unlock_drop(drops, drop.id, "wrong", now=now)

        stored = await drops.get_drop(drop.id)
        assert stored.stats.unlocks == 0

    async def test_expired_drop(self, drops, make_drop, now):
        drop = await make_drop(expires_at=now - timedelta(days=1))
        with pytest.raises(ExpiredError):
            await unlock_drop(drops, drop.id, SECRET, now=now)

    async def test_response_never_contains_secret(self, drops, make_drop, now):
        drop = await make_drop()
        response = (await unlock_drop(drops, drop.id, SECRET, now=now)).to_response()
        assert "secretHash" not in response
        assert SECRET not in str(response)


@pytest.mark.asyncio
class TestUnearthDrop:
    """Test unlocking by secret and location, without a drop id."""

    async def test_unlocks_drop_caller_stands_in(self, drops, make_drop, now):
        drop = await make_drop()

        result = await unearth_drop(drops, SECRET, NEARBY, now=now)

        assert result.id == drop.id
        assert result.distance_m is None
        stored = await drops.get_drop(drop.id)
        assert stored.stats.unlocks == 1

    async def test_wrong_secret_and_wrong_place_look_the_same(self, drops, make_drop, now):
        drop = await make_drop()

        with pytest.raises(NotFoundError) as wrong_secret:
            await unearth_drop(drops, "wrong", NEARBY, now=now)
        with pytest.raises(NotFoundError) as wrong_place:
            await unearth_drop(drops, SECRET, FAR_AWAY, now=now)

        assert wrong_secret.value.message == wrong_place.value.message
        stored = await drops.get_drop(drop.id)
        assert stored.stats.unlocks == 0

    async def test_expired_drop_is_never_unearthed(self, drops, make_drop, now):
        await make_drop(expires_at=now - timedelta(minutes=1))
        with pytest.raises(NotFoundError):
            await unearth_drop(drops, SECRET, SPOT, now=now)

    async def test_nearest_match_wins(self, drops, make_drop, now):
        await make_drop(title="Far one", coords=SPOT)
        near = await make_drop(title="Near one", coords=NEARBY)

        result = await unearth_drop(drops, SECRET, NEARBY, now=now)

        assert result.id == near.id

    async def test_private_drop_only_for_its_owner(self, drops, make_drop, now):
        drop = await make_drop(owner_id="owner-1", scope=DropScope.PRIVATE)

        with pytest.raises(NotFoundError):
            await unearth_drop(drops, SECRET, SPOT, requester_id="someone-else", now=now)
        with pytest.raises(NotFoundError):
            await unearth_drop(drops, SECRET, SPOT, now=now)

        result = await unearth_drop(drops, SECRET, SPOT, requester_id="owner-1", now=now)
        assert result.id == drop.id

    async def test_distance_only_when_disclosed(self, drops, make_drop, now):
        await make_drop()
        result = await unearth_drop(drops, SECRET, NEARBY, now=now, disclose_distance=True)
        assert 40 < result.distance_m < 50
