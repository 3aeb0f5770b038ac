"""Tests for the drop lifecycle service."""

from datetime import timedelta

import pytest

from geodrop.models.drop import Coordinates, DropFile, DropScope, DropType, RetrievalMode
from geodrop.models.tier import UserTier
from geodrop.schemas.drop_schema import CreateDropRequest, UpdateDropRequest
from geodrop.services.drops import (
    create_drop,
    delete_own_drop,
    get_drop_summary,
    list_user_drops,
    update_drop,
)
from geodrop.services.hunts import is_valid_hunt_code
from geodrop.services.tiers import BYTES_PER_MB
from geodrop.services.unlock import secret_matches, unlock_drop
from geodrop.utils.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ExpiredError,
    NotFoundError,
    TierLimitError,
    ValidationError,
)


def request(**overrides) -> CreateDropRequest:
    payload = {
        "title": "Hidden mixtape",
        "secret": "open sesame",
        "coords": {"lat": 40.7128, "lng": -74.0060},
        "geofenceRadiusM": 100,
    }
    payload.update(overrides)
    return CreateDropRequest.model_validate(payload)


@pytest.mark.asyncio
class TestCreateDrop:
    """Test drop creation under tier policy."""

    async def test_requires_identity(self, drops, users):
        with pytest.raises(AuthenticationError):
            await create_drop(drops, users, None, request())

    async def test_creates_owner_record_on_first_use(self, drops, users, auth, identity_for, now):
        auth.register("new@example.com", uid="newbie")

        drop = await create_drop(drops, users, identity_for("newbie"), request(), now=now)

        owner = await users.get_user("newbie")
        assert owner.tier == UserTier.FREE
        assert drop.owner_id == "newbie"
        assert drop.tier == UserTier.FREE

    async def test_stores_hash_not_secret(self, drops, users, make_user, identity_for, now):
        await make_user("owner")

        drop = await create_drop(drops, users, identity_for("owner"), request(), now=now)

        stored = await drops.get_by_id(drop.id)
        assert "secret" not in stored
        assert secret_matches("open sesame", stored["secretHash"])

    async def test_default_expiry_from_tier(self, drops, users, make_user, identity_for, now):
        await make_user("owner")
        drop = await create_drop(drops, users, identity_for("owner"), request(), now=now)
        assert drop.expires_at == now + timedelta(days=30)

    async def test_business_drops_never_expire(self, drops, users, make_user, identity_for, now):
        await make_user("owner", tier=UserTier.BUSINESS)
        drop = await create_drop(drops, users, identity_for("owner"), request(), now=now)
        assert drop.expires_at is None

    async def test_oversized_files(self, drops, users, make_user, identity_for, now):
        await make_user("owner")
        big = {"name": "movie.mp4", "storagePath": "d/movie.mp4", "sizeBytes": 600 * BYTES_PER_MB}

        with pytest.raises(ValidationError) as exc_info:
            await create_drop(drops, users, identity_for("owner"), request(files=[big]), now=now)

        assert len(exc_info.value.errors) == 1
        assert "500MB" in exc_info.value.errors[0]

    async def test_all_tier_violations_reported(self, drops, users, make_user, identity_for, now):
        await make_user("owner")
        req = request(geofenceRadiusM=10, retrievalMode="physical")

        with pytest.raises(ValidationError) as exc_info:
            await create_drop(drops, users, identity_for("owner"), req, now=now)

        assert len(exc_info.value.errors) == 2

    async def test_premium_can_use_physical_mode(self, drops, users, make_user, identity_for, now):
        await make_user("owner", tier=UserTier.PREMIUM)
        drop = await create_drop(
            drops, users, identity_for("owner"), request(retrievalMode="physical", geofenceRadiusM=10), now=now
        )
        assert drop.retrieval_mode == RetrievalMode.PHYSICAL

    async def test_quota_exhausted(self, drops, users, make_user, make_drop, identity_for, now):
        await make_user("owner")
        for _ in range(10):
            await make_drop(owner_id="owner")

        with pytest.raises(TierLimitError) as exc_info:
            await create_drop(drops, users, identity_for("owner"), request(), now=now)

        assert exc_info.value.status_code == 403
        assert exc_info.value.details == {"limit": 10, "current": 10}

    async def test_hunt_without_code_gets_generated_one(self, drops, users, make_user, identity_for, now):
        await make_user("owner")
        drop = await create_drop(drops, users, identity_for("owner"), request(dropType="hunt"), now=now)
        assert is_valid_hunt_code(drop.hunt_code)
        assert drop.hunt_code == drop.hunt_code.upper()
        found = await drops.find_hunt_by_code(drop.hunt_code)
        assert found.id == drop.id

    async def test_hunt_with_blank_code(self, drops, users, make_user, identity_for, now):
        await make_user("owner")
        with pytest.raises(ValidationError):
            await create_drop(drops, users, identity_for("owner"), request(dropType="hunt", huntCode="   "), now=now)

    async def test_hunt_code_normalized_and_unique(self, drops, users, make_user, identity_for, now):
        await make_user("owner")
        identity = identity_for("owner")

        hunt = await create_drop(drops, users, identity, request(dropType="hunt", huntCode="abc123"), now=now)

        assert hunt.drop_type == DropType.HUNT
        assert hunt.hunt_code == "ABC123"
        assert hunt.hunt_difficulty.value == "intermediate"
        with pytest.raises(ValidationError):
            await create_drop(drops, users, identity, request(dropType="hunt", huntCode="ABC123"), now=now)

    async def test_normal_drop_drops_hunt_code(self, drops, users, make_user, identity_for, now):
        await make_user("owner")
        drop = await create_drop(drops, users, identity_for("owner"), request(huntCode="ABC123"), now=now)
        assert drop.hunt_code is None


@pytest.mark.asyncio
class TestOwnerOperations:
    """Test edit, delete and listing."""

    async def test_update_by_owner(self, drops, users, make_user, make_drop, identity_for, now):
        await make_user("owner")
        drop = await make_drop(owner_id="owner")

        updated = await update_drop(
            drops, users, identity_for("owner"), drop.id,
            UpdateDropRequest(title="New title", scope=DropScope.PRIVATE), now=now,
        )

        assert updated.title == "New title"
        stored = await drops.get_drop(drop.id)
        assert stored.title == "New title"
        assert stored.scope == DropScope.PRIVATE
        assert stored.description == "Look under the bench"

    async def test_update_by_stranger(self, drops, users, make_user, make_drop, identity_for):
        await make_user("stranger")
        drop = await make_drop(owner_id="owner")
        with pytest.raises(AuthorizationError):
            await update_drop(drops, users, identity_for("stranger"), drop.id, UpdateDropRequest(title="Mine"))

    async def test_update_missing(self, drops, users, make_user, identity_for):
        await make_user("owner")
        with pytest.raises(NotFoundError):
            await update_drop(drops, users, identity_for("owner"), "missing", UpdateDropRequest(title="x"))

    async def test_delete_own_drop(self, drops, blobs, make_user, make_drop, identity_for):
        await make_user("owner")
        blobs.put("d/1")
        drop = await make_drop(owner_id="owner", files=[DropFile(name="1", storage_path="d/1")])

        outcome = await delete_own_drop(drops, blobs, identity_for("owner"), drop.id)

        assert outcome.deleted_files == 1
        assert await drops.get_drop(drop.id) is None

    async def test_stranger_cannot_delete(self, drops, blobs, make_user, make_drop, identity_for):
        await make_user("stranger")
        drop = await make_drop(owner_id="owner")
        with pytest.raises(AuthorizationError):
            await delete_own_drop(drops, blobs, identity_for("stranger"), drop.id)
        assert await drops.get_drop(drop.id) is not None

    async def test_expired_drop_cannot_be_revived(self, drops, users, make_user, make_drop, identity_for, now):
        await make_user("owner")
        drop = await make_drop(owner_id="owner", expires_at=now - timedelta(days=3))

        with pytest.raises(NotFoundError):
            await update_drop(
                drops, users, identity_for("owner"), drop.id,
                UpdateDropRequest.model_validate({"expiresAt": None}), now=now,
            )

        stored = await drops.get_drop(drop.id)
        assert stored.expires_at == now - timedelta(days=3)
        with pytest.raises(ExpiredError):
            await unlock_drop(drops, drop.id, "open sesame", now=now)

    async def test_owner_cannot_delete_expired_drop(self, drops, blobs, make_user, make_drop, identity_for, now):
        await make_user("owner")
        drop = await make_drop(owner_id="owner", expires_at=now - timedelta(seconds=1))
        with pytest.raises(NotFoundError):
            await delete_own_drop(drops, blobs, identity_for("owner"), drop.id, now=now)
        assert await drops.get_drop(drop.id) is not None

    async def test_list_user_drops(self, drops, make_user, make_drop, identity_for, now):
        await make_user("owner")
        await make_drop(owner_id="owner", title="Old", created_at=now - timedelta(days=1))
        await make_drop(owner_id="owner", title="New", created_at=now)
        await make_drop(owner_id="other")

        listed = await list_user_drops(drops, identity_for("owner"))

        assert [item["title"] for item in listed] == ["New", "Old"]
        assert all("secretHash" not in item for item in listed)

    async def test_summary_of_expired_drop(self, drops, make_drop, now):
        drop = await make_drop(expires_at=now - timedelta(seconds=1))
        with pytest.raises(NotFoundError):
            await get_drop_summary(drops, drop.id, now=now)

    async def test_summary(self, drops, make_drop, now):
        drop = await make_drop(coords=Coordinates(lat=1, lng=2))
        summary = await get_drop_summary(drops, drop.id, now=now)
        assert summary["coords"] == {"lat": 1, "lng": 2}
