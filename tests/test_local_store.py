"""Tests for the local store: on-disk persistence and missing documents."""

from datetime import timedelta

import pytest
from google.api_core.exceptions import NotFound

from geodrop.crud.drop import DropCRUD
from geodrop.models.drop import Coordinates, DropModel
from geodrop.services.local_store import LocalStore
from geodrop.utils.exceptions import NotFoundError


@pytest.mark.asyncio
class TestLocalStorePersistence:
    """Collections written to a data dir survive a restart."""

    async def test_timestamps_reload_as_datetimes(self, tmp_path, now):
        first = DropCRUD(LocalStore(tmp_path), timeout=5)
        drop = DropModel(
            owner_id="owner-1",
            title="Hidden mixtape",
            secret_hash="hash",
            coords=Coordinates(lat=40.7128, lng=-74.006),
            geofence_radius_m=100,
            expires_at=now + timedelta(days=7),
            created_at=now,
            updated_at=now,
        )
        drop_id = await first.create_drop(drop)

        reloaded = DropCRUD(LocalStore(tmp_path), timeout=5)
        restored = await reloaded.get_drop(drop_id)

        assert restored is not None
        assert restored.created_at == now
        assert restored.expires_at == now + timedelta(days=7)
        assert not restored.is_expired(now)

    async def test_ordering_after_reload(self, tmp_path, now):
        first = DropCRUD(LocalStore(tmp_path), timeout=5)
        for offset in range(3):
            await first.create_drop(
                DropModel(
                    owner_id="owner-1",
                    title=f"Drop {offset}",
                    secret_hash="hash",
                    coords=Coordinates(lat=0, lng=0),
                    geofence_radius_m=50,
                    created_at=now + timedelta(minutes=offset),
                    updated_at=now,
                )
            )

        listed = await DropCRUD(LocalStore(tmp_path), timeout=5).list_by_owner("owner-1")

        assert [d.title for d in listed] == ["Drop 2", "Drop 1", "Drop 0"]


def test_store_without_data_dir_keeps_documents_in_memory():
    store = LocalStore()
    store.collection("drops").document("d1").set({"title": "x"})
    assert store.collection("drops").document("d1").get().to_dict() == {"title": "x"}


@pytest.mark.asyncio
class TestMissingDocuments:
    """Updates to documents that are gone surface as NotFoundError."""

    async def test_update_of_deleted_drop(self, drops, make_drop, now):
        drop = await make_drop()
        await drops.delete(drop.id)

        with pytest.raises(NotFoundError) as exc_info:
            await drops.record_unlock(drop.id, now=now)

        assert exc_info.value.status_code == 404
        assert exc_info.value.details == {"collection": "drops", "id": drop.id}

    async def test_joined_hunt_needs_existing_user(self, users, now):
        with pytest.raises(NotFoundError):
            await users.add_joined_hunt("ghost", "ABC123", now=now)
        assert await users.get_user("ghost") is None


def test_local_update_raises_firestore_not_found():
    with pytest.raises(NotFound):
        LocalStore().collection("drops").document("gone").update({"title": "x"})
