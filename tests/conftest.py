"""
Shared fixtures for the GeoDrop test suite.

Every test runs against fresh in-memory stores (LocalStore, LocalBlobStore,
LocalAuthService): no network, no Firebase credentials.
"""

from datetime import datetime, timezone
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from geodrop.crud.drop import DropCRUD
from geodrop.crud.report import ReportCRUD
from geodrop.crud.user import UserCRUD
from geodrop.dependencies import get_blob_store, get_db_client, get_identity_provider, get_unlock_limiter
from geodrop.main import app
from geodrop.models.drop import Coordinates, DropModel
from geodrop.models.tier import UserTier
from geodrop.models.user import UserModel
from geodrop.services.firebase.auth_service import Identity, LocalAuthService
from geodrop.services.local_store import LocalBlobStore, LocalStore
from geodrop.services.rate_limit import AttemptLimiter
from geodrop.services.unlock import hash_secret

DROP_SECRET = "open sesame"
DROP_COORDS = Coordinates(lat=40.7128, lng=-74.0060)


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> LocalStore:
    return LocalStore()


@pytest.fixture
def blobs() -> LocalBlobStore:
    return LocalBlobStore()


@pytest.fixture
def auth() -> LocalAuthService:
    return LocalAuthService()


@pytest.fixture
def users(store) -> UserCRUD:
    return UserCRUD(store, timeout=5)


@pytest.fixture
def drops(store) -> DropCRUD:
    return DropCRUD(store, timeout=5)


@pytest.fixture
def reports(store) -> ReportCRUD:
    return ReportCRUD(store, timeout=5)


@pytest.fixture
def make_user(users, auth):
    """Create a user record and a matching local identity."""

    async def _make(
        uid: str = "user-1",
        email: str = "",
        tier: UserTier = UserTier.FREE,
        is_admin: bool = False,
    ) -> UserModel:
        email = email or f"{uid}@example.com"
        auth.register(email, display_name=uid, uid=uid)
        user = UserModel(uid=uid, email=email, display_name=uid, tier=tier, is_admin=is_admin)
        await users.create_user(user)
        return user

    return _make


@pytest.fixture
def make_drop(drops, now):
    """Persist a drop with sensible defaults; keyword arguments override fields."""

    async def _make(owner_id: str = "owner-1", secret: str = DROP_SECRET, **fields: Any) -> DropModel:
        values: Dict[str, Any] = {
            "owner_id": owner_id,
            "title": "Hidden mixtape",
            "description": "Look under the bench",
            "secret_hash": hash_secret(secret),
            "coords": DROP_COORDS,
            "geofence_radius_m": 100,
            "created_at": now,
            "updated_at": now,
        }
        values.update(fields)
        drop = DropModel(**values)
        drop.id = await drops.create_drop(drop)
        return drop

    return _make


@pytest.fixture
def identity_for(auth):
    def _identity(uid: str) -> Identity:
        return auth.verify_token(auth.issue_token(uid))

    return _identity


@pytest.fixture
def limiter() -> AttemptLimiter:
    return AttemptLimiter(max_attempts=5, window_seconds=60)


@pytest.fixture
def client(store, blobs, auth, limiter):
    """TestClient wired to the in-memory stores."""
    app.dependency_overrides[get_db_client] = lambda: store
    app.dependency_overrides[get_unlock_limiter] = lambda: limiter
    app.dependency_overrides[get_blob_store] = lambda: blobs
    app.dependency_overrides[get_identity_provider] = lambda: auth
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(auth):
    def _headers(uid: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {auth.issue_token(uid)}"}

    return _headers
