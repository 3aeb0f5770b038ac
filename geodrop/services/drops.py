"""
Drop lifecycle: creation under tier policy, owner edits, owner deletion and listings.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from geodrop.crud.drop import DropCRUD
from geodrop.crud.user import UserCRUD
from geodrop.models.drop import (
    DEFAULT_HUNT_DIFFICULTY,
    DropFile,
    DropModel,
    DropScope,
    DropType,
    RetrievalMode,
)
from geodrop.models.user import utcnow
from geodrop.schemas.drop_schema import CreateDropRequest, UpdateDropRequest
from geodrop.services.admin import BlobStore, CascadeOutcome, delete_drop
from geodrop.services.firebase.auth_service import Identity
from geodrop.services.hunts import allocate_hunt_code, ensure_hunt_code_available
from geodrop.services.tiers import (
    BYTES_PER_MB,
    can_create_drop,
    default_expiry,
    get_tier_limits,
    validate_drop_for_tier,
)
from geodrop.services.unlock import hash_secret
from geodrop.utils.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    TierLimitError,
    ValidationError,
)
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)


def _require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise AuthenticationError()
    return identity


async def create_drop(
    drops: DropCRUD,
    users: UserCRUD,
    identity: Optional[Identity],
    request: CreateDropRequest,
    now: Optional[datetime] = None,
) -> DropModel:
    """
    Create a drop owned by the caller.

    Args:
        drops: Drop store
        users: User store
        identity: Authenticated caller
        request: Validated creation payload
        now: Current time

    Returns:
        The persisted DropModel

    Raises:
        AuthenticationError: No caller identity
        TierLimitError: The owner has used the tier's drop quota
        ValidationError: Tier constraints or hunt code rules violated
    """
    identity = _require_identity(identity)
    now = now or utcnow()

    owner = await users.ensure_user(identity.uid, identity.email, identity.display_name)
    tier = owner.tier

    current = await drops.count_by_owner(owner.uid)
    if not can_create_drop(tier, current):
        limit = get_tier_limits(tier).max_drops
        raise TierLimitError(
            message=f"Drop limit of {limit} reached for {tier.value} tier",
            details={"limit": limit, "current": current},
        )

    check = validate_drop_for_tier(
        tier,
        file_size_mb=request.total_size_bytes / BYTES_PER_MB,
        radius_m=request.geofence_radius_m,
        is_private_spot=request.scope == DropScope.PRIVATE,
        is_physical_mode=request.retrieval_mode == RetrievalMode.PHYSICAL,
    )
    if not check.valid:
        raise ValidationError(message="Drop exceeds tier limits", errors=check.errors)

    hunt_code = None
    hunt_difficulty = None
    if request.drop_type == DropType.HUNT:
        if request.hunt_code:
            hunt_code = await ensure_hunt_code_available(drops, request.hunt_code)
        else:
            hunt_code = await allocate_hunt_code(drops)
        hunt_difficulty = request.hunt_difficulty or DEFAULT_HUNT_DIFFICULTY

    drop = DropModel(
        owner_id=owner.uid,
        title=request.title,
        description=request.description,
        secret_hash=hash_secret(request.secret),
        coords=request.coords,
        geofence_radius_m=request.geofence_radius_m,
        scope=request.scope,
        drop_type=request.drop_type,
        hunt_code=hunt_code,
        hunt_difficulty=hunt_difficulty,
        retrieval_mode=request.retrieval_mode,
        tier=tier,
        expires_at=request.expires_at or default_expiry(tier, now),
        files=[
            DropFile(name=f.name, storage_path=f.storage_path, size_bytes=f.size_bytes)
            for f in request.files
        ],
        created_at=now,
        updated_at=now,
    )
    drop.id = await drops.create_drop(drop)

    logger.info(
        f"Drop created: {drop.id}",
        extra={"extra_data": {"drop_id": drop.id, "owner_id": owner.uid, "drop_type": drop.drop_type.value}},
    )
    return drop


async def _owned_drop(
    drops: DropCRUD,
    identity: Optional[Identity],
    drop_id: str,
    now: datetime,
) -> DropModel:
    identity = _require_identity(identity)
    drop = await drops.get_drop(drop_id)
    if drop is None or drop.is_expired(now):
        raise NotFoundError(message="Drop not found")
    if drop.owner_id != identity.uid:
        raise AuthorizationError(message="Only the owner can modify this drop")
    return drop


async def update_drop(
    drops: DropCRUD,
    users: UserCRUD,
    identity: Optional[Identity],
    drop_id: str,
    request: UpdateDropRequest,
    now: Optional[datetime] = None,
) -> DropModel:
    """
    Apply an owner's edit to title, description, expiry or scope.

    Making a drop private is checked against the owner's current tier. An
    expired drop is reported as missing, so its expiry cannot be lifted.
    """
    now = now or utcnow()
    drop = await _owned_drop(drops, identity, drop_id, now)

    changes = request.model_dump(exclude_unset=True)
    if not changes:
        return drop

    if changes.get("scope") == DropScope.PRIVATE:
        owner = await users.get_user(drop.owner_id)
        tier = owner.tier if owner is not None else drop.tier
        if not get_tier_limits(tier).can_use_private_spots:
            raise ValidationError(
                message="Drop exceeds tier limits",
                errors=[f"Private drops are not available on the {tier.value} tier"],
            )

    fields: Dict[str, Any] = {}
    if "title" in changes:
        if not changes["title"]:
            raise ValidationError(message="Title cannot be empty")
        fields["title"] = drop.title = changes["title"]
    if "description" in changes:
        fields["description"] = drop.description = changes["description"]
    if "expires_at" in changes:
        fields["expiresAt"] = drop.expires_at = changes["expires_at"]
    if "scope" in changes and changes["scope"] is not None:
        drop.scope = DropScope(changes["scope"])
        fields["scope"] = drop.scope.value

    await drops.update(drop_id, fields, now=now)
    drop.updated_at = now
    logger.info(f"Drop updated: {drop_id}", extra={"extra_data": {"fields": sorted(fields)}})
    return drop


async def delete_own_drop(
    drops: DropCRUD,
    blobs: BlobStore,
    identity: Optional[Identity],
    drop_id: str,
    concurrency: int = 8,
    timeout: Optional[float] = None,
    now: Optional[datetime] = None,
) -> CascadeOutcome:
    """Owner deletion; files are cleaned up the same way as an admin delete. Expired drops are gone."""
    await _owned_drop(drops, identity, drop_id, now or utcnow())
    return await delete_drop(drops, blobs, drop_id, concurrency=concurrency, timeout=timeout)


async def list_user_drops(drops: DropCRUD, identity: Optional[Identity]) -> List[Dict[str, Any]]:
    """The caller's drops, newest first."""
    identity = _require_identity(identity)
    owned = await drops.list_by_owner(identity.uid)
    return [drop.public_dict() for drop in owned]


async def get_drop_summary(
    drops: DropCRUD,
    drop_id: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Public metadata for a live drop. Expired drops are reported as missing."""
    drop = await drops.get_drop(drop_id)
    if drop is None or drop.is_expired(now or utcnow()):
        raise NotFoundError(message="Drop not found")
    return drop.public_dict()
