"""
Geofence unlock protocol, by drop id or by unearthing whatever drop the caller stands in.

Checks run in a fixed order so that the error a caller sees never depends on
more than it needs to: expiry, then secret, then privacy, then location.
"""

import hashlib
import hmac
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from geodrop.crud.drop import DropCRUD
from geodrop.models.drop import Coordinates, DropModel, DropScope, RetrievalMode
from geodrop.models.user import utcnow
from geodrop.services.geo import is_within_geofence
from geodrop.utils.exceptions import (
    AuthorizationError,
    ExpiredError,
    InvalidSecretError,
    MissingLocationError,
    NotFoundError,
    OutOfRangeError,
)
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)


def hash_secret(secret: str) -> str:
    """SHA-256 hex digest of the exact secret phrase."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def secret_matches(submitted: str, secret_hash: str) -> bool:
    """Exact-match comparison, done in constant time over the digests."""
    if not secret_hash:
        return False
    return hmac.compare_digest(hash_secret(submitted), secret_hash)


class UnlockDecision(BaseModel):
    """A successful unlock decision."""

    drop_id: str
    retrieval_mode: RetrievalMode
    distance_m: Optional[float] = None


class UnlockedFile(BaseModel):
    name: str
    storage_path: str


class UnlockResult(BaseModel):
    """What a successful unlock hands back for retrieval."""

    id: str
    title: str
    description: Optional[str] = None
    files: List[UnlockedFile] = Field(default_factory=list)
    retrieval_mode: RetrievalMode
    drop_type: str
    hunt_code: Optional[str] = None
    distance_m: Optional[float] = None

    def to_response(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "files": [{"name": f.name, "storagePath": f.storage_path} for f in self.files],
            "retrievalMode": self.retrieval_mode.value,
            "dropType": self.drop_type,
            "huntCode": self.hunt_code,
        }
        if self.distance_m is not None:
            data["distance"] = round(self.distance_m)
        return data


def evaluate_unlock(
    drop: DropModel,
    secret: str,
    coords: Optional[Coordinates] = None,
    requester_id: Optional[str] = None,
    now: Optional[datetime] = None,
    disclose_distance: bool = False,
) -> UnlockDecision:
    """
    Decide whether ``secret`` (and ``coords``) unlock ``drop``.

    Args:
        drop: The drop being unlocked
        secret: Submitted secret phrase
        coords: Submitter location, required for physical-mode drops
        requester_id: uid of the caller, if authenticated
        now: Current time
        disclose_distance: Include the measured distance in OutOfRange errors

    Returns:
        UnlockDecision on success

    Raises:
        ExpiredError: The drop is past its expiry time
        InvalidSecretError: The secret does not match
        AuthorizationError: The drop is private and the caller is not the owner
        MissingLocationError: Physical mode without coordinates
        OutOfRangeError: Physical mode outside the geofence
    """
    now = now or utcnow()

    if drop.is_expired(now):
        raise ExpiredError()

    if not secret_matches(secret, drop.secret_hash):
        raise InvalidSecretError()

    if drop.scope == DropScope.PRIVATE and requester_id != drop.owner_id:
        raise AuthorizationError(message="Access denied - private drop")

    if drop.retrieval_mode == RetrievalMode.REMOTE:
        return UnlockDecision(drop_id=drop.id, retrieval_mode=drop.retrieval_mode)

    if coords is None:
        raise MissingLocationError()

    check = is_within_geofence(coords, drop.coords, drop.geofence_radius_m)
    if not check.within_fence:
        details: Dict[str, Any] = {"required": drop.geofence_radius_m}
        if disclose_distance:
            details["distance"] = round(check.distance_m)
        raise OutOfRangeError(
            message=f"You need to be within {drop.geofence_radius_m:g}m of the drop location",
            details=details,
        )

    return UnlockDecision(
        drop_id=drop.id,
        retrieval_mode=drop.retrieval_mode,
        distance_m=check.distance_m,
    )


async def unlock_drop(
    drops: DropCRUD,
    drop_id: str,
    secret: str,
    coords: Optional[Coordinates] = None,
    requester_id: Optional[str] = None,
    now: Optional[datetime] = None,
    disclose_distance: bool = False,
) -> UnlockResult:
    """
    Load a drop, run the unlock decision and record the access.

    Stats are updated exactly once per successful call.
    """
    now = now or utcnow()
    drop = await drops.get_drop(drop_id)
    if drop is None:
        raise NotFoundError(message="Drop not found")

    try:
        decision = evaluate_unlock(
            drop,
            secret,
            coords=coords,
            requester_id=requester_id,
            now=now,
            disclose_distance=disclose_distance,
        )
    except (ExpiredError, InvalidSecretError, AuthorizationError, MissingLocationError, OutOfRangeError) as e:
        logger.info(
            f"Unlock refused for drop {drop_id}: {e.error_code}",
            extra={"extra_data": {"drop_id": drop_id, "reason": e.error_code}},
        )
        raise

    await drops.record_unlock(drop_id, now=now)
    logger.info(f"Drop unlocked: {drop_id}", extra={"extra_data": {"drop_id": drop_id}})

    return UnlockResult(
        id=drop.id,
        title=drop.title,
        description=drop.description,
        files=[UnlockedFile(name=f.name, storage_path=f.storage_path) for f in drop.files],
        retrieval_mode=decision.retrieval_mode,
        drop_type=drop.drop_type.value,
        hunt_code=drop.hunt_code,
        distance_m=decision.distance_m if disclose_distance else None,
    )


# Drops further than this from the caller are never considered for an unearth.
UNEARTH_SEARCH_RADIUS_M = 10_000


async def unearth_drop(
    drops: DropCRUD,
    secret: str,
    coords: Coordinates,
    requester_id: Optional[str] = None,
    now: Optional[datetime] = None,
    disclose_distance: bool = False,
) -> UnlockResult:
    """
    Unlock whichever drop the caller is standing in, found by secret alone.

    Candidates are public drops plus, for an authenticated caller, their own
    private drops. The nearest live candidate whose geofence contains
    ``coords`` and whose secret matches is unlocked and its stats updated.

    Raises:
        NotFoundError: Nothing here matches; the reason is never told apart
    """
    now = now or utcnow()

    candidates = await drops.list_by_scope(DropScope.PUBLIC)
    if requester_id:
        candidates += [d for d in await drops.list_by_owner(requester_id) if d.scope == DropScope.PRIVATE]

    in_range = []
    for drop in candidates:
        if drop.is_expired(now):
            continue
        check = is_within_geofence(coords, drop.coords, drop.geofence_radius_m)
        if check.within_fence and check.distance_m <= UNEARTH_SEARCH_RADIUS_M:
            in_range.append((check.distance_m, drop))
    in_range.sort(key=lambda item: item[0])

    for distance_m, drop in in_range:
        if not secret_matches(secret, drop.secret_hash):
            continue
        await drops.record_unlock(drop.id, now=now)
        logger.info(f"Drop unearthed: {drop.id}", extra={"extra_data": {"drop_id": drop.id}})
        return UnlockResult(
            id=drop.id,
            title=drop.title,
            description=drop.description,
            files=[UnlockedFile(name=f.name, storage_path=f.storage_path) for f in drop.files],
            retrieval_mode=drop.retrieval_mode,
            drop_type=drop.drop_type.value,
            hunt_code=drop.hunt_code,
            distance_m=distance_m if disclose_distance else None,
        )

    logger.info(
        "Unearth found nothing",
        extra={"extra_data": {"candidates": len(candidates), "in_range": len(in_range)}},
    )
    raise NotFoundError(message="No treasure found at this location with that secret phrase")
