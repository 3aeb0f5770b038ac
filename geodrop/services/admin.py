"""
Administrative operations: the admin gate, cascade deletion and user management.

Cascade deletion favours forward progress. Once the document-level effect is
durable the operation has succeeded; failures while cleaning up secondary
resources (storage objects, the identity record) are returned as warnings.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from geodrop.crud.drop import DropCRUD
from geodrop.crud.user import UserCRUD
from geodrop.models.drop import DropModel
from geodrop.models.tier import UserTier
from geodrop.models.user import UserModel
from geodrop.services.firebase.auth_service import Identity
from geodrop.services.tiers import resolve_tier
from geodrop.utils.concurrency import gather_bounded, run_blocking
from geodrop.utils.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InvalidTierError,
    NotFoundError,
    ValidationError,
)
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)


class BlobStore(Protocol):
    def delete(self, path: str) -> None: ...


class IdentityProvider(Protocol):
    def verify_token(self, token: str) -> Optional[Identity]: ...

    def delete_user(self, uid: str) -> None: ...


class AdminCheck(BaseModel):
    """Result of the admin gate: ``status`` 200 means ``user`` is an admin."""

    user: Optional[UserModel] = None
    error: Optional[str] = None
    status: int

    @property
    def ok(self) -> bool:
        return self.status == 200

    def raise_for_status(self) -> UserModel:
        """Raise the error matching ``status``, or return the admin user."""
        if self.status == 401:
            raise AuthenticationError(message=self.error or "Unauthorized")
        if self.status == 404:
            raise NotFoundError(message=self.error or "User not found")
        if self.status == 403:
            raise AuthorizationError(message=self.error or "Admin access required")
        return self.user


class CascadeStatus(str, Enum):
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"


class CascadeOutcome(BaseModel):
    """Result of a cascade deletion; warnings list cleanup that did not happen."""

    status: CascadeStatus = CascadeStatus.COMPLETED
    warnings: List[str] = Field(default_factory=list)
    deleted_drops: int = 0
    deleted_files: int = 0

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        self.status = CascadeStatus.COMPLETED_WITH_WARNINGS

    def to_response(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "warnings": self.warnings,
            "deletedDrops": self.deleted_drops,
            "deletedFiles": self.deleted_files,
        }


async def require_admin(identity: Optional[Identity], users: UserCRUD) -> AdminCheck:
    """
    Gate for every admin-only operation.

    Args:
        identity: Caller resolved by the identity provider, if any
        users: User store

    Returns:
        AdminCheck with status 401, 404, 403 or 200
    """
    if identity is None:
        return AdminCheck(error="Unauthorized", status=401)

    user = await users.get_user(identity.uid)
    if user is None:
        return AdminCheck(error="User not found", status=404)

    if not user.is_admin:
        logger.warning(f"Non-admin {identity.uid} attempted an admin operation")
        return AdminCheck(error="Admin access required", status=403)

    return AdminCheck(user=user, status=200)


async def _delete_files(
    blobs: BlobStore,
    paths: List[str],
    outcome: CascadeOutcome,
    concurrency: int,
    timeout: Optional[float],
) -> None:
    """Best-effort, order-independent deletion of storage objects."""
    factories: List[Callable[[], Any]] = [
        (lambda p=path: run_blocking(blobs.delete, p, timeout=timeout)) for path in paths
    ]
    results = await gather_bounded(factories, limit=concurrency)

    for path, result in zip(paths, results):
        if isinstance(result, BaseException):
            logger.warning(
                f"Error deleting file {path}: {result}",
                extra={"extra_data": {"storage_path": path, "error_type": type(result).__name__}},
            )
            outcome.warn(f"Failed to delete file {path}")
        else:
            outcome.deleted_files += 1


def _file_paths(drop: DropModel) -> List[str]:
    return [f.storage_path for f in drop.files if f.storage_path]


async def delete_drop(
    drops: DropCRUD,
    blobs: BlobStore,
    drop_id: str,
    concurrency: int = 8,
    timeout: Optional[float] = None,
) -> CascadeOutcome:
    """
    Delete a drop and its files.

    Files go first and individually; the drop document goes last, so a crash
    part-way leaves orphaned objects rather than a document pointing at nothing.

    Raises:
        NotFoundError: No such drop
    """
    drop = await drops.get_drop(drop_id)
    if drop is None:
        raise NotFoundError(message="Drop not found")

    outcome = CascadeOutcome()
    await _delete_files(blobs, _file_paths(drop), outcome, concurrency, timeout)

    await drops.delete(drop_id)
    outcome.deleted_drops = 1

    logger.info(
        f"Drop deleted: {drop_id}",
        extra={"extra_data": {"drop_id": drop_id, "warnings": len(outcome.warnings)}},
    )
    return outcome


async def delete_user(
    drops: DropCRUD,
    users: UserCRUD,
    blobs: BlobStore,
    identity_provider: IdentityProvider,
    user_id: str,
    concurrency: int = 8,
    timeout: Optional[float] = None,
) -> CascadeOutcome:
    """
    Delete a user, everything they own and their identity record.

    The user's drop documents are removed in one atomic batch. File cleanup
    and identity deletion are best effort and reported as warnings.

    Raises:
        NotFoundError: No such user
    """
    user = await users.get_user(user_id)
    if user is None:
        raise NotFoundError(message="User not found")

    owned = await drops.list_by_owner(user_id)
    outcome = CascadeOutcome()

    paths = [path for drop in owned for path in _file_paths(drop)]
    await _delete_files(blobs, paths, outcome, concurrency, timeout)

    outcome.deleted_drops = await drops.delete_many_atomic([drop.id for drop in owned])
    await users.delete(user_id)

    try:
        await run_blocking(identity_provider.delete_user, user_id, timeout=timeout)
    except Exception as e:
        logger.warning(
            f"Error deleting auth user {user_id}: {e}",
            extra={"extra_data": {"user_id": user_id, "error_type": type(e).__name__}},
        )
        outcome.warn(f"Failed to delete identity record for {user_id}")

    logger.info(
        f"User deleted: {user_id}",
        extra={"extra_data": {"user_id": user_id, "drops": outcome.deleted_drops}},
    )
    return outcome


async def toggle_admin(users: UserCRUD, acting_admin: UserModel, user_id: str, is_admin: Any) -> UserModel:
    """
    Grant or revoke the admin flag.

    Raises:
        ValidationError: ``is_admin`` is not a boolean, or an admin revokes themselves
        NotFoundError: No such user
    """
    if not isinstance(is_admin, bool):
        raise ValidationError(message="isAdmin must be a boolean")
    if user_id == acting_admin.uid and not is_admin:
        raise ValidationError(message="Admins cannot revoke their own admin access")

    user = await users.get_user(user_id)
    if user is None:
        raise NotFoundError(message="User not found")

    await users.set_admin(user_id, is_admin)
    logger.info(f"Admin flag for {user_id} set to {is_admin} by {acting_admin.uid}")
    user.is_admin = is_admin
    return user


async def update_tier(users: UserCRUD, acting_admin: UserModel, user_id: str, tier: Any) -> UserModel:
    """
    Change a user's subscription tier.

    Raises:
        ValidationError: Unknown tier
        NotFoundError: No such user
    """
    try:
        new_tier: UserTier = resolve_tier(tier)
    except InvalidTierError as e:
        raise ValidationError(
            message="Invalid tier",
            errors=[f"Tier must be one of: {', '.join(t.value for t in UserTier)}"],
        ) from e

    user = await users.get_user(user_id)
    if user is None:
        raise NotFoundError(message="User not found")

    await users.set_tier(user_id, new_tier)
    logger.info(f"Tier for {user_id} set to {new_tier.value} by {acting_admin.uid}")
    user.tier = new_tier
    return user


async def list_users_with_drop_counts(
    users: UserCRUD,
    drops: DropCRUD,
    concurrency: int = 8,
) -> List[Dict[str, Any]]:
    """Every user with the number of drops they own."""
    records = await users.list()
    models = [UserModel.from_dict(record) for record in records]
    counts = await gather_bounded(
        [(lambda uid=user.uid: drops.count_by_owner(uid)) for user in models],
        limit=concurrency,
        return_exceptions=False,
    )

    result = []
    for user, count in zip(models, counts):
        item = user.public_dict()
        item["dropCount"] = count
        result.append(item)
    return result


async def list_drops_with_owner_email(
    drops: DropCRUD,
    users: UserCRUD,
    concurrency: int = 8,
) -> List[Dict[str, Any]]:
    """Every drop, newest first, with its owner's email ("Unknown" if it cannot be found)."""
    all_drops = await drops.list_all()
    owners = await gather_bounded(
        [(lambda uid=drop.owner_id: users.get_user(uid)) for drop in all_drops],
        limit=concurrency,
    )

    result = []
    for drop, owner in zip(all_drops, owners):
        if isinstance(owner, Exception):
            logger.warning(f"Error fetching owner {drop.owner_id}: {owner}")
            owner = None
        item = drop.public_dict()
        item["ownerEmail"] = owner.email if owner is not None and owner.email else "Unknown"
        result.append(item)
    return result
