"""
User CRUD Operations
Database operations for user management.
"""

from datetime import datetime
from typing import Optional

from google.cloud.firestore import ArrayUnion

from geodrop.crud.base import BaseCRUD
from geodrop.models.tier import UserTier
from geodrop.models.user import UserModel


class UserCRUD(BaseCRUD[UserModel]):
    """CRUD operations for user documents (keyed by uid)."""

    @property
    def collection_name(self) -> str:
        """Get collection name."""
        return "users"

    async def get_user(self, uid: str) -> Optional[UserModel]:
        """
        Get a user by uid.

        Args:
            uid: User ID

        Returns:
            UserModel or None if not found
        """
        data = await self.get_by_id(uid)
        if data is None:
            return None
        data.setdefault("uid", uid)
        return UserModel.from_dict(data)

    async def create_user(self, user: UserModel) -> str:
        """
        Create a new user document keyed by uid.

        Args:
            user: UserModel instance

        Returns:
            Created user ID (uid)
        """
        return await self.create(user.to_dict(), doc_id=user.uid)

    async def ensure_user(self, uid: str, email: str = "", display_name: str = "") -> UserModel:
        """
        Return the user record, creating it on first authenticated use.

        Args:
            uid: Identity provider user ID
            email: Verified email from the identity provider
            display_name: Display name from the identity provider

        Returns:
            Existing or newly created UserModel
        """
        user = await self.get_user(uid)
        if user is not None:
            return user
        user = UserModel(uid=uid, email=email, display_name=display_name)
        await self.create_user(user)
        return user

    async def set_admin(self, uid: str, is_admin: bool) -> None:
        """Set the administrator flag."""
        await self.update(uid, {"isAdmin": is_admin})

    async def set_tier(self, uid: str, tier: UserTier) -> None:
        """Set the subscription tier."""
        await self.update(uid, {"tier": tier.value})

    async def add_joined_hunt(self, uid: str, hunt_code: str, now: Optional[datetime] = None) -> None:
        """Record a joined hunt code on an existing user; joining twice leaves one entry."""
        await self.update(uid, {"joinedHunts": ArrayUnion([hunt_code])}, now=now)
