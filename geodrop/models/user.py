"""
User Model
Represents user data stored in Firestore.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from geodrop.models.tier import TIER_ALIASES, UserTier


def utcnow() -> datetime:
    """Timezone-aware current time, comparable with Firestore timestamps."""
    return datetime.now(timezone.utc)


class UserModel(BaseModel):
    """User model representing a user in Firestore."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uid: str = Field(description="Unique user ID (from Firebase Auth)")
    email: str = Field(default="", description="User email")
    display_name: str = Field(default="", alias="displayName", description="Display name")
    tier: UserTier = Field(default=UserTier.FREE, description="Subscription tier")
    is_admin: bool = Field(default=False, alias="isAdmin", description="Administrator flag")
    joined_hunts: List[str] = Field(
        default_factory=list, alias="joinedHunts", description="Hunt codes this user has joined"
    )
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @field_validator("tier", mode="before")
    @classmethod
    def validate_tier(cls, v: Any) -> Any:
        """Map legacy tier names and treat a missing tier as free."""
        if v is None or v == "":
            return UserTier.FREE
        if isinstance(v, str) and v in TIER_ALIASES:
            return TIER_ALIASES[v]
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert user to dictionary for Firestore storage."""
        data = self.model_dump(by_alias=True)
        data["tier"] = self.tier.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserModel":
        """Create user from Firestore dictionary."""
        payload = dict(data)
        payload.setdefault("uid", payload.get("id", ""))
        return cls.model_validate(payload)

    def public_dict(self) -> Dict[str, Any]:
        """Fields safe to return to the user and to administrators."""
        return {
            "uid": self.uid,
            "email": self.email,
            "displayName": self.display_name,
            "tier": self.tier.value,
            "isAdmin": self.is_admin,
            "createdAt": self.created_at,
        }
