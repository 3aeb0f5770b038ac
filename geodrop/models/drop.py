"""
Drop Model
Represents a geo-anchored, secret-protected file bundle stored in Firestore.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from geodrop.models.tier import UserTier
from geodrop.models.user import utcnow


class DropScope(str, Enum):
    """Who may see a drop."""
    PUBLIC = "public"
    PRIVATE = "private"


class DropType(str, Enum):
    """Drop type enumeration."""
    NORMAL = "normal"
    HUNT = "hunt"


class RetrievalMode(str, Enum):
    """How a drop is unlocked."""
    REMOTE = "remote"
    PHYSICAL = "physical"


class HuntDifficulty(str, Enum):
    """Hunt difficulty levels."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"
    MASTER = "master"


DEFAULT_HUNT_DIFFICULTY = HuntDifficulty.INTERMEDIATE


class Coordinates(BaseModel):
    """A point on the globe in decimal degrees."""

    lat: float = Field(ge=-90, le=90, description="Latitude")
    lng: float = Field(ge=-180, le=180, description="Longitude")


class DropFile(BaseModel):
    """Reference to a file held in blob storage."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(description="Display name")
    storage_path: str = Field(alias="storagePath", description="Path in the storage bucket")
    size_bytes: int = Field(default=0, ge=0, alias="sizeBytes", description="File size in bytes")


class DropStats(BaseModel):
    """Access counters for a drop."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    views: int = Field(default=0, ge=0)
    unlocks: int = Field(default=0, ge=0)
    last_accessed_at: Optional[datetime] = Field(default=None, alias="lastAccessedAt")


def plain_values(value: Any) -> Any:
    """Replace enum members with their values, recursively."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: plain_values(v) for k, v in value.items()}
    if isinstance(value, list):
        return [plain_values(v) for v in value]
    return value


def as_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with Firestore timestamps."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DropModel(BaseModel):
    """Drop model representing a drop document in Firestore."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", description="Document ID")
    owner_id: str = Field(alias="ownerId", description="Owner uid")
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    secret_hash: str = Field(default="", alias="secretHash", description="SHA-256 of the secret phrase")
    coords: Coordinates
    geofence_radius_m: float = Field(alias="geofenceRadiusM", gt=0)
    scope: DropScope = DropScope.PUBLIC
    drop_type: DropType = Field(default=DropType.NORMAL, alias="dropType")
    hunt_code: Optional[str] = Field(default=None, alias="huntCode")
    hunt_difficulty: Optional[HuntDifficulty] = Field(default=None, alias="huntDifficulty")
    retrieval_mode: RetrievalMode = Field(default=RetrievalMode.REMOTE, alias="retrievalMode")
    tier: UserTier = Field(default=UserTier.FREE, description="Owner tier at creation")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    files: List[DropFile] = Field(default_factory=list)
    stats: DropStats = Field(default_factory=DropStats)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    @field_validator("drop_type", mode="before")
    @classmethod
    def validate_drop_type(cls, v: Any) -> Any:
        """Older documents stored the scope in dropType; anything but hunt is normal."""
        if v in ("public", "private", None, ""):
            return DropType.NORMAL
        return v

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Whether ``expires_at`` is set and has passed."""
        if self.expires_at is None:
            return False
        return as_aware(self.expires_at) <= as_aware(now or utcnow())

    def to_dict(self) -> Dict[str, Any]:
        """Convert drop to dictionary for Firestore storage."""
        return plain_values(self.model_dump(by_alias=True, exclude={"id"}))

    @classmethod
    def from_dict(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "DropModel":
        """Create drop from Firestore dictionary."""
        payload = dict(data)
        if doc_id:
            payload["id"] = doc_id
        return cls.model_validate(payload)

    def public_dict(self) -> Dict[str, Any]:
        """Metadata safe to show anyone: no secret, no file paths."""
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "title": self.title,
            "description": self.description,
            "coords": self.coords.model_dump(),
            "geofenceRadiusM": self.geofence_radius_m,
            "scope": self.scope.value,
            "dropType": self.drop_type.value,
            "retrievalMode": self.retrieval_mode.value,
            "huntDifficulty": self.hunt_difficulty.value if self.hunt_difficulty else None,
            "expiresAt": self.expires_at,
            "fileCount": len(self.files),
            "stats": self.stats.model_dump(by_alias=True),
            "createdAt": self.created_at,
        }
