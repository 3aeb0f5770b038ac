"""
Drop Request Schemas
API schemas for creating, editing, unlocking and reporting drops.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from geodrop.models.drop import Coordinates, DropScope, DropType, HuntDifficulty, RetrievalMode


class DropFileInput(BaseModel):
    """A file the client has already uploaded to storage."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, description="Display name")
    storage_path: str = Field(min_length=1, alias="storagePath", description="Path in the storage bucket")
    size_bytes: int = Field(default=0, ge=0, alias="sizeBytes", description="File size in bytes")


class CreateDropRequest(BaseModel):
    """Create drop request."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=1, max_length=100, description="Drop title")
    description: Optional[str] = Field(default=None, max_length=500, description="Drop description")
    secret: str = Field(min_length=3, max_length=100, description="Secret phrase")
    coords: Coordinates = Field(description="Drop location")
    geofence_radius_m: float = Field(gt=0, alias="geofenceRadiusM", description="Geofence radius in meters")
    scope: DropScope = Field(default=DropScope.PUBLIC)
    drop_type: DropType = Field(default=DropType.NORMAL, alias="dropType")
    hunt_code: Optional[str] = Field(default=None, alias="huntCode")
    hunt_difficulty: Optional[HuntDifficulty] = Field(default=None, alias="huntDifficulty")
    retrieval_mode: RetrievalMode = Field(default=RetrievalMode.REMOTE, alias="retrievalMode")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    files: List[DropFileInput] = Field(default_factory=list)

    @property
    def total_size_bytes(self) -> int:
        return sum(f.size_bytes for f in self.files)


class UpdateDropRequest(BaseModel):
    """Owner edit of a drop. Omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    scope: Optional[DropScope] = None


class UnlockDropRequest(BaseModel):
    """Unlock attempt: the secret plus, for physical drops, the caller's location."""

    secret: str = Field(min_length=1)
    coords: Optional[Coordinates] = None


class UnearthRequest(BaseModel):
    """Unlock without a drop id: the secret and where the caller is standing."""

    secret: str = Field(min_length=1)
    coords: Coordinates


class HintRequest(BaseModel):
    """Where a hunt participant is standing."""

    coords: Coordinates


class JoinHuntRequest(BaseModel):
    """Join-by-code request."""

    model_config = ConfigDict(populate_by_name=True)

    hunt_code: str = Field(alias="huntCode")


class ReportRequest(BaseModel):
    """Report a drop. Presence of category and reason is checked by report intake."""

    category: Optional[str] = None
    reason: Optional[str] = Field(default=None, max_length=500)
    details: Optional[str] = Field(default=None, max_length=2000)
