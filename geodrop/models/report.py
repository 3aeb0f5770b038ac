"""
Report Model
Immutable audit record of a user report against a drop.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from geodrop.models.drop import plain_values
from geodrop.models.user import utcnow


class ReportCategory(str, Enum):
    """Report category enumeration."""
    INAPPROPRIATE = "inappropriate"
    HARASSMENT = "harassment"
    SPAM = "spam"
    ILLEGAL = "illegal"
    COPYRIGHT = "copyright"
    OTHER = "other"


class ReportStatus(str, Enum):
    """Report status. Only ``pending`` is set here; moderation owns the rest."""
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ReportModel(BaseModel):
    """Report model with a frozen snapshot of the reported drop."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="")
    drop_id: str = Field(alias="dropId")
    reported_by: str = Field(alias="reportedBy")
    reporter_email: str = Field(default="unknown", alias="reporterEmail")
    category: ReportCategory
    reason: str = Field(min_length=1)
    details: str = Field(default="")
    drop_title: str = Field(alias="dropTitle")
    drop_owner_id: str = Field(alias="dropOwnerId")
    status: ReportStatus = ReportStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for Firestore storage."""
        return plain_values(self.model_dump(by_alias=True))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportModel":
        """Create report from Firestore dictionary."""
        return cls.model_validate(data)
