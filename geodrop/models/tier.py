"""
Tier Models
Defines subscription tiers and the limits each one grants.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class UserTier(str, Enum):
    """Subscription tier enumeration."""
    FREE = "free"
    PREMIUM = "premium"
    BUSINESS = "business"


# Older admin tooling wrote "paid" for what is now the business tier.
TIER_ALIASES = {"paid": UserTier.BUSINESS}

UNLIMITED_EXPIRY = -1


class TierLimits(BaseModel):
    """Numeric and boolean limits derived from a tier. Never persisted."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_file_size_mb: int = Field(alias="maxFileSizeMB", ge=0, description="Max total file size per drop")
    default_expiry_days: int = Field(
        alias="defaultExpiryDays", ge=-1, description="Default drop lifetime in days (-1 for never)"
    )
    min_radius_m: int = Field(alias="minRadiusM", ge=0, description="Smallest allowed geofence radius")
    max_radius_m: int = Field(alias="maxRadiusM", ge=0, description="Largest allowed geofence radius")
    can_use_private_spots: bool = Field(alias="canUsePrivateSpots", description="Private scope allowed")
    can_use_physical_mode: bool = Field(alias="canUsePhysicalMode", description="Physical retrieval allowed")
    max_drops: int = Field(alias="maxDrops", ge=0, description="Drop quota")

    def to_dict(self) -> dict:
        """Convert limits to the camelCase wire format."""
        return self.model_dump(by_alias=True)


class TierInfo(BaseModel):
    """Display information for a tier."""

    name: str
    color: str
    features: List[str] = Field(default_factory=list)


TIER_LIMITS: Dict[UserTier, TierLimits] = {
    UserTier.FREE: TierLimits(
        max_file_size_mb=500,
        default_expiry_days=30,
        min_radius_m=50,
        max_radius_m=500,
        can_use_private_spots=True,
        can_use_physical_mode=False,
        max_drops=10,
    ),
    UserTier.PREMIUM: TierLimits(
        max_file_size_mb=1000,
        default_expiry_days=365,
        min_radius_m=10,
        max_radius_m=1000,
        can_use_private_spots=True,
        can_use_physical_mode=True,
        max_drops=100,
    ),
    UserTier.BUSINESS: TierLimits(
        max_file_size_mb=5000,
        default_expiry_days=UNLIMITED_EXPIRY,
        min_radius_m=5,
        max_radius_m=5000,
        can_use_private_spots=True,
        can_use_physical_mode=True,
        max_drops=1000,
    ),
}


TIER_INFO: Dict[UserTier, TierInfo] = {
    UserTier.FREE: TierInfo(
        name="Free Explorer",
        color="gray",
        features=[
            "10 drops max",
            "500MB file limit",
            "50-500m radius",
            "Remote unlock only",
            "30 day expiry",
        ],
    ),
    UserTier.PREMIUM: TierInfo(
        name="Premium",
        color="purple",
        features=[
            "100 drops max",
            "1000MB file limit",
            "10-1000m radius",
            "Physical unlock",
            "365 day expiry",
        ],
    ),
    UserTier.BUSINESS: TierInfo(
        name="Business",
        color="blue",
        features=[
            "1000 drops max",
            "5000MB file limit",
            "5-5000m radius",
            "Physical unlock",
            "Unlimited expiry",
        ],
    ),
}
