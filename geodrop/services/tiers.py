"""Tier policy: pure rules over the limits each subscription tier grants."""

from datetime import datetime, timedelta
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from geodrop.models.tier import TIER_ALIASES, TIER_LIMITS, UNLIMITED_EXPIRY, TierLimits, UserTier
from geodrop.utils.exceptions import InvalidTierError

BYTES_PER_MB = 1024 * 1024

TierLike = Union[UserTier, str]


class TierValidationResult(BaseModel):
    """Outcome of checking a drop configuration against a tier."""

    valid: bool
    errors: List[str] = Field(default_factory=list)


class RadiusCheck(BaseModel):
    valid: bool
    error: Optional[str] = None
    min: int
    max: int


class FileSizeCheck(BaseModel):
    valid: bool
    error: Optional[str] = None
    max_mb: int


def resolve_tier(tier: TierLike) -> UserTier:
    """Coerce a tier name (or legacy alias) to ``UserTier``.

    Raises:
        InvalidTierError: If the tier is unknown.
    """
    if isinstance(tier, UserTier):
        return tier
    if isinstance(tier, str):
        if tier in TIER_ALIASES:
            return TIER_ALIASES[tier]
        try:
            return UserTier(tier)
        except ValueError:
            pass
    raise InvalidTierError(tier)


def get_tier_limits(tier: TierLike) -> TierLimits:
    """Limits granted by ``tier``."""
    return TIER_LIMITS[resolve_tier(tier)]


def can_create_drop(tier: TierLike, current_drop_count: int) -> bool:
    """True while the owner is below the tier's drop quota."""
    return current_drop_count < get_tier_limits(tier).max_drops


def validate_drop_for_tier(
    tier: TierLike,
    file_size_mb: float,
    radius_m: float,
    is_private_spot: bool,
    is_physical_mode: bool,
) -> TierValidationResult:
    """
    Check a drop configuration against every tier constraint.

    All constraints are evaluated so callers can report every problem in one
    response. Numeric inputs are assumed to be finite and non-negative.

    Args:
        tier: Owner's tier
        file_size_mb: Total size of the drop's files in MB
        radius_m: Requested geofence radius in meters
        is_private_spot: Whether the drop is private
        is_physical_mode: Whether the drop requires physical presence

    Returns:
        TierValidationResult with one error per violated constraint
    """
    tier = resolve_tier(tier)
    limits = TIER_LIMITS[tier]
    errors: List[str] = []

    if file_size_mb > limits.max_file_size_mb:
        errors.append(
            f"File size {file_size_mb:.2f}MB exceeds {limits.max_file_size_mb}MB limit for {tier.value} tier"
        )

    if radius_m < limits.min_radius_m:
        errors.append(f"Radius {radius_m:g}m is below minimum {limits.min_radius_m}m for {tier.value} tier")
    if radius_m > limits.max_radius_m:
        errors.append(f"Radius {radius_m:g}m exceeds maximum {limits.max_radius_m}m for {tier.value} tier")

    if is_private_spot and not limits.can_use_private_spots:
        errors.append(f"Private drops are not available on the {tier.value} tier")

    if is_physical_mode and not limits.can_use_physical_mode:
        errors.append("Physical unlock mode requires Premium+ tier")

    return TierValidationResult(valid=not errors, errors=errors)


def validate_radius(radius_m: float, tier: TierLike) -> RadiusCheck:
    """Check only the geofence radius against the tier bounds."""
    tier = resolve_tier(tier)
    limits = TIER_LIMITS[tier]
    error = None
    if radius_m < limits.min_radius_m:
        error = f"Radius must be at least {limits.min_radius_m}m for {tier.value} tier"
    elif radius_m > limits.max_radius_m:
        error = f"Radius cannot exceed {limits.max_radius_m}m for {tier.value} tier"
    return RadiusCheck(valid=error is None, error=error, min=limits.min_radius_m, max=limits.max_radius_m)


def validate_file_size(size_bytes: int, tier: TierLike) -> FileSizeCheck:
    """Check a byte count against the tier's file size limit."""
    tier = resolve_tier(tier)
    max_mb = TIER_LIMITS[tier].max_file_size_mb
    size_mb = size_bytes / BYTES_PER_MB
    error = None
    if size_mb > max_mb:
        error = f"File size ({size_mb:.2f}MB) exceeds {tier.value} tier limit of {max_mb}MB"
    return FileSizeCheck(valid=error is None, error=error, max_mb=max_mb)


def default_expiry(tier: TierLike, now: datetime) -> Optional[datetime]:
    """Expiry assigned to a new drop that does not set one; None means never."""
    days = get_tier_limits(tier).default_expiry_days
    if days == UNLIMITED_EXPIRY:
        return None
    return now + timedelta(days=days)


def get_upgrade_benefits(from_tier: TierLike, to_tier: TierLike) -> List[str]:
    """Human-readable list of what moving between two tiers unlocks."""
    before = get_tier_limits(from_tier)
    after = get_tier_limits(to_tier)
    benefits: List[str] = []

    if after.max_drops > before.max_drops:
        benefits.append(f"{after.max_drops} drops (was {before.max_drops})")
    if after.max_file_size_mb > before.max_file_size_mb:
        benefits.append(f"{after.max_file_size_mb}MB files (was {before.max_file_size_mb}MB)")
    if after.min_radius_m < before.min_radius_m:
        benefits.append(f"Precision radius down to {after.min_radius_m}m (was {before.min_radius_m}m)")
    if after.max_radius_m > before.max_radius_m:
        benefits.append(f"Max radius {after.max_radius_m}m (was {before.max_radius_m}m)")
    if after.can_use_physical_mode and not before.can_use_physical_mode:
        benefits.append("Physical unlock mode (GPS validated)")

    if before.default_expiry_days != UNLIMITED_EXPIRY and (
        after.default_expiry_days == UNLIMITED_EXPIRY or after.default_expiry_days > before.default_expiry_days
    ):
        days = "Unlimited" if after.default_expiry_days == UNLIMITED_EXPIRY else f"{after.default_expiry_days} days"
        benefits.append(f"{days} expiry (was {before.default_expiry_days} days)")

    return benefits
