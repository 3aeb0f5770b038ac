"""Subscription tier endpoints."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query

from geodrop.models.tier import TIER_INFO, UserTier
from geodrop.schemas.responses import ApiResponse
from geodrop.services.tiers import get_tier_limits, get_upgrade_benefits, resolve_tier
from geodrop.utils.exceptions import InvalidTierError, NotFoundError

router = APIRouter()


def _tier_entry(tier: UserTier) -> Dict[str, Any]:
    info = TIER_INFO[tier]
    return {
        "id": tier.value,
        "name": info.name,
        "color": info.color,
        "features": info.features,
        "limits": get_tier_limits(tier).to_dict(),
    }


@router.get("", response_model=ApiResponse[List[Dict[str, Any]]])
async def list_tiers() -> ApiResponse[List[Dict[str, Any]]]:
    """
    Get available subscription tiers with their limits.

    Returns:
        ApiResponse with one entry per tier
    """
    return ApiResponse.success_response(
        [_tier_entry(tier) for tier in UserTier],
        message="Tiers retrieved successfully",
    )


@router.get("/{tier}", response_model=ApiResponse[Dict[str, Any]])
async def get_tier(
    tier: str,
    from_tier: Optional[str] = Query(None, alias="from", description="Tier to compare against"),
) -> ApiResponse[Dict[str, Any]]:
    """
    Get one tier. With ``?from=<tier>`` the response lists what upgrading brings.

    Raises:
        NotFoundError: Unknown tier name
    """
    try:
        resolved = resolve_tier(tier)
        baseline = resolve_tier(from_tier) if from_tier else None
    except InvalidTierError as e:
        raise NotFoundError(message=f"Unknown tier: {e.details.get('tier')}") from e

    data = _tier_entry(resolved)
    if baseline is not None:
        data["upgradeBenefits"] = get_upgrade_benefits(baseline, resolved)
    return ApiResponse.success_response(data, message="Tier retrieved successfully")
