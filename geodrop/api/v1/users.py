"""User profile endpoints."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from geodrop.dependencies import RequestSession, get_current_identity, get_session
from geodrop.schemas.responses import ApiResponse
from geodrop.services.drops import list_user_drops
from geodrop.services.firebase.auth_service import Identity
from geodrop.services.tiers import get_tier_limits

router = APIRouter()


@router.get("/me", response_model=ApiResponse[Dict[str, Any]])
async def get_current_user_profile(
    identity: Identity = Depends(get_current_identity),
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """
    Get current user's profile, tier limits and drop usage.

    The user record is created on first authenticated use.

    Args:
        identity: Authenticated caller
        session: Request session

    Returns:
        ApiResponse with user profile data
    """
    user = await session.users.ensure_user(identity.uid, identity.email, identity.display_name)
    drop_count = await session.drops.count_by_owner(user.uid)

    data = user.public_dict()
    data["joinedHunts"] = user.joined_hunts
    data["limits"] = get_tier_limits(user.tier).to_dict()
    data["dropCount"] = drop_count
    return ApiResponse.success_response(data, message="User profile retrieved successfully")


@router.get("/me/drops", response_model=ApiResponse[List[Dict[str, Any]]])
async def get_my_drops(
    identity: Identity = Depends(get_current_identity),
    session: RequestSession = Depends(get_session),
) -> ApiResponse[List[Dict[str, Any]]]:
    """List the caller's drops, newest first."""
    drops = await list_user_drops(session.drops, identity)
    return ApiResponse.success_response(drops, message="Drops retrieved successfully")
