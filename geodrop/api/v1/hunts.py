"""Treasure hunt endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from geodrop.dependencies import RequestSession, get_current_identity, get_session
from geodrop.schemas.drop_schema import HintRequest, JoinHuntRequest
from geodrop.schemas.responses import ApiResponse
from geodrop.services.firebase.auth_service import Identity
from geodrop.services.hunts import get_proximity_hint, join_hunt_by_code

router = APIRouter()


@router.post("/join", response_model=ApiResponse[Dict[str, Any]])
async def join_hunt(
    request: JoinHuntRequest,
    identity: Identity = Depends(get_current_identity),
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """
    Join a treasure hunt by its shareable code.

    Args:
        request: The hunt code as typed by the participant
        identity: Authenticated caller
        session: Request session

    Returns:
        ApiResponse with the hunt's title, description and difficulty
    """
    result = await join_hunt_by_code(session.drops, session.users, request.hunt_code, identity)
    message = "Already joined this hunt" if result.already_joined else "Joined hunt successfully"
    return ApiResponse.success_response(result.to_response(), message=message)


@router.post("/{drop_id}/hint", response_model=ApiResponse[Dict[str, Any]])
async def hunt_hint(
    drop_id: str,
    request: HintRequest,
    identity: Identity = Depends(get_current_identity),
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """Warmer/colder hint for a hunt the caller has joined. Others get ``showHint: false``."""
    hint = await get_proximity_hint(session.drops, session.users, identity, drop_id, request.coords)
    return ApiResponse.success_response(hint.to_response(), message="Hint retrieved successfully")
