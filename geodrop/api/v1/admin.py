"""Admin endpoints: user management, moderation and cascade deletion."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from geodrop.dependencies import RequestSession, get_admin_session
from geodrop.schemas.admin_schema import ToggleAdminRequest, UpdateTierRequest
from geodrop.schemas.responses import ApiResponse
from geodrop.services import admin as admin_service
from geodrop.services.reports import list_reports_for_drop

router = APIRouter()


@router.get("/users", response_model=ApiResponse[List[Dict[str, Any]]])
async def list_users(
    session: RequestSession = Depends(get_admin_session),
) -> ApiResponse[List[Dict[str, Any]]]:
    """
    List every user with their drop count.

    Args:
        session: Admin session

    Returns:
        ApiResponse with user records
    """
    users = await admin_service.list_users_with_drop_counts(
        session.users, session.drops, concurrency=session.concurrency
    )
    return ApiResponse.success_response(users, message="Users retrieved successfully")


@router.post("/users/toggle-admin", response_model=ApiResponse[Dict[str, Any]])
async def toggle_admin(
    request: ToggleAdminRequest,
    session: RequestSession = Depends(get_admin_session),
) -> ApiResponse[Dict[str, Any]]:
    """Grant or revoke admin access. Admins cannot revoke their own."""
    user = await admin_service.toggle_admin(session.users, session.admin, request.user_id, request.is_admin)
    return ApiResponse.success_response(user.public_dict(), message="Admin status updated")


@router.post("/users/update-tier", response_model=ApiResponse[Dict[str, Any]])
async def update_tier(
    request: UpdateTierRequest,
    session: RequestSession = Depends(get_admin_session),
) -> ApiResponse[Dict[str, Any]]:
    """Change a user's tier."""
    user = await admin_service.update_tier(session.users, session.admin, request.user_id, request.tier)
    return ApiResponse.success_response(user.public_dict(), message="Tier updated")


@router.delete("/users/{user_id}", response_model=ApiResponse[Dict[str, Any]])
async def delete_user(
    user_id: str,
    session: RequestSession = Depends(get_admin_session),
) -> ApiResponse[Dict[str, Any]]:
    """
    Delete a user with all of their drops, files and their identity record.

    File or identity cleanup failures are returned as warnings.
    """
    outcome = await admin_service.delete_user(
        session.drops,
        session.users,
        session.blobs,
        session.identity_provider,
        user_id,
        concurrency=session.concurrency,
        timeout=session.timeout,
    )
    return ApiResponse.success_response(outcome.to_response(), message="User deleted")


@router.get("/drops", response_model=ApiResponse[List[Dict[str, Any]]])
async def list_drops(
    session: RequestSession = Depends(get_admin_session),
) -> ApiResponse[List[Dict[str, Any]]]:
    """List every drop with its owner's email."""
    drops = await admin_service.list_drops_with_owner_email(
        session.drops, session.users, concurrency=session.concurrency
    )
    return ApiResponse.success_response(drops, message="Drops retrieved successfully")


@router.delete("/drops/{drop_id}", response_model=ApiResponse[Dict[str, Any]])
async def delete_drop(
    drop_id: str,
    session: RequestSession = Depends(get_admin_session),
) -> ApiResponse[Dict[str, Any]]:
    """Delete any drop and its files."""
    outcome = await admin_service.delete_drop(
        session.drops,
        session.blobs,
        drop_id,
        concurrency=session.concurrency,
        timeout=session.timeout,
    )
    return ApiResponse.success_response(outcome.to_response(), message="Drop deleted")


@router.get("/drops/{drop_id}/reports", response_model=ApiResponse[List[Dict[str, Any]]])
async def list_drop_reports(
    drop_id: str,
    session: RequestSession = Depends(get_admin_session),
) -> ApiResponse[List[Dict[str, Any]]]:
    """Reports filed against a drop, newest first."""
    reports = await list_reports_for_drop(session.reports, drop_id)
    return ApiResponse.success_response(
        [report.to_dict() for report in reports],
        message="Reports retrieved successfully",
    )
