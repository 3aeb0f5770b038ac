"""Drop endpoints: lifecycle, unlock and reporting."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from geodrop.dependencies import RequestSession, enforce_unlock_limit, get_session
from geodrop.schemas.drop_schema import (
    CreateDropRequest,
    ReportRequest,
    UnearthRequest,
    UnlockDropRequest,
    UpdateDropRequest,
)
from geodrop.schemas.responses import ApiResponse
from geodrop.services import drops as drop_service
from geodrop.services.reports import create_report
from geodrop.services.unlock import unearth_drop, unlock_drop

router = APIRouter()


@router.post("", response_model=ApiResponse[Dict[str, Any]], status_code=status.HTTP_201_CREATED)
async def create_drop(
    request: CreateDropRequest,
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """
    Create a drop owned by the caller.

    Args:
        request: Drop configuration and secret
        session: Request session

    Returns:
        ApiResponse with the created drop (and its hunt code for hunts)
    """
    drop = await drop_service.create_drop(session.drops, session.users, session.identity, request)
    data = drop.public_dict()
    data["huntCode"] = drop.hunt_code
    return ApiResponse.success_response(data, message="Drop created successfully")


@router.get("/{drop_id}", response_model=ApiResponse[Dict[str, Any]])
async def get_drop(
    drop_id: str,
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """Public metadata for a drop. Expired drops are not found."""
    data = await drop_service.get_drop_summary(session.drops, drop_id)
    return ApiResponse.success_response(data, message="Drop retrieved successfully")


@router.patch("/{drop_id}", response_model=ApiResponse[Dict[str, Any]])
async def update_drop(
    drop_id: str,
    request: UpdateDropRequest,
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """Edit a drop you own."""
    drop = await drop_service.update_drop(session.drops, session.users, session.identity, drop_id, request)
    return ApiResponse.success_response(drop.public_dict(), message="Drop updated successfully")


@router.delete("/{drop_id}", response_model=ApiResponse[Dict[str, Any]])
async def delete_drop(
    drop_id: str,
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """Delete a drop you own, with its files."""
    outcome = await drop_service.delete_own_drop(
        session.drops,
        session.blobs,
        session.identity,
        drop_id,
        concurrency=session.concurrency,
        timeout=session.timeout,
    )
    return ApiResponse.success_response(outcome.to_response(), message="Drop deleted successfully")


@router.post(
    "/{drop_id}/unlock",
    response_model=ApiResponse[Dict[str, Any]],
    dependencies=[Depends(enforce_unlock_limit)],
)
async def unlock(
    drop_id: str,
    request: UnlockDropRequest,
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """
    Unlock a drop with its secret and, for physical drops, the caller's location.

    Authentication is optional; private drops only unlock for their owner.
    Attempts are limited per caller before anything is checked.
    """
    result = await unlock_drop(
        session.drops,
        drop_id,
        request.secret,
        coords=request.coords,
        requester_id=session.identity.uid if session.identity else None,
        disclose_distance=session.settings.disclose_unlock_distance,
    )
    return ApiResponse.success_response(result.to_response(), message="Drop unlocked successfully")


@router.post(
    "/unearth",
    response_model=ApiResponse[Dict[str, Any]],
    dependencies=[Depends(enforce_unlock_limit)],
)
async def unearth(
    request: UnearthRequest,
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """Unlock the drop the caller is standing in, knowing only its secret."""
    result = await unearth_drop(
        session.drops,
        request.secret,
        request.coords,
        requester_id=session.identity.uid if session.identity else None,
        disclose_distance=session.settings.disclose_unlock_distance,
    )
    return ApiResponse.success_response(result.to_response(), message="Drop unlocked successfully")


@router.post("/{drop_id}/report", response_model=ApiResponse[Dict[str, Any]], status_code=status.HTTP_201_CREATED)
async def report_drop(
    drop_id: str,
    request: ReportRequest,
    session: RequestSession = Depends(get_session),
) -> ApiResponse[Dict[str, Any]]:
    """Report a drop for review."""
    report = await create_report(
        session.drops,
        session.reports,
        session.identity,
        drop_id,
        request.category,
        request.reason,
        details=request.details,
    )
    return ApiResponse.success_response(
        {"reportId": report.id, "status": report.status.value},
        message="Report submitted successfully",
    )
