"""Report intake: immutable audit records against drops."""

from datetime import datetime
from typing import List, Optional

from geodrop.crud.drop import DropCRUD
from geodrop.crud.report import ReportCRUD
from geodrop.models.report import ReportCategory, ReportModel, ReportStatus
from geodrop.models.user import utcnow
from geodrop.services.firebase.auth_service import Identity
from geodrop.utils.exceptions import AuthenticationError, NotFoundError, ValidationError
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)

_CATEGORIES = {c.value for c in ReportCategory}


async def create_report(
    drops: DropCRUD,
    reports: ReportCRUD,
    identity: Optional[Identity],
    drop_id: str,
    category: Optional[str],
    reason: Optional[str],
    details: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ReportModel:
    """
    File a report against a drop.

    The drop's title and owner are copied onto the report so the audit trail
    survives later edits or deletion of the drop.

    Raises:
        AuthenticationError: No caller identity
        ValidationError: Missing or unknown category, missing reason
        NotFoundError: The drop does not exist or has expired
    """
    if identity is None:
        raise AuthenticationError(message="Authentication required to submit reports")

    category = (category or "").strip()
    reason = (reason or "").strip()

    errors: List[str] = []
    if not category:
        errors.append("Category is required")
    elif category not in _CATEGORIES:
        errors.append(f"Unknown category: {category}")
    if not reason:
        errors.append("Reason is required")
    if errors:
        raise ValidationError(message="Category and reason are required", errors=errors)

    now = now or utcnow()
    drop = await drops.get_drop(drop_id)
    if drop is None or drop.is_expired(now):
        raise NotFoundError(message="Drop not found")

    report = ReportModel(
        drop_id=drop_id,
        reported_by=identity.uid,
        reporter_email=identity.email or "unknown",
        category=ReportCategory(category),
        reason=reason,
        details=details or "",
        drop_title=drop.title,
        drop_owner_id=drop.owner_id,
        status=ReportStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    await reports.create_report(report)

    logger.info(
        f"Report created for drop: {drop_id}",
        extra={"extra_data": {"report_id": report.id, "category": category}},
    )
    return report


async def list_reports_for_drop(reports: ReportCRUD, drop_id: str) -> List[ReportModel]:
    return await reports.list_for_drop(drop_id)
