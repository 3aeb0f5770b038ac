"""
GeoDrop Schemas
Pydantic request/response schemas for API validation and documentation.
"""

from geodrop.schemas.drop_schema import (
    CreateDropRequest,
    DropFileInput,
    HintRequest,
    JoinHuntRequest,
    ReportRequest,
    UnearthRequest,
    UnlockDropRequest,
    UpdateDropRequest,
)
from geodrop.schemas.admin_schema import (
    ToggleAdminRequest,
    UpdateTierRequest,
)
from geodrop.schemas.responses import (
    ApiResponse,
    ErrorResponse,
)

__all__ = [
    "CreateDropRequest",
    "DropFileInput",
    "HintRequest",
    "JoinHuntRequest",
    "ReportRequest",
    "UnearthRequest",
    "UnlockDropRequest",
    "UpdateDropRequest",
    "ToggleAdminRequest",
    "UpdateTierRequest",
    "ApiResponse",
    "ErrorResponse",
]
