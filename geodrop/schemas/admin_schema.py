"""
Admin Request Schemas
API schemas for administrative user management.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToggleAdminRequest(BaseModel):
    """Grant or revoke admin access."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(min_length=1, alias="userId")
    # Checked strictly by the service so "true" strings are rejected.
    is_admin: Any = Field(alias="isAdmin")


class UpdateTierRequest(BaseModel):
    """Change a user's subscription tier."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(min_length=1, alias="userId")
    tier: str = Field(min_length=1, description="free, premium or business")
