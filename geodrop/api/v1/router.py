"""Main v1 API router that aggregates all sub-routers."""

from fastapi import APIRouter

from .tiers import router as tiers_router
from .drops import router as drops_router
from .hunts import router as hunts_router
from .users import router as users_router
from .admin import router as admin_router

# Main v1 router
router = APIRouter(prefix="/api/v1")

# Include all sub-routers with appropriate prefixes
router.include_router(tiers_router, prefix="/tiers", tags=["Tiers"])
router.include_router(drops_router, prefix="/drops", tags=["Drops"])
router.include_router(hunts_router, prefix="/hunts", tags=["Hunts"])
router.include_router(users_router, prefix="/users", tags=["Users"])
router.include_router(admin_router, prefix="/admin", tags=["Admin"])

__all__ = ["router"]
