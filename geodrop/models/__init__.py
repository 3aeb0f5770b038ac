"""
GeoDrop Models
Firestore document representations and data models.
"""

from geodrop.models.user import UserModel
from geodrop.models.tier import UserTier, TierLimits, TierInfo, TIER_LIMITS, TIER_INFO
from geodrop.models.drop import (
    Coordinates,
    DropFile,
    DropModel,
    DropScope,
    DropStats,
    DropType,
    HuntDifficulty,
    RetrievalMode,
)
from geodrop.models.report import ReportModel, ReportCategory, ReportStatus

__all__ = [
    "UserModel",
    "UserTier",
    "TierLimits",
    "TierInfo",
    "TIER_LIMITS",
    "TIER_INFO",
    "Coordinates",
    "DropFile",
    "DropModel",
    "DropScope",
    "DropStats",
    "DropType",
    "HuntDifficulty",
    "RetrievalMode",
    "ReportModel",
    "ReportCategory",
    "ReportStatus",
]
