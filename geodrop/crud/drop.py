"""
Drop CRUD Operations
Database operations for drop documents.
"""

from datetime import datetime
from typing import List, Optional

from google.cloud.firestore import Increment

from geodrop.crud.base import BaseCRUD, DESCENDING
from geodrop.models.drop import DropModel, DropScope, DropType
from geodrop.models.user import utcnow


class DropCRUD(BaseCRUD[DropModel]):
    """CRUD operations for drop documents."""

    @property
    def collection_name(self) -> str:
        """Get collection name."""
        return "drops"

    async def get_drop(self, drop_id: str) -> Optional[DropModel]:
        """
        Get a drop by ID.

        Args:
            drop_id: Drop document ID

        Returns:
            DropModel or None if not found
        """
        data = await self.get_by_id(drop_id)
        if data is None:
            return None
        return DropModel.from_dict(data, doc_id=drop_id)

    async def create_drop(self, drop: DropModel) -> str:
        """Persist a new drop and return its ID."""
        return await self.create(drop.to_dict(), doc_id=drop.id or None)

    async def list_by_owner(self, owner_id: str) -> List[DropModel]:
        """All drops owned by a user, newest first."""
        items = await self.list(
            filters=[("ownerId", "==", owner_id)],
            order_by="createdAt",
            direction=DESCENDING,
        )
        return [DropModel.from_dict(item, doc_id=item["id"]) for item in items]

    async def list_all(self) -> List[DropModel]:
        """Every drop, newest first."""
        items = await self.list(order_by="createdAt", direction=DESCENDING)
        return [DropModel.from_dict(item, doc_id=item["id"]) for item in items]

    async def list_by_scope(self, scope: DropScope) -> List[DropModel]:
        """Every drop with the given scope."""
        items = await self.list(filters=[("scope", "==", scope.value)])
        return [DropModel.from_dict(item, doc_id=item["id"]) for item in items]

    async def count_by_owner(self, owner_id: str) -> int:
        """Number of drops owned by a user."""
        return await self.count([("ownerId", "==", owner_id)])

    async def find_hunt_by_code(self, hunt_code: str) -> Optional[DropModel]:
        """First hunt drop carrying ``hunt_code`` (already normalized)."""
        data = await self.first([
            ("huntCode", "==", hunt_code),
            ("dropType", "==", DropType.HUNT.value),
        ])
        return DropModel.from_dict(data, doc_id=data["id"]) if data else None

    async def hunt_code_exists(self, hunt_code: str) -> bool:
        return await self.count([("huntCode", "==", hunt_code)]) > 0

    async def record_view(self, drop_id: str, now: Optional[datetime] = None) -> None:
        """Increment the view counter atomically."""
        now = now or utcnow()
        await self.update(
            drop_id,
            {"stats.views": Increment(1), "stats.lastAccessedAt": now},
            now=now,
        )

    async def record_unlock(self, drop_id: str, now: Optional[datetime] = None) -> None:
        """Increment the view and unlock counters atomically."""
        now = now or utcnow()
        await self.update(
            drop_id,
            {
                "stats.views": Increment(1),
                "stats.unlocks": Increment(1),
                "stats.lastAccessedAt": now,
            },
            now=now,
        )
