"""
Report CRUD Operations
Database operations for drop reports.
"""

from typing import List

from geodrop.crud.base import BaseCRUD, DESCENDING
from geodrop.models.report import ReportModel


class ReportCRUD(BaseCRUD[ReportModel]):
    """CRUD operations for report documents."""

    @property
    def collection_name(self) -> str:
        """Get collection name."""
        return "reports"

    async def create_report(self, report: ReportModel) -> str:
        """Persist a report and return its ID."""
        doc_ref = self.get_collection().document()
        report.id = doc_ref.id
        await self._run(doc_ref.set, report.to_dict())
        return report.id

    async def list_for_drop(self, drop_id: str) -> List[ReportModel]:
        """Reports filed against a drop, newest first."""
        items = await self.list(
            filters=[("dropId", "==", drop_id)],
            order_by="createdAt",
            direction=DESCENDING,
        )
        return [ReportModel.from_dict(item) for item in items]
