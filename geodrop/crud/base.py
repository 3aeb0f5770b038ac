"""
Base CRUD Class
Base class for Firestore CRUD operations.

The Firestore client (and the LocalStore that mimics it) is synchronous, so
every call runs in a worker thread and is bounded by the configured timeout.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from google.api_core.exceptions import NotFound

from geodrop.models.user import utcnow
from geodrop.utils.concurrency import run_blocking
from geodrop.utils.exceptions import InternalError, NotFoundError
from geodrop.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Filter = Tuple[str, str, Any]

DESCENDING = "DESCENDING"
ASCENDING = "ASCENDING"


class BaseCRUD(ABC, Generic[T]):
    """
    Base CRUD class for Firestore operations.

    Generic base class for database operations with filtering, ordering and counting.
    """

    def __init__(self, db: Any, timeout: Optional[float] = None):
        """
        Initialize CRUD with Firestore client.

        Args:
            db: Firestore client instance (or LocalStore)
            timeout: Seconds to wait for any single store call
        """
        self.db = db
        self.timeout = timeout

    @property
    @abstractmethod
    def collection_name(self) -> str:
        """Get collection name. Must be implemented by subclass."""
        pass

    def get_collection(self) -> Any:
        """
        Get Firestore collection reference.

        Returns:
            Firestore collection reference
        """
        return self.db.collection(self.collection_name)

    def document(self, doc_id: str) -> Any:
        return self.get_collection().document(doc_id)

    async def _run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking store call off the event loop."""
        try:
            return await run_blocking(func, *args, timeout=self.timeout, **kwargs)
        except asyncio.TimeoutError as e:
            logger.error(f"{self.collection_name}: store call timed out after {self.timeout}s")
            raise InternalError(
                message="Document store timed out",
                details={"collection": self.collection_name},
            ) from e

    @staticmethod
    def _snapshot_to_dict(doc: Any) -> Dict[str, Any]:
        data = doc.to_dict() or {}
        data["id"] = doc.id
        return data

    def _query(
        self,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[str] = None,
        direction: str = ASCENDING,
        limit: Optional[int] = None,
    ) -> Any:
        query = self.get_collection()

        if filters:
            for field, operator, value in filters:
                query = query.where(field, operator, value)

        if order_by:
            query = query.order_by(order_by, direction=direction)

        if limit:
            query = query.limit(limit)

        return query

    async def create(self, data: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        """
        Create a new document.

        Args:
            data: Document data dictionary
            doc_id: Explicit document ID (generated when omitted)

        Returns:
            Created document ID
        """
        now = utcnow()
        data.setdefault("createdAt", now)
        data.setdefault("updatedAt", now)
        doc_ref = self.get_collection().document(doc_id) if doc_id else self.get_collection().document()
        await self._run(doc_ref.set, data)
        return doc_ref.id

    async def get_by_id(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        Get document by ID.

        Args:
            doc_id: Document ID

        Returns:
            Document data or None if not found
        """
        doc = await self._run(self.document(doc_id).get)
        if doc.exists:
            return self._snapshot_to_dict(doc)
        return None

    async def update(self, doc_id: str, data: Dict[str, Any], now: Optional[datetime] = None) -> None:
        """
        Update fields of a document. Dotted paths address nested fields.

        Args:
            doc_id: Document ID
            data: Fields to update
            now: Timestamp recorded as ``updatedAt``

        Raises:
            NotFoundError: The document does not exist
        """
        data["updatedAt"] = now or utcnow()
        try:
            await self._run(self.document(doc_id).update, data)
        except NotFound as e:
            raise NotFoundError(
                message="Document not found",
                details={"collection": self.collection_name, "id": doc_id},
            ) from e

    async def delete(self, doc_id: str) -> None:
        """
        Delete a document.

        Args:
            doc_id: Document ID
        """
        await self._run(self.document(doc_id).delete)

    async def list(
        self,
        filters: Optional[List[Filter]] = None,
        order_by: Optional[str] = None,
        direction: str = ASCENDING,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        List documents with filtering and ordering.

        Args:
            filters: List of (field, operator, value) tuples for filtering
            order_by: Field to order results by
            direction: Sort direction (ASCENDING or DESCENDING)
            limit: Maximum number of documents

        Returns:
            List of document dictionaries, each with its ``id``
        """
        query = self._query(filters, order_by, direction, limit)
        docs = await self._run(query.get)
        return [self._snapshot_to_dict(doc) for doc in docs]

    async def first(self, filters: List[Filter]) -> Optional[Dict[str, Any]]:
        """Return the first document matching ``filters`` or None."""
        items = await self.list(filters=filters, limit=1)
        return items[0] if items else None

    async def count(self, filters: Optional[List[Filter]] = None) -> int:
        """
        Count documents matching filters using the count aggregate.

        Args:
            filters: List of (field, operator, value) tuples for filtering

        Returns:
            Count of matching documents
        """
        query = self._query(filters).count(alias="count")
        results = await self._run(query.get)
        return int(results[0][0].value)

    async def delete_many_atomic(self, doc_ids: List[str]) -> int:
        """
        Delete documents in a single write batch: all or nothing.

        Args:
            doc_ids: Document IDs to delete

        Returns:
            Number of documents deleted
        """
        if not doc_ids:
            return 0
        batch = self.db.batch()
        for doc_id in doc_ids:
            batch.delete(self.document(doc_id))
        await self._run(batch.commit)
        return len(doc_ids)
