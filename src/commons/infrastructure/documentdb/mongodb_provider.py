"""MongoDB implementation of document database."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.documentdb.base import DocumentDBBase


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = dict(document)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. The domain ``id`` is stored as ``_id``,
    which is what makes conditional upserts collide on duplicates.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
        """
        # tz_aware keeps expires_at comparable with datetime.now(UTC).
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string, tz_aware=True
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID, with 'id' restored from '_id'."""
        doc = await self._db[collection].find_one({"_id": document_id})
        return _from_mongo(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
        condition: dict[str, Any] | None = None,
    ) -> bool:
        """Set fields on a document matching the ID and optional condition."""
        update_doc = updates.copy()
        update_doc.pop("id", None)

        result = await self._db[collection].update_one(
            {"_id": document_id, **(condition or {})},
            {"$set": update_doc},
        )
        return bool(result.matched_count > 0)

    async def conditional_upsert(
        self,
        collection: str,
        document_id: str,
        condition: dict[str, Any],
        document: dict[str, Any],
    ) -> bool:
        """Compare-and-set on a single document.

        The upsert filters on ``_id`` plus ``condition``. When a document
        exists but fails the condition, the upsert tries to insert a second
        document with the same ``_id`` and the server rejects it.
        """
        fields = document.copy()
        fields.pop("id", None)
        try:
            await self._db[collection].update_one(
                {"_id": document_id, **condition},
                {"$set": fields},
                upsert=True,
            )
        except DuplicateKeyError:
            return False
        return True

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document by ID."""
        result = await self._db[collection].delete_one({"_id": document_id})
        return bool(result.deleted_count > 0)

    async def find_and_delete(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Delete a document by ID and return it, via findOneAndDelete."""
        doc = await self._db[collection].find_one_and_delete({"_id": document_id})
        return _from_mongo(doc) if doc else None

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
        expire_after_seconds: int | None = None,
    ) -> str:
        """Create an index on the collection."""
        options: dict[str, Any] = {"unique": unique}
        if name is not None:
            options["name"] = name
        if expire_after_seconds is not None:
            options["expireAfterSeconds"] = expire_after_seconds

        index_name = await self._db[collection].create_index(fields, **options)
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MongoDB is healthy",
                details={"database": self._database_name},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
