"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.blob.base import HealthStatus


class DocumentDBBase(ABC):
    """Abstract base class for document database operations.

    Documents are plain dicts whose ``id`` field is the primary key.
    Conditional writes are atomic on the server; callers never
    read-then-write to enforce a precondition.
    """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID.

        Args:
            collection: Collection/table name.
            document_id: Document ID.

        Returns:
            Document if found, None otherwise.
        """

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
        condition: dict[str, Any] | None = None,
    ) -> bool:
        """Set fields on a document.

        Args:
            collection: Collection/table name.
            document_id: Document ID.
            updates: Fields to set.
            condition: Extra filter that must also match, evaluated atomically.

        Returns:
            True if a document matched, False otherwise.
        """

    @abstractmethod
    async def conditional_upsert(
        self,
        collection: str,
        document_id: str,
        condition: dict[str, Any],
        document: dict[str, Any],
    ) -> bool:
        """Write ``document`` if absent, or if the stored one matches ``condition``.

        Args:
            collection: Collection/table name.
            document_id: Document ID.
            condition: Filter the existing document must satisfy.
            document: Fields to write.

        Returns:
            True if written, False if a document exists and fails the condition.
        """

    @abstractmethod
    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document.

        Args:
            collection: Collection/table name.
            document_id: Document ID.

        Returns:
            True if deleted, False if not found.
        """

    @abstractmethod
    async def find_and_delete(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Atomically remove a document and return what was stored.

        Of several concurrent callers, at most one receives the document.

        Args:
            collection: Collection/table name.
            document_id: Document ID.

        Returns:
            The deleted document, or None if there was none.
        """

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
        expire_after_seconds: int | None = None,
    ) -> str:
        """Create an index on the collection.

        Args:
            collection: Collection/table name.
            fields: List of (field_name, direction) tuples.
            unique: Whether the index should enforce uniqueness.
            name: Optional index name.
            expire_after_seconds: Make this a TTL index on a date field.

        Returns:
            Index name.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""

    @abstractmethod
    async def close(self) -> None:
        """Close the client connection."""
