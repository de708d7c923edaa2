"""Upload intent store backed by the document database."""

from datetime import UTC, datetime
from typing import Any

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.telemetry import get_logger
from src.domain.models.upload import UploadIntent
from src.infrastructure.intents.base import IntentStoreBase


class DocumentIntentStore(IntentStoreBase):
    """Intents as documents with a TTL index on ``expires_at``.

    MongoDB reaps expired documents roughly once a minute, so reads also
    compare ``expires_at`` against the clock.
    """

    def __init__(self, document_db: DocumentDBBase, collection: str) -> None:
        """Initialize the store.

        Args:
            document_db: Document database provider.
            collection: Collection holding intents.
        """
        self._db = document_db
        self._collection = collection
        self._logger = get_logger(__name__)

    async def save(self, intent: UploadIntent) -> None:
        """Upsert the intent document."""
        document = self._to_document(intent)
        await self._db.conditional_upsert(self._collection, intent.id, {}, document)

    async def get(self, intent_id: str) -> UploadIntent | None:
        """Load a live intent."""
        document = await self._db.find_by_id(self._collection, intent_id)
        if document is None:
            return None

        intent = UploadIntent.model_validate(self._normalize(document))
        if intent.is_expired():
            self._logger.debug(
                "Ignoring expired intent awaiting TTL reaping",
                extra={"intent_id": intent_id},
            )
            return None
        return intent

    async def delete(self, intent_id: str) -> bool:
        """Delete the intent document."""
        return await self._db.delete(self._collection, intent_id)

    async def claim(self, intent_id: str) -> UploadIntent | None:
        """Remove the intent document and return it if still live."""
        document = await self._db.find_and_delete(self._collection, intent_id)
        if document is None:
            return None

        intent = UploadIntent.model_validate(self._normalize(document))
        return None if intent.is_expired() else intent

    async def ensure_indexes(self) -> None:
        """Create the TTL index; documents expire exactly at ``expires_at``."""
        await self._db.create_index(
            self._collection,
            [("expires_at", 1)],
            name="expires_at_ttl",
            expire_after_seconds=0,
        )

    @staticmethod
    def _to_document(intent: UploadIntent) -> dict[str, Any]:
        document = intent.model_dump()
        document["asset_type"] = intent.asset_type.value
        document["mode"] = intent.mode.value
        return document

    @staticmethod
    def _normalize(document: dict[str, Any]) -> dict[str, Any]:
        # Naive datetimes come back from clients without tz_aware.
        for field in ("created_at", "expires_at"):
            value = document.get(field)
            if isinstance(value, datetime) and value.tzinfo is None:
                document[field] = value.replace(tzinfo=UTC)
        return document
