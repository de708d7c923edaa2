"""Abstract base class for the upload intent store."""

from abc import ABC, abstractmethod

from src.domain.models.upload import UploadIntent


class IntentStoreBase(ABC):
    """Short-TTL store of pending uploads, keyed by intent id.

    Expired intents are never returned, even if the backend has not
    reaped them yet.
    """

    @abstractmethod
    async def save(self, intent: UploadIntent) -> None:
        """Create or replace an intent."""

    @abstractmethod
    async def get(self, intent_id: str) -> UploadIntent | None:
        """Load a live intent, or None if absent or expired."""

    @abstractmethod
    async def delete(self, intent_id: str) -> bool:
        """Delete an intent.

        Returns:
            True if it existed.
        """

    @abstractmethod
    async def claim(self, intent_id: str) -> UploadIntent | None:
        """Atomically remove a live intent and return it.

        When several callers race for the same intent, only one gets it.
        """

    @abstractmethod
    async def ensure_indexes(self) -> None:
        """Create whatever the backend needs for TTL expiry."""
