"""MongoDB implementation of the processing lock store."""

import time
from collections.abc import Callable

from pymongo.errors import PyMongoError

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.telemetry import get_logger
from src.domain.exceptions import LockStoreUnavailableException
from src.domain.models.processing_lock import (
    LockAcquisition,
    LockStatus,
    ProcessingLock,
)
from src.infrastructure.locks.base import LockStoreBase


class MongoLockStore(LockStoreBase):
    """Locks as documents whose ``_id`` is the video id.

    Acquisition is an upsert filtered on ``lease_expiry < now``; a live
    lock makes the upsert collide on ``_id``, which the server rejects.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        collection: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the lock store.

        Args:
            document_db: Document database provider.
            collection: Collection holding lock documents.
            clock: Epoch-seconds clock, injectable for tests.
        """
        super().__init__(clock)
        self._db = document_db
        self._collection = collection
        self._logger = get_logger(__name__)

    async def acquire(
        self,
        video_id: str,
        owner: str,
        lease_seconds: int,
        object_key: str | None = None,
    ) -> LockAcquisition:
        """Compare-and-set on the lease."""
        now = self.now()
        lock = ProcessingLock(
            video_id=video_id,
            locked_by=owner,
            lease_expiry=now + lease_seconds,
            updated_at=now,
            object_key=object_key,
        )
        document = lock.model_dump(exclude={"video_id"})
        document["status"] = lock.status.value

        try:
            written = await self._db.conditional_upsert(
                self._collection,
                video_id,
                {"lease_expiry": {"$lt": now}},
                document,
            )
        except PyMongoError as e:
            raise LockStoreUnavailableException(video_id, str(e)) from e

        if not written:
            return LockAcquisition.HELD

        self._logger.info(
            "Processing lock acquired",
            extra={
                "video_id": video_id,
                "owner": owner,
                "lease_seconds": lease_seconds,
            },
        )
        return LockAcquisition.ACQUIRED

    async def get(self, video_id: str) -> ProcessingLock | None:
        """Read the lock document."""
        try:
            document = await self._db.find_by_id(self._collection, video_id)
        except PyMongoError as e:
            raise LockStoreUnavailableException(video_id, str(e)) from e

        if document is None:
            return None
        document["video_id"] = document.pop("id")
        return ProcessingLock.model_validate(document)

    async def extend_lease(self, video_id: str, owner: str, lease_seconds: int) -> bool:
        """Heartbeat: move the lease forward while still the owner."""
        now = self.now()
        return await self._update_owned(
            video_id,
            owner,
            {"lease_expiry": now + lease_seconds, "updated_at": now},
        )

    async def set_status(self, video_id: str, owner: str, status: LockStatus) -> bool:
        """Write a status marker while still the owner."""
        return await self._update_owned(
            video_id,
            owner,
            {"status": status.value, "updated_at": self.now()},
        )

    async def _update_owned(
        self, video_id: str, owner: str, updates: dict[str, object]
    ) -> bool:
        try:
            matched = await self._db.update(
                self._collection,
                video_id,
                updates,
                condition={"locked_by": owner},
            )
        except PyMongoError as e:
            raise LockStoreUnavailableException(video_id, str(e)) from e

        if not matched:
            self._logger.warning(
                "Lock no longer owned",
                extra={"video_id": video_id, "owner": owner},
            )
        return matched
