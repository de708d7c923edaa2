"""Abstract base class for the per-video processing lock store."""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from src.domain.models.processing_lock import (
    LockAcquisition,
    LockStatus,
    ProcessingLock,
)


class LockStoreBase(ABC):
    """Lock-with-lease records, one per video id.

    Every state change is a single conditional write evaluated by the
    backend. Implementations must raise LockStoreUnavailableException
    when they cannot tell whether a write took effect.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock

    def now(self) -> int:
        """Current time in whole epoch seconds."""
        return int(self._clock())

    @abstractmethod
    async def acquire(
        self,
        video_id: str,
        owner: str,
        lease_seconds: int,
        object_key: str | None = None,
    ) -> LockAcquisition:
        """Take the lock if no record exists or its lease has passed.

        Args:
            video_id: Lock key.
            owner: Identity recorded as ``locked_by``.
            lease_seconds: Lease length from now.
            object_key: Source object, kept for operators.

        Returns:
            ACQUIRED or HELD.

        Raises:
            LockStoreUnavailableException: Outcome unknown.
        """

    @abstractmethod
    async def get(self, video_id: str) -> ProcessingLock | None:
        """Read the lock record, if any."""

    @abstractmethod
    async def extend_lease(self, video_id: str, owner: str, lease_seconds: int) -> bool:
        """Push the lease to now + ``lease_seconds`` if ``owner`` still holds it.

        Returns:
            False if the lock now belongs to someone else.
        """

    @abstractmethod
    async def set_status(self, video_id: str, owner: str, status: LockStatus) -> bool:
        """Record a status change if ``owner`` still holds the lock.

        Returns:
            False if the lock now belongs to someone else.
        """

    async def mark_completed(self, video_id: str, owner: str) -> bool:
        """Record that processing finished."""
        return await self.set_status(video_id, owner, LockStatus.DONE)

    async def mark_failed(self, video_id: str, owner: str) -> bool:
        """Record a terminal failure; the lease still lapses normally."""
        return await self.set_status(video_id, owner, LockStatus.FAILED)

    async def release(self, video_id: str, owner: str) -> bool:
        """Let the lease lapse immediately so the next delivery can acquire."""
        return await self.extend_lease(video_id, owner, lease_seconds=-1)
