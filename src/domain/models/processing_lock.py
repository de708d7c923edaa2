"""Per-video processing lock domain model."""

from enum import Enum

from pydantic import BaseModel, Field


class LockStatus(str, Enum):
    """Status recorded on a processing lock."""

    PROCESSING = "PROCESSING"
    DONE = "DONE"
    FAILED = "FAILED"


class LockAcquisition(str, Enum):
    """Outcome of a conditional lock write.

    An undetermined outcome is not a member: the store raises
    LockStoreUnavailableException so the caller can retry.
    """

    ACQUIRED = "acquired"
    HELD = "held"


class ProcessingLock(BaseModel):
    """Lock-with-lease record, one per video id.

    Times are epoch seconds, the unit the conditional write compares.
    """

    video_id: str = Field(min_length=1)
    status: LockStatus = LockStatus.PROCESSING
    locked_by: str
    lease_expiry: int = Field(description="Epoch seconds after which the lock lapses")
    updated_at: int
    object_key: str | None = None

    def is_acquirable(self, now: float) -> bool:
        """A new owner may take the lock once the lease has passed."""
        return self.lease_expiry < now

    def remaining_lease(self, now: float) -> float:
        return max(0.0, self.lease_expiry - now)
