"""Abstract base class for the source-event message queue."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from src.commons.infrastructure.blob.base import HealthStatus


@dataclass(frozen=True)
class QueueMessage:
    """A received message and the handle needed to acknowledge it."""

    message_id: str
    body: str
    receipt_handle: str
    receive_count: int = 1


class QueueBase(ABC):
    """At-least-once queue with visibility timeouts.

    A received message stays invisible to other consumers until its
    visibility timeout elapses; it must be deleted to be acknowledged.
    """

    @abstractmethod
    async def receive_one(self, wait_seconds: int) -> QueueMessage | None:
        """Long-poll for at most one message.

        Args:
            wait_seconds: Server-side wait before returning empty.

        Returns:
            The message, or None if the queue stayed empty.
        """

    @abstractmethod
    async def delete(self, receipt_handle: str) -> None:
        """Acknowledge a message so it is not redelivered."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""
