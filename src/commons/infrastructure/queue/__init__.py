"""Message queue abstractions and implementations."""

from src.commons.infrastructure.queue.base import QueueBase, QueueMessage
from src.commons.infrastructure.queue.sqs_provider import SQSQueue

__all__ = [
    # Base classes
    "QueueBase",
    "QueueMessage",
    # Implementations
    "SQSQueue",
]
