"""Amazon SQS implementation of the message queue."""

import asyncio
import time
from typing import Any

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.queue.base import QueueBase, QueueMessage


class SQSQueue(QueueBase):
    """SQS queue accessed through a boto3 client.

    boto3 is blocking, so every call runs in the default executor.
    """

    def __init__(
        self,
        client: Any,
        queue_url: str,
        visibility_timeout_seconds: int | None = None,
    ) -> None:
        """Initialize the queue.

        Args:
            client: boto3 SQS client.
            queue_url: URL of the queue to consume.
            visibility_timeout_seconds: Override the queue's default.
        """
        self._client = client
        self._queue_url = queue_url
        self._visibility_timeout = visibility_timeout_seconds

    async def receive_one(self, wait_seconds: int) -> QueueMessage | None:
        """Long-poll for a single message."""
        loop = asyncio.get_event_loop()
        params: dict[str, Any] = {
            "QueueUrl": self._queue_url,
            "MaxNumberOfMessages": 1,
            "WaitTimeSeconds": wait_seconds,
            "MessageSystemAttributeNames": ["ApproximateReceiveCount"],
        }
        if self._visibility_timeout is not None:
            params["VisibilityTimeout"] = self._visibility_timeout

        def _receive() -> dict[str, Any]:
            return dict(self._client.receive_message(**params))

        response = await loop.run_in_executor(None, _receive)
        messages = response.get("Messages") or []
        if not messages:
            return None

        raw = messages[0]
        attributes = raw.get("Attributes") or {}
        return QueueMessage(
            message_id=raw.get("MessageId", ""),
            body=raw.get("Body", ""),
            receipt_handle=raw["ReceiptHandle"],
            receive_count=int(attributes.get("ApproximateReceiveCount", 1)),
        )

    async def delete(self, receipt_handle: str) -> None:
        """Delete a message by receipt handle."""
        loop = asyncio.get_event_loop()

        def _delete() -> None:
            self._client.delete_message(
                QueueUrl=self._queue_url,
                ReceiptHandle=receipt_handle,
            )

        await loop.run_in_executor(None, _delete)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(
                None,
                lambda: self._client.get_queue_attributes(
                    QueueUrl=self._queue_url,
                    AttributeNames=["ApproximateNumberOfMessages"],
                ),
            )
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="SQS is healthy",
                details={"queue_url": self._queue_url},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"SQS health check failed: {e}",
                details={"queue_url": self._queue_url, "error": str(e)},
            )
