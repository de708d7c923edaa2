"""DynamoDB implementation of the processing lock store."""

import asyncio
import time
from collections.abc import Callable
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from src.commons.telemetry import get_logger
from src.domain.exceptions import LockStoreUnavailableException
from src.domain.models.processing_lock import (
    LockAcquisition,
    LockStatus,
    ProcessingLock,
)
from src.infrastructure.locks.base import LockStoreBase

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

# Absent or expired; evaluated by DynamoDB, never read-then-write.
ACQUIRE_CONDITION = "attribute_not_exists(videoId) OR leaseExpiry < :now"
OWNER_CONDITION = "attribute_exists(videoId) AND lockedBy = :owner"


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class DynamoDBLockStore(LockStoreBase):
    """Locks as items keyed by ``videoId`` in a DynamoDB table.

    Uses the low-level client so conditional failures surface as
    ClientError codes rather than resource exceptions.
    """

    def __init__(
        self,
        client: Any,
        table_name: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the lock store.

        Args:
            client: boto3 DynamoDB client.
            table_name: Table with partition key ``videoId`` (S).
            clock: Epoch-seconds clock, injectable for tests.
        """
        super().__init__(clock)
        self._client = client
        self._table = table_name
        self._logger = get_logger(__name__)

    async def acquire(
        self,
        video_id: str,
        owner: str,
        lease_seconds: int,
        object_key: str | None = None,
    ) -> LockAcquisition:
        """Conditional put: succeeds iff absent or the lease has passed."""
        now = self.now()
        item: dict[str, Any] = {
            "videoId": {"S": video_id},
            "status": {"S": LockStatus.PROCESSING.value},
            "lockedBy": {"S": owner},
            "leaseExpiry": {"N": str(now + lease_seconds)},
            "updatedAt": {"N": str(now)},
        }
        if object_key:
            item["objectKey"] = {"S": object_key}

        def _put() -> None:
            self._client.put_item(
                TableName=self._table,
                Item=item,
                ConditionExpression=ACQUIRE_CONDITION,
                ExpressionAttributeValues={":now": {"N": str(now)}},
            )

        try:
            await asyncio.get_event_loop().run_in_executor(None, _put)
        except ClientError as e:
            if _error_code(e) == CONDITIONAL_CHECK_FAILED:
                return LockAcquisition.HELD
            raise LockStoreUnavailableException(video_id, str(e)) from e
        except BotoCoreError as e:
            raise LockStoreUnavailableException(video_id, str(e)) from e

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
        """Strongly consistent read of the lock item."""

        def _get() -> dict[str, Any]:
            return dict(
                self._client.get_item(
                    TableName=self._table,
                    Key={"videoId": {"S": video_id}},
                    ConsistentRead=True,
                )
            )

        try:
            response = await asyncio.get_event_loop().run_in_executor(None, _get)
        except (ClientError, BotoCoreError) as e:
            raise LockStoreUnavailableException(video_id, str(e)) from e

        item = response.get("Item")
        if not item:
            return None
        return ProcessingLock(
            video_id=item["videoId"]["S"],
            status=LockStatus(item["status"]["S"]),
            locked_by=item["lockedBy"]["S"],
            lease_expiry=int(item["leaseExpiry"]["N"]),
            updated_at=int(item["updatedAt"]["N"]),
            object_key=item.get("objectKey", {}).get("S"),
        )

    async def extend_lease(self, video_id: str, owner: str, lease_seconds: int) -> bool:
        """Heartbeat: move the lease forward while still the owner."""
        now = self.now()
        return await self._update_owned(
            video_id,
            owner,
            "SET leaseExpiry = :expiry, updatedAt = :now",
            {":expiry": {"N": str(now + lease_seconds)}, ":now": {"N": str(now)}},
        )

    async def set_status(self, video_id: str, owner: str, status: LockStatus) -> bool:
        """Write a status marker while still the owner."""
        return await self._update_owned(
            video_id,
            owner,
            "SET #status = :status, updatedAt = :now",
            {":status": {"S": status.value}, ":now": {"N": str(self.now())}},
            names={"#status": "status"},
        )

    async def _update_owned(
        self,
        video_id: str,
        owner: str,
        expression: str,
        values: dict[str, Any],
        names: dict[str, str] | None = None,
    ) -> bool:
        params: dict[str, Any] = {
            "TableName": self._table,
            "Key": {"videoId": {"S": video_id}},
            "UpdateExpression": expression,
            "ConditionExpression": OWNER_CONDITION,
            "ExpressionAttributeValues": {**values, ":owner": {"S": owner}},
        }
        if names:
            params["ExpressionAttributeNames"] = names

        try:
            await asyncio.get_event_loop().run_in_executor(
                None, lambda: self._client.update_item(**params)
            )
        except ClientError as e:
            if _error_code(e) == CONDITIONAL_CHECK_FAILED:
                self._logger.warning(
                    "Lock no longer owned",
                    extra={"video_id": video_id, "owner": owner},
                )
                return False
            raise LockStoreUnavailableException(video_id, str(e)) from e
        except BotoCoreError as e:
            raise LockStoreUnavailableException(video_id, str(e)) from e
        return True
