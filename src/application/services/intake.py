"""Video intake worker: turns storage notifications into transcoding tasks."""

import asyncio
from enum import Enum

from pydantic import ValidationError

from src.commons.infrastructure.queue.base import QueueBase, QueueMessage
from src.commons.settings.models import Settings
from src.commons.telemetry import LogContext, get_logger
from src.domain.exceptions import (
    InvalidVideoKeyException,
    LockStoreUnavailableException,
    TaskDispatchException,
)
from src.domain.models.processing_lock import LockAcquisition
from src.domain.models.source_event import ObjectCreatedEvent
from src.domain.value_objects.object_key import extract_video_id, has_extension
from src.infrastructure.locks.base import LockStoreBase
from src.infrastructure.tasks.base import TaskDispatcherBase


class IterationOutcome(str, Enum):
    """What one pass of the intake loop did."""

    BUSY = "busy"
    EMPTY = "empty"
    DISCARDED_MALFORMED = "discarded_malformed"
    DISCARDED_NOT_VIDEO = "discarded_not_video"
    DISCARDED_BAD_KEY = "discarded_bad_key"
    LOCK_HELD = "lock_held"
    LOCK_UNKNOWN = "lock_unknown"
    DISPATCHED = "dispatched"
    DISPATCH_FAILED = "dispatch_failed"
    ERROR = "error"


class VideoIntakeWorker:
    """Sequential queue consumer, one message in flight at a time.

    Mutual exclusion per video comes only from the lock store's
    conditional write, so any number of these workers may run side by
    side. Noise is acknowledged and dropped; a lock outcome that could
    not be determined and a failed dispatch leave the message on the
    queue for redelivery.
    """

    def __init__(
        self,
        queue: QueueBase,
        lock_store: LockStoreBase,
        dispatcher: TaskDispatcherBase,
        settings: Settings,
    ) -> None:
        """Initialize the worker.

        Args:
            queue: Source of object-created notifications.
            lock_store: Per-video processing locks.
            dispatcher: Launches the external transcoding task.
            settings: Application settings.
        """
        self._queue = queue
        self._locks = lock_store
        self._dispatcher = dispatcher
        self._intake = settings.intake
        self._wait_seconds = settings.queue.wait_time_seconds
        self._lease_seconds = settings.lock_store.lease_seconds
        self._stop = asyncio.Event()
        self._logger = get_logger(__name__)

    @property
    def worker_id(self) -> str:
        return self._intake.worker_id

    def stop(self) -> None:
        """Ask the loop to exit after the current iteration."""
        self._stop.set()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    async def run_forever(self) -> None:
        """Run iterations until stop() is called."""
        self._logger.info(
            "Video intake worker started", extra={"worker_id": self.worker_id}
        )
        while not self._stop.is_set():
            try:
                outcome = await self.run_once()
            except Exception:
                self._logger.exception("Intake iteration failed")
                outcome = IterationOutcome.ERROR

            delay = self._delay_for(outcome)
            if delay > 0:
                await self._sleep(delay)

        self._logger.info(
            "Video intake worker stopped", extra={"worker_id": self.worker_id}
        )

    async def run_once(self) -> IterationOutcome:
        """Run one pass: busy check, poll, then handle at most one message.

        Returns:
            What happened, which decides the loop's backoff.
        """
        try:
            busy = await self._dispatcher.has_active_task()
        except Exception:
            self._logger.exception("Busy check failed")
            return IterationOutcome.ERROR

        if busy:
            self._logger.debug("Transcoding task still active, not polling")
            return IterationOutcome.BUSY

        message = await self._queue.receive_one(self._wait_seconds)
        if message is None:
            return IterationOutcome.EMPTY

        with LogContext(message_id=message.message_id) as context:
            return await self._handle(message, context)

    async def _handle(
        self, message: QueueMessage, context: LogContext
    ) -> IterationOutcome:
        try:
            event = ObjectCreatedEvent.model_validate_json(message.body)
        except ValidationError:
            self._logger.warning(
                "Discarding malformed message",
                extra={"receive_count": message.receive_count},
            )
            await self._queue.delete(message.receipt_handle)
            return IterationOutcome.DISCARDED_MALFORMED

        object_key = event.object_key
        context.bind(object_key=object_key)

        if not has_extension(object_key, self._intake.video_extensions):
            self._logger.info("Discarding non-video object")
            await self._queue.delete(message.receipt_handle)
            return IterationOutcome.DISCARDED_NOT_VIDEO

        try:
            video_id = extract_video_id(object_key, self._intake.video_id_marker)
        except InvalidVideoKeyException:
            self._logger.warning("Discarding object key without a video id")
            await self._queue.delete(message.receipt_handle)
            return IterationOutcome.DISCARDED_BAD_KEY

        context.bind(video_id=video_id)

        try:
            acquisition = await self._locks.acquire(
                video_id,
                self.worker_id,
                self._lease_seconds,
                object_key=object_key,
            )
        except LockStoreUnavailableException as e:
            self._logger.warning(
                "Lock outcome unknown, leaving message for redelivery",
                extra={"reason": e.reason},
            )
            return IterationOutcome.LOCK_UNKNOWN

        if acquisition is LockAcquisition.HELD:
            self._logger.info("Video already being processed, dropping message")
            await self._queue.delete(message.receipt_handle)
            return IterationOutcome.LOCK_HELD

        try:
            task_arn = await self._dispatcher.dispatch(
                object_key, video_id, self.worker_id
            )
        except TaskDispatchException as e:
            self._logger.error(
                "Dispatch failed, leaving message for redelivery",
                extra={"reason": e.reason, "receive_count": message.receive_count},
            )
            await self._release(video_id)
            return IterationOutcome.DISPATCH_FAILED

        await self._queue.delete(message.receipt_handle)
        self._logger.info("Video dispatched", extra={"task_arn": task_arn})
        return IterationOutcome.DISPATCHED

    async def _release(self, video_id: str) -> None:
        # Without this the redelivered message would find the lock held.
        try:
            await self._locks.release(video_id, self.worker_id)
        except LockStoreUnavailableException as e:
            self._logger.warning(
                "Could not release lock; it lapses with the lease",
                extra={"reason": e.reason},
            )

    def _delay_for(self, outcome: IterationOutcome) -> float:
        if outcome is IterationOutcome.BUSY:
            return self._intake.busy_sleep_seconds
        if outcome is IterationOutcome.EMPTY:
            return self._intake.empty_sleep_seconds
        if outcome in (
            IterationOutcome.LOCK_UNKNOWN,
            IterationOutcome.DISPATCH_FAILED,
            IterationOutcome.ERROR,
        ):
            return self._intake.error_sleep_seconds
        return 0.0

    async def _sleep(self, seconds: float) -> None:
        # Wakes early when stop() is called.
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except TimeoutError:
            pass
