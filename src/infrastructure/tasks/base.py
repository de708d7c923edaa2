"""Abstract base class for launching the external transcoding task."""

from abc import ABC, abstractmethod


class TaskDispatcherBase(ABC):
    """Launches one external task per video and reports whether any run."""

    @abstractmethod
    async def has_active_task(self) -> bool:
        """Check whether a transcoding task is running or about to run."""

    @abstractmethod
    async def dispatch(self, object_key: str, video_id: str, lock_owner: str) -> str:
        """Launch the transcoding task for one video.

        Confirms only that the launch call succeeded; the task reports
        completion through its own side channel.

        Args:
            object_key: Source object to transcode.
            video_id: Id the processing lock is held under.
            lock_owner: Lock owner identity the task heartbeats as.

        Returns:
            Identifier of the launched task.

        Raises:
            TaskDispatchException: If the launch was rejected or failed.
        """
