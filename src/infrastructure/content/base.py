"""Abstract hand-off point to the content-management service."""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class TranscodeResult:
    """What a finished transcode reports about a video."""

    video_id: str
    object_key: str
    playlist_key: str
    duration_seconds: float
    duration_ms: int

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)


class ContentCallbackBase(ABC):
    """Attaches transcode output to whatever content record owns the video."""

    @abstractmethod
    async def report(self, result: TranscodeResult) -> None:
        """Deliver the result.

        Raises:
            Exception: Implementation-specific delivery errors.
        """

    async def close(self) -> None:
        """Release client resources."""
