"""Abstract base classes for the media tools run inside the transcode task."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class VideoDuration:
    """Duration of a media file."""

    seconds: float
    milliseconds: int

    @classmethod
    def from_seconds(cls, seconds: float) -> "VideoDuration":
        return cls(seconds=seconds, milliseconds=round(seconds * 1000))


@dataclass
class TranscodeOutput:
    """Files produced by a transcode, relative to its output directory."""

    output_dir: Path
    playlist: Path
    files: list[Path]


class DurationProbeBase(ABC):
    """Synchronous duration probe.

    Side-effect free with no retries of its own; callers decide whether
    to retry and run it off the event loop.
    """

    @abstractmethod
    def probe(
        self, file_path: Path, timeout_seconds: float | None = None
    ) -> VideoDuration:
        """Return the duration of ``file_path``.

        Args:
            file_path: Local media file.
            timeout_seconds: Kill the inspector after this long.

        Returns:
            Duration in seconds and milliseconds.

        Raises:
            DurationProbeException: Non-zero exit, timeout or non-numeric output.
        """


class TranscoderBase(ABC):
    """Opaque transcoding tool."""

    @abstractmethod
    async def transcode(self, input_path: Path, output_dir: Path) -> TranscodeOutput:
        """Transcode ``input_path`` into streamable output under ``output_dir``.

        Raises:
            RuntimeError: If the tool fails.
        """
