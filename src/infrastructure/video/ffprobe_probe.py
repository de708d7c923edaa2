"""ffprobe implementation of the duration probe."""

import math
import subprocess
from pathlib import Path

from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import DurationProbeException
from src.infrastructure.video.base import DurationProbeBase, VideoDuration


class FFprobeDurationProbe(DurationProbeBase):
    """Reads ``format=duration`` with ffprobe.

    Requires ffprobe to be installed and available in PATH.
    """

    def __init__(self, ffprobe_path: str = "ffprobe") -> None:
        """Initialize the probe.

        Args:
            ffprobe_path: Path to ffprobe executable.
        """
        self._ffprobe = ffprobe_path
        self._logger = get_logger(__name__)

    @timed
    def probe(
        self, file_path: Path, timeout_seconds: float | None = None
    ) -> VideoDuration:
        """Return the container duration of ``file_path``."""
        cmd = [
            self._ffprobe,
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(file_path),
        ]

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise DurationProbeException(
                str(file_path), f"timed out after {timeout_seconds}s"
            ) from e
        except OSError as e:
            raise DurationProbeException(str(file_path), str(e)) from e

        if result.returncode != 0:
            raise DurationProbeException(
                str(file_path),
                f"ffprobe exited with {result.returncode}: {result.stderr.strip()}",
            )

        raw = result.stdout.strip()
        try:
            seconds = float(raw)
        except ValueError:
            raise DurationProbeException(
                str(file_path), f"non-numeric duration {raw!r}"
            ) from None

        if not math.isfinite(seconds) or seconds < 0:
            raise DurationProbeException(str(file_path), f"invalid duration {raw!r}")

        duration = VideoDuration.from_seconds(seconds)
        self._logger.debug(
            "Probed duration",
            extra={"file": str(file_path), "duration_ms": duration.milliseconds},
        )
        return duration
