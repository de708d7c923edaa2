"""Media tools used inside the transcode task."""

from src.infrastructure.video.base import (
    DurationProbeBase,
    TranscodeOutput,
    TranscoderBase,
    VideoDuration,
)
from src.infrastructure.video.ffmpeg_transcoder import FFmpegHlsTranscoder
from src.infrastructure.video.ffprobe_probe import FFprobeDurationProbe

__all__ = [
    # Base classes
    "DurationProbeBase",
    "TranscoderBase",
    "TranscodeOutput",
    "VideoDuration",
    # Implementations
    "FFprobeDurationProbe",
    "FFmpegHlsTranscoder",
]
