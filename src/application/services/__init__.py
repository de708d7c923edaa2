"""Application services for uploads, intake and transcoding."""

from src.application.services.finalize import FinalizeService
from src.application.services.intake import IterationOutcome, VideoIntakeWorker
from src.application.services.presign import PresignService
from src.application.services.transcode_task import (
    LeaseHeartbeat,
    LockLostError,
    TranscodeTaskRunner,
)

__all__ = [
    "FinalizeService",
    "IterationOutcome",
    "LeaseHeartbeat",
    "LockLostError",
    "PresignService",
    "TranscodeTaskRunner",
    "VideoIntakeWorker",
]
