"""Application layer - use cases and orchestration.

This layer contains:
- Services: upload protocol, intake worker and transcode task
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import (
    FinalizeUploadResponse,
    PresignUploadRequest,
    PresignUploadResponse,
)
from src.application.services import (
    FinalizeService,
    IterationOutcome,
    PresignService,
    TranscodeTaskRunner,
    VideoIntakeWorker,
)

__all__ = [
    # DTOs
    "PresignUploadRequest",
    "PresignUploadResponse",
    "FinalizeUploadResponse",
    # Services
    "PresignService",
    "FinalizeService",
    "VideoIntakeWorker",
    "IterationOutcome",
    "TranscodeTaskRunner",
]
