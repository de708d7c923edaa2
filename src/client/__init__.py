"""Client side of the upload protocol: resumable multipart uploads."""

from src.client.api import UploadApiClient, UploadApiError, UploadFileResult
from src.client.state import PartState, PartStateStore
from src.client.uploader import (
    ChunkUploader,
    MultipartSession,
    PartUploadError,
    UploadOutcome,
)

__all__ = [
    "ChunkUploader",
    "MultipartSession",
    "PartState",
    "PartStateStore",
    "PartUploadError",
    "UploadApiClient",
    "UploadApiError",
    "UploadFileResult",
    "UploadOutcome",
]
