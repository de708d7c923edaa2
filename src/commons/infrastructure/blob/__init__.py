"""Object storage for the temporary and permanent upload buckets."""

from src.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobStorageBase,
    CompletedPart,
    HealthStatus,
)
from src.commons.infrastructure.blob.minio_provider import (
    BlobNotFoundError,
    MinioBlobStorage,
)

__all__ = [
    "BlobMetadata",
    "BlobNotFoundError",
    "BlobStorageBase",
    "CompletedPart",
    "HealthStatus",
    "MinioBlobStorage",
]
