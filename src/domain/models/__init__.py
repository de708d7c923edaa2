"""Domain models."""

from src.domain.models.processing_lock import (
    LockAcquisition,
    LockStatus,
    ProcessingLock,
)
from src.domain.models.source_event import ObjectCreatedEvent
from src.domain.models.upload import AssetType, ResourceRef, UploadIntent, UploadMode

__all__ = [
    # Upload
    "AssetType",
    "ResourceRef",
    "UploadIntent",
    "UploadMode",
    # Processing lock
    "LockAcquisition",
    "LockStatus",
    "ProcessingLock",
    # Queue events
    "ObjectCreatedEvent",
]
