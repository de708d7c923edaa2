"""Domain layer - business models and logic."""

from src.domain.exceptions import (
    DomainException,
    DurationProbeException,
    IntentNotFoundException,
    IntentOwnershipException,
    InvalidVideoKeyException,
    LockStoreUnavailableException,
    TaskDispatchException,
    UploadIncompleteException,
    UploadValidationException,
)
from src.domain.models import (
    AssetType,
    LockAcquisition,
    LockStatus,
    ObjectCreatedEvent,
    ProcessingLock,
    ResourceRef,
    UploadIntent,
    UploadMode,
)
from src.domain.value_objects import PartPlan

__all__ = [
    # Exceptions
    "DomainException",
    "UploadValidationException",
    "IntentNotFoundException",
    "IntentOwnershipException",
    "UploadIncompleteException",
    "InvalidVideoKeyException",
    "LockStoreUnavailableException",
    "TaskDispatchException",
    "DurationProbeException",
    # Upload
    "AssetType",
    "ResourceRef",
    "UploadIntent",
    "UploadMode",
    "PartPlan",
    # Processing
    "LockAcquisition",
    "LockStatus",
    "ProcessingLock",
    "ObjectCreatedEvent",
]
