"""Settings management module."""

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    AssetPolicy,
    AwsSettings,
    BlobStorageSettings,
    BucketSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    IntakeSettings,
    LockStoreSettings,
    QueueSettings,
    ServerSettings,
    Settings,
    TaskSettings,
    TelemetrySettings,
    TranscodeSettings,
    UploadSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    "AwsSettings",
    # Storage
    "BlobStorageSettings",
    "BucketSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    "LockStoreSettings",
    # Uploads
    "UploadSettings",
    "AssetPolicy",
    # Processing
    "QueueSettings",
    "TaskSettings",
    "IntakeSettings",
    "TranscodeSettings",
    # Telemetry
    "TelemetrySettings",
]
