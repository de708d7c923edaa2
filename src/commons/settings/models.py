"""Pydantic settings models for application configuration."""

import os
import socket
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024
GIB = 1024 * MIB


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "video-intake"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class AwsSettings(BaseModel):
    """Shared AWS client settings (SQS, ECS, DynamoDB)."""

    region: str = "us-east-1"
    endpoint_url: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    max_attempts: int = Field(default=5, ge=1)
    connect_timeout_seconds: int = 5
    # Must exceed the queue long-poll wait.
    read_timeout_seconds: int = 30


class BucketSettings(BaseModel):
    """Bucket name configuration."""

    temp: str = "video-intake-temp"
    permanent: str = "video-intake-media"


class BlobStorageSettings(BaseModel):
    """Blob storage settings (MinIO/S3)."""

    provider: Literal["minio"] = "minio"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    buckets: BucketSettings = Field(default_factory=BucketSettings)
    presigned_url_expiry_seconds: int = 300
    public_base_url: str | None = None


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    upload_intents: str = "upload_intents"
    processing_locks: str = "processing_locks"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "video_intake"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class AssetPolicy(BaseModel):
    """Allow-list entry for one asset type.

    A MIME entry ending in ``/`` matches any subtype (``video/`` accepts
    ``video/mp4`` and ``video/webm``).
    """

    mime_types: list[str]
    max_size_bytes: int = Field(gt=0)

    def allows_mime(self, mime_type: str) -> bool:
        mime = mime_type.lower()
        return any(
            mime.startswith(allowed) if allowed.endswith("/") else mime == allowed
            for allowed in self.mime_types
        )


def _default_policies() -> dict[str, AssetPolicy]:
    return {
        "video": AssetPolicy(mime_types=["video/"], max_size_bytes=10 * GIB),
        "image": AssetPolicy(
            mime_types=["image/jpeg", "image/png", "image/webp", "image/gif"],
            max_size_bytes=10 * MIB,
        ),
        "document": AssetPolicy(
            mime_types=["application/pdf", "text/plain", "application/zip"],
            max_size_bytes=100 * MIB,
        ),
    }


class UploadSettings(BaseModel):
    """Upload intent and multipart settings."""

    intent_ttl_seconds: int = Field(default=300, ge=1, le=300)
    part_url_expiry_seconds: int = Field(default=300, ge=1)
    multipart_threshold_bytes: int = 100 * MIB
    min_part_size_bytes: int = 5 * MIB
    max_parts: int = Field(default=10_000, ge=1, le=10_000)
    policies: dict[str, AssetPolicy] = Field(default_factory=_default_policies)


class QueueSettings(BaseModel):
    """Source-video event queue settings."""

    provider: Literal["sqs"] = "sqs"
    queue_url: str = ""
    wait_time_seconds: int = Field(default=20, ge=0, le=20)
    visibility_timeout_seconds: int | None = None


class LockStoreSettings(BaseModel):
    """Processing lock store settings."""

    provider: Literal["dynamodb", "mongodb"] = "dynamodb"
    table_name: str = "video-processing-locks"
    lease_seconds: int = Field(default=3600, ge=1)


class TaskSettings(BaseModel):
    """External transcoding task settings (ECS)."""

    provider: Literal["ecs"] = "ecs"
    cluster: str = "video-processing"
    task_definition: str = "video-worker"
    task_family: str = "video-worker"
    container_name: str = "video-worker"
    launch_type: Literal["FARGATE", "EC2"] = "FARGATE"
    subnets: list[str] = Field(default_factory=list)
    security_groups: list[str] = Field(default_factory=list)
    assign_public_ip: bool = True


def _default_worker_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


class IntakeSettings(BaseModel):
    """Video intake worker loop settings."""

    video_extensions: list[str] = Field(default_factory=lambda: [".mp4"])
    video_id_marker: str = "video"
    busy_sleep_seconds: float = 5.0
    empty_sleep_seconds: float = 1.0
    error_sleep_seconds: float = 3.0
    worker_id: str = Field(default_factory=_default_worker_id)


class TranscodeSettings(BaseModel):
    """Settings for the task that runs inside the external transcode container."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    probe_timeout_seconds: float = 60.0
    transcode_timeout_seconds: float = 3 * 3600.0
    heartbeat_interval_seconds: float = 120.0
    lease_extension_seconds: int = 900
    output_prefix: str = "hls"
    work_dir: str = "/tmp/video-intake"
    callback_url: str | None = None
    callback_api_key: str | None = None
    callback_timeout_seconds: float = 10.0


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    aws: AwsSettings = Field(default_factory=AwsSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    uploads: UploadSettings = Field(default_factory=UploadSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    lock_store: LockStoreSettings = Field(default_factory=LockStoreSettings)
    tasks: TaskSettings = Field(default_factory=TaskSettings)
    intake: IntakeSettings = Field(default_factory=IntakeSettings)
    transcode: TranscodeSettings = Field(default_factory=TranscodeSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDEO_INTAKE__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
