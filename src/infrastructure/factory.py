"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from src.commons.infrastructure.aws import create_client
from src.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from src.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from src.commons.infrastructure.queue import QueueBase, SQSQueue
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.content import ContentCallbackBase, HttpContentCallback
from src.infrastructure.intents import DocumentIntentStore, IntentStoreBase
from src.infrastructure.locks import DynamoDBLockStore, LockStoreBase, MongoLockStore
from src.infrastructure.tasks import ECSTaskDispatcher, TaskDispatcherBase
from src.infrastructure.video import (
    DurationProbeBase,
    FFmpegHlsTranscoder,
    FFprobeDurationProbe,
    TranscoderBase,
)

logger = get_logger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings.
    Instances are created lazily and cached, so a process only opens the
    connections it actually uses.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def _aws_client(self, service: str) -> Any:
        key = f"aws_{service}"
        if key not in self._instances:
            self._instances[key] = create_client(service, self._settings.aws)
        return self._instances[key]

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance.

        Returns:
            Configured blob storage provider.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            self._instances["blob_storage"] = MinioBlobStorage(
                endpoint=blob_settings.endpoint,
                access_key=blob_settings.access_key,
                secret_key=blob_settings.secret_key,
                secure=blob_settings.use_ssl,
                region=blob_settings.region,
            )
        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.username and doc_settings.password:
                connection_string = (
                    f"mongodb://{doc_settings.username}:{doc_settings.password}"
                    f"@{doc_settings.host}:{doc_settings.port}"
                    f"/?authSource={doc_settings.auth_source}"
                )
            else:
                connection_string = f"mongodb://{doc_settings.host}:{doc_settings.port}"
            self._instances["document_db"] = MongoDBDocumentDB(
                connection_string=connection_string,
                database_name=doc_settings.database,
            )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_intent_store(self) -> IntentStoreBase:
        """Get the upload intent store."""
        if "intent_store" not in self._instances:
            self._instances["intent_store"] = DocumentIntentStore(
                document_db=self.get_document_db(),
                collection=self._settings.document_db.collections.upload_intents,
            )
        return cast("IntentStoreBase", self._instances["intent_store"])

    def get_lock_store(self) -> LockStoreBase:
        """Get the processing lock store for the configured provider."""
        if "lock_store" not in self._instances:
            lock_settings = self._settings.lock_store
            store: LockStoreBase
            if lock_settings.provider == "mongodb":
                store = MongoLockStore(
                    document_db=self.get_document_db(),
                    collection=self._settings.document_db.collections.processing_locks,
                )
            else:
                store = DynamoDBLockStore(
                    client=self._aws_client("dynamodb"),
                    table_name=lock_settings.table_name,
                )
            self._instances["lock_store"] = store
        return cast("LockStoreBase", self._instances["lock_store"])

    def get_queue(self) -> QueueBase:
        """Get the source-video event queue."""
        if "queue" not in self._instances:
            queue_settings = self._settings.queue
            if not queue_settings.queue_url:
                raise ValueError("queue.queue_url must be configured")
            self._instances["queue"] = SQSQueue(
                client=self._aws_client("sqs"),
                queue_url=queue_settings.queue_url,
                visibility_timeout_seconds=queue_settings.visibility_timeout_seconds,
            )
        return cast("QueueBase", self._instances["queue"])

    def get_task_dispatcher(self) -> TaskDispatcherBase:
        """Get the external transcoding task dispatcher."""
        if "task_dispatcher" not in self._instances:
            task_settings = self._settings.tasks
            blob_settings = self._settings.blob_storage
            self._instances["task_dispatcher"] = ECSTaskDispatcher(
                client=self._aws_client("ecs"),
                cluster=task_settings.cluster,
                task_definition=task_settings.task_definition,
                task_family=task_settings.task_family,
                container_name=task_settings.container_name,
                subnets=task_settings.subnets,
                security_groups=task_settings.security_groups,
                assign_public_ip=task_settings.assign_public_ip,
                launch_type=task_settings.launch_type,
                extra_environment={
                    "VIDEO_INTAKE__BLOB_STORAGE__BUCKETS__PERMANENT": (
                        blob_settings.buckets.permanent
                    ),
                    "VIDEO_INTAKE__LOCK_STORE__TABLE_NAME": (
                        self._settings.lock_store.table_name
                    ),
                },
            )
        return cast("TaskDispatcherBase", self._instances["task_dispatcher"])

    def get_duration_probe(self) -> DurationProbeBase:
        """Get the ffprobe duration probe."""
        if "duration_probe" not in self._instances:
            self._instances["duration_probe"] = FFprobeDurationProbe(
                ffprobe_path=self._settings.transcode.ffprobe_path,
            )
        return cast("DurationProbeBase", self._instances["duration_probe"])

    def get_transcoder(self) -> TranscoderBase:
        """Get the HLS transcoder."""
        if "transcoder" not in self._instances:
            transcode_settings = self._settings.transcode
            self._instances["transcoder"] = FFmpegHlsTranscoder(
                ffmpeg_path=transcode_settings.ffmpeg_path,
                ffprobe_path=transcode_settings.ffprobe_path,
                timeout_seconds=transcode_settings.transcode_timeout_seconds,
            )
        return cast("TranscoderBase", self._instances["transcoder"])

    def get_content_callback(self) -> ContentCallbackBase | None:
        """Get the content callback, or None when no URL is configured."""
        transcode_settings = self._settings.transcode
        if not transcode_settings.callback_url:
            return None
        if "content_callback" not in self._instances:
            self._instances["content_callback"] = HttpContentCallback(
                url=transcode_settings.callback_url,
                timeout=transcode_settings.callback_timeout_seconds,
                api_key=transcode_settings.callback_api_key,
            )
        return cast("ContentCallbackBase", self._instances["content_callback"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if hasattr(result, "__await__"):
                    await result
            except Exception:
                logger.warning("Failed to close %s", name, exc_info=True)

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
