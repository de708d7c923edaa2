"""Infrastructure layer - external service implementations."""

from src.infrastructure.content import (
    ContentCallbackBase,
    HttpContentCallback,
    TranscodeResult,
)
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.intents import DocumentIntentStore, IntentStoreBase
from src.infrastructure.locks import DynamoDBLockStore, LockStoreBase, MongoLockStore
from src.infrastructure.tasks import ECSTaskDispatcher, TaskDispatcherBase
from src.infrastructure.video import (
    DurationProbeBase,
    FFmpegHlsTranscoder,
    FFprobeDurationProbe,
    TranscodeOutput,
    TranscoderBase,
    VideoDuration,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Intents
    "IntentStoreBase",
    "DocumentIntentStore",
    # Locks
    "LockStoreBase",
    "DynamoDBLockStore",
    "MongoLockStore",
    # Tasks
    "TaskDispatcherBase",
    "ECSTaskDispatcher",
    # Video
    "DurationProbeBase",
    "TranscoderBase",
    "TranscodeOutput",
    "VideoDuration",
    "FFprobeDurationProbe",
    "FFmpegHlsTranscoder",
    # Content
    "ContentCallbackBase",
    "HttpContentCallback",
    "TranscodeResult",
]
