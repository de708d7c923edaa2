"""Domain exceptions for the video intake system."""


class DomainException(Exception):
    """Base exception for domain errors."""


class UploadValidationException(DomainException):
    """Raised when a declared upload or a part list fails validation."""

    def __init__(self, reason: str, field: str | None = None) -> None:
        self.reason = reason
        self.field = field
        super().__init__(f"Invalid upload: {reason}")


class IntentNotFoundException(DomainException):
    """Raised when an upload intent is absent, expired or already consumed."""

    def __init__(self, intent_id: str) -> None:
        self.intent_id = intent_id
        super().__init__(f"Upload intent not found or expired: {intent_id}")


class IntentOwnershipException(DomainException):
    """Raised when a caller acts on an intent owned by someone else."""

    def __init__(self, intent_id: str, caller_id: str) -> None:
        self.intent_id = intent_id
        self.caller_id = caller_id
        super().__init__(f"Caller {caller_id} does not own upload intent {intent_id}")


class UploadIncompleteException(DomainException):
    """Raised when the uploaded bytes do not match what the intent promised."""

    def __init__(self, intent_id: str, reason: str) -> None:
        self.intent_id = intent_id
        self.reason = reason
        super().__init__(f"Upload {intent_id} is not complete: {reason}")


class InvalidVideoKeyException(DomainException):
    """Raised when an object key has no recognizable video id segment."""

    def __init__(self, object_key: str, marker: str) -> None:
        self.object_key = object_key
        self.marker = marker
        super().__init__(
            f"Object key '{object_key}' has no segment after marker '{marker}'"
        )


class LockStoreUnavailableException(DomainException):
    """Raised when a lock operation could not determine its outcome."""

    def __init__(self, video_id: str, reason: str) -> None:
        self.video_id = video_id
        self.reason = reason
        super().__init__(f"Lock store unavailable for {video_id}: {reason}")


class TaskDispatchException(DomainException):
    """Raised when the external transcoding task could not be launched."""

    def __init__(self, video_id: str, reason: str) -> None:
        self.video_id = video_id
        self.reason = reason
        super().__init__(f"Dispatch failed for video {video_id}: {reason}")


class DurationProbeException(DomainException):
    """Raised when the media inspector fails or returns garbage."""

    def __init__(self, file_path: str, reason: str) -> None:
        self.file_path = file_path
        self.reason = reason
        super().__init__(f"Duration probe failed for {file_path}: {reason}")
