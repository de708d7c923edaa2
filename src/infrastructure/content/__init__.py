"""Hand-off of transcode results to the content-management service."""

from src.infrastructure.content.base import ContentCallbackBase, TranscodeResult
from src.infrastructure.content.http_callback import HttpContentCallback

__all__ = [
    "ContentCallbackBase",
    "TranscodeResult",
    "HttpContentCallback",
]
