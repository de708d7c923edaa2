"""Object key layout for temporary and permanent upload namespaces."""

import posixpath
import re
from uuid import uuid4

from src.domain.exceptions import InvalidVideoKeyException
from src.domain.models.upload import AssetType, ResourceRef

_EXTENSION_PATTERN = re.compile(r"^\.[a-z0-9]{1,10}$")

SOURCE_BASENAME = "source"

# Fallback extensions when the client sends no filename.
_MIME_EXTENSIONS = {
    "video/mp4": ".mp4",
    "video/quicktime": ".mov",
    "video/webm": ".webm",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "application/pdf": ".pdf",
    "text/plain": ".txt",
    "application/zip": ".zip",
}


def file_extension(filename: str | None, mime_type: str) -> str:
    """Pick a safe lowercase extension from the filename, else from the MIME type."""
    if filename:
        ext = posixpath.splitext(filename)[1].lower()
        if _EXTENSION_PATTERN.match(ext):
            return ext
    return _MIME_EXTENSIONS.get(mime_type.lower(), "")


def temp_object_key(owner_id: str, intent_id: str, extension: str) -> str:
    """Key of an in-flight upload: ``{owner}/{intent}/source{.ext}``."""
    return f"{owner_id}/{intent_id}/{SOURCE_BASENAME}{extension}"


def permanent_object_key(
    owner_id: str,
    resource: ResourceRef,
    asset_type: AssetType,
    extension: str,
    unique_id: str | None = None,
) -> str:
    """Key of a finalized asset.

    Layout:
    ``{owner}/{resource kind}/{resource id}/{asset type}/{unique}/source{.ext}``.
    The unique segment is fresh per call, so two finalizes never collide.
    """
    unique = unique_id or uuid4().hex
    return (
        f"{owner_id}/{resource.kind}/{resource.id}/"
        f"{asset_type.value}/{unique}/{SOURCE_BASENAME}{extension}"
    )


def extract_video_id(object_key: str, marker: str) -> str:
    """Return the path segment that follows the last ``marker`` in ``object_key``.

    Owner and resource segments come first in the permanent layout and
    may equal the marker themselves; the asset type segment is always the
    last occurrence, so the unique segment after it is the video id.

    Raises:
        InvalidVideoKeyException: If the marker is missing or is the last segment.
    """
    segments = object_key.strip("/").split("/")
    if marker not in segments:
        raise InvalidVideoKeyException(object_key, marker)

    index = len(segments) - 1 - segments[::-1].index(marker)
    if index + 1 >= len(segments) or not segments[index + 1]:
        raise InvalidVideoKeyException(object_key, marker)
    return segments[index + 1]


def has_extension(object_key: str, extensions: list[str]) -> bool:
    """Case-insensitive check of the key's extension against an accept list."""
    lowered = object_key.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)
