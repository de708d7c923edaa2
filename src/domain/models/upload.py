"""Upload intent domain model."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field


class AssetType(str, Enum):
    """Category of an uploaded asset, used for allow-lists and key layout."""

    VIDEO = "video"
    IMAGE = "image"
    DOCUMENT = "document"


class UploadMode(str, Enum):
    """How the client sends the bytes to storage."""

    SIMPLE = "simple"  # One signed PUT
    MULTIPART = "multipart"  # Per-part signed PUTs assembled by storage


class ResourceRef(BaseModel):
    """What the upload belongs to, e.g. ``lesson-contents/42``."""

    kind: str = Field(min_length=1, pattern=r"^[A-Za-z0-9_-]+$")
    id: str = Field(min_length=1, pattern=r"^[A-Za-z0-9_-]+$")


class UploadIntent(BaseModel):
    """A pending upload authorized by presign and consumed by finalize.

    Stored with a short TTL. Multipart intents additionally carry the
    storage upload session once the client opens it.
    """

    id: str = Field(
        default_factory=lambda: uuid4().hex,
        description="Opaque intent identifier",
    )
    owner_id: str = Field(min_length=1, description="Caller that may finalize")
    object_key: str = Field(description="Key in the temporary namespace")
    declared_size_bytes: int = Field(gt=0)
    declared_mime: str
    asset_type: AssetType
    resource: ResourceRef
    mode: UploadMode
    file_extension: str = Field(default="", description="Lowercase, with dot")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime

    # Multipart session, set by init_multipart
    upload_id: str | None = None
    part_size: int | None = None
    total_parts: int | None = None
    multipart_completed: bool = False

    @classmethod
    def create(
        cls,
        *,
        owner_id: str,
        object_key: str,
        declared_size_bytes: int,
        declared_mime: str,
        asset_type: AssetType,
        resource: ResourceRef,
        mode: UploadMode,
        ttl_seconds: int,
        file_extension: str = "",
        intent_id: str | None = None,
    ) -> Self:
        """Build a fresh intent expiring ``ttl_seconds`` from now."""
        now = datetime.now(UTC)
        return cls(
            id=intent_id or uuid4().hex,
            owner_id=owner_id,
            object_key=object_key,
            declared_size_bytes=declared_size_bytes,
            declared_mime=declared_mime,
            asset_type=asset_type,
            resource=resource,
            mode=mode,
            file_extension=file_extension,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether the intent's TTL has elapsed."""
        return (now or datetime.now(UTC)) >= self.expires_at

    def is_owned_by(self, caller_id: str) -> bool:
        return self.owner_id == caller_id

    @property
    def has_multipart_session(self) -> bool:
        return self.upload_id is not None

    def with_multipart_session(
        self, upload_id: str, part_size: int, total_parts: int
    ) -> Self:
        """Create a copy carrying the opened multipart session."""
        return self.model_copy(
            update={
                "upload_id": upload_id,
                "part_size": part_size,
                "total_parts": total_parts,
            }
        )

    def with_completed_multipart(self) -> Self:
        """Create a copy noting that storage assembled the parts."""
        return self.model_copy(update={"multipart_completed": True})

    def touched(self, ttl_seconds: int) -> Self:
        """Create a copy whose expiry slides to ``ttl_seconds`` from now."""
        return self.model_copy(
            update={"expires_at": datetime.now(UTC) + timedelta(seconds=ttl_seconds)}
        )
