"""DTOs for the upload intent, multipart and finalize operations."""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from src.domain.models.upload import AssetType, ResourceRef


class PresignUploadRequest(BaseModel):
    """Declared file the caller wants to upload."""

    asset_type: AssetType = Field(description="Category checked against the allow-list")
    mime_type: str = Field(min_length=3, description="Declared MIME type")
    size_bytes: int = Field(gt=0, description="Declared size in bytes")
    filename: str | None = Field(
        default=None,
        max_length=255,
        description="Original filename, used only for its extension",
    )
    resource: ResourceRef | None = Field(
        default=None,
        description="Owning resource; defaults to the caller's own namespace",
    )
    current_version: int = Field(
        default=0,
        ge=0,
        description="Latest version already stored for this resource",
    )


class SimplePresignResponse(BaseModel):
    """Single signed PUT for small files."""

    mode: Literal["simple"] = "simple"
    intent_id: str
    upload_url: str = Field(
        description="Signed PUT URL; send the matching Content-Type"
    )
    raw_key: str = Field(description="Temporary object key")
    version: int
    expires_at: datetime


class MultipartPresignResponse(BaseModel):
    """Large files: open a multipart session next."""

    mode: Literal["multipart"] = "multipart"
    intent_id: str
    raw_key: str = Field(description="Temporary object key")
    expires_at: datetime


PresignUploadResponse = Annotated[
    SimplePresignResponse | MultipartPresignResponse,
    Field(discriminator="mode"),
]


class MultipartSessionResponse(BaseModel):
    """An opened multipart session and its part layout."""

    intent_id: str
    upload_id: str
    part_size: int = Field(description="Bytes per part; the last part may be shorter")
    total_parts: int
    completed: bool = Field(
        default=False,
        description="Parts were already assembled; only finalize remains",
    )


class SignPartRequest(BaseModel):
    """Request a signed URL for one part."""

    upload_id: str = Field(min_length=1)


class SignPartResponse(BaseModel):
    """Signed PUT URL scoped to one part number."""

    part_number: int
    url: str
    expires_in_seconds: int


class UploadedPart(BaseModel):
    """A part the client uploaded and the tag storage returned for it."""

    part_number: int = Field(ge=1)
    etag: str = Field(min_length=1)


class CompleteMultipartRequest(BaseModel):
    """Every uploaded part, in any order."""

    upload_id: str = Field(min_length=1)
    parts: list[UploadedPart] = Field(min_length=1)


class CompleteMultipartResponse(BaseModel):
    """Result of assembling the parts."""

    intent_id: str
    etag: str


class AbortMultipartRequest(BaseModel):
    """Abandon a multipart session."""

    upload_id: str = Field(min_length=1)


class FinalizeUploadResponse(BaseModel):
    """Permanent address of a finalized upload."""

    final_key: str
    url: str
