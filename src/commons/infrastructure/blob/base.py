"""Abstract base class for blob storage operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    path: str
    size_bytes: int
    content_type: str
    created_at: datetime
    etag: str


@dataclass(frozen=True)
class CompletedPart:
    """One uploaded part of a multipart upload."""

    part_number: int
    etag: str


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageBase(ABC):
    """Abstract base class for blob storage operations.

    Covers what the upload protocol needs: presigned single and per-part
    PUT URLs, the multipart session lifecycle, server-side copy, and file
    transfer for the transcode task.
    """

    @abstractmethod
    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        """Upload a local file.

        Args:
            bucket: Target bucket name.
            path: Path within the bucket.
            local_path: File to read.
            content_type: MIME type of the content.

        Returns:
            Metadata of the uploaded blob.
        """

    @abstractmethod
    async def download_to_file(self, bucket: str, path: str, local_path: Path) -> None:
        """Download a blob to a local file without buffering it in memory.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def delete(self, bucket: str, path: str) -> None:
        """Delete a blob. Deleting a missing blob is not an error."""

    @abstractmethod
    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading.

        Raises:
            BlobNotFoundError: If blob doesn't exist.
        """

    @abstractmethod
    async def copy(
        self,
        source_bucket: str,
        source_path: str,
        target_bucket: str,
        target_path: str,
    ) -> BlobMetadata:
        """Server-side copy of one object to another key.

        Args:
            source_bucket: Bucket of the existing object.
            source_path: Key of the existing object.
            target_bucket: Destination bucket.
            target_path: Destination key.

        Returns:
            Metadata of the new object.

        Raises:
            BlobNotFoundError: If the source doesn't exist.
        """

    @abstractmethod
    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
        method: str = "GET",
    ) -> str:
        """Generate a presigned URL for direct access.

        Args:
            bucket: Bucket name.
            path: Path within the bucket.
            expiry_seconds: URL validity duration.
            method: HTTP method (GET or PUT).

        Returns:
            Presigned URL string.
        """

    @abstractmethod
    async def create_multipart_upload(
        self,
        bucket: str,
        path: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Open a multipart upload session.

        Returns:
            The storage upload id.
        """

    @abstractmethod
    async def generate_presigned_part_url(
        self,
        bucket: str,
        path: str,
        upload_id: str,
        part_number: int,
        expiry_seconds: int = 300,
    ) -> str:
        """Presign a PUT for exactly one part of a multipart upload."""

    @abstractmethod
    async def complete_multipart_upload(
        self,
        bucket: str,
        path: str,
        upload_id: str,
        parts: list[CompletedPart],
    ) -> str:
        """Assemble the uploaded parts into the final object.

        Args:
            bucket: Bucket name.
            path: Object key.
            upload_id: Session returned by create_multipart_upload.
            parts: Every part, sorted by part number.

        Returns:
            ETag of the assembled object.
        """

    @abstractmethod
    async def abort_multipart_upload(
        self, bucket: str, path: str, upload_id: str
    ) -> None:
        """Abort a multipart session and drop its uploaded parts."""

    @abstractmethod
    async def ensure_bucket(self, bucket: str) -> bool:
        """Create the bucket if missing.

        Returns:
            True if created, False if it already existed.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """
