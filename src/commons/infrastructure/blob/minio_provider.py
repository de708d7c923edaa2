"""MinIO implementation of blob storage."""

import asyncio
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

from minio import Minio
from minio.commonconfig import ComposeSource
from minio.datatypes import Part
from minio.error import S3Error

from src.commons.infrastructure.blob.base import (
    BlobMetadata,
    BlobStorageBase,
    CompletedPart,
    HealthStatus,
)

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})


class BlobNotFoundError(Exception):
    """Raised when a blob is not found."""

    def __init__(self, bucket: str, path: str) -> None:
        self.bucket = bucket
        self.path = path
        super().__init__(f"Blob not found: {bucket}/{path}")


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of blob storage.

    Works with both MinIO (local development) and AWS S3 (production).
    The multipart session calls go through the SDK's low-level S3 API
    methods, since the high-level client only exposes streamed uploads.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint

    async def upload_file(
        self,
        bucket: str,
        path: str,
        local_path: Path,
        content_type: str = "application/octet-stream",
    ) -> BlobMetadata:
        """Upload a local file."""
        loop = asyncio.get_event_loop()

        def _upload() -> None:
            self._client.fput_object(
                bucket_name=bucket,
                object_name=path,
                file_path=str(local_path),
                content_type=content_type,
            )

        await loop.run_in_executor(None, _upload)
        return await self.get_metadata(bucket, path)

    async def download_to_file(self, bucket: str, path: str, local_path: Path) -> None:
        """Download a blob straight to disk."""
        loop = asyncio.get_event_loop()

        def _download() -> None:
            try:
                self._client.fget_object(bucket, path, str(local_path))
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    raise BlobNotFoundError(bucket, path) from e
                raise

        await loop.run_in_executor(None, _download)

    async def delete(self, bucket: str, path: str) -> None:
        """Delete a blob from storage."""
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, self._client.remove_object, bucket, path)

    async def get_metadata(self, bucket: str, path: str) -> BlobMetadata:
        """Get blob metadata without downloading."""
        loop = asyncio.get_event_loop()

        def _stat() -> BlobMetadata:
            try:
                stat = self._client.stat_object(bucket, path)
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    raise BlobNotFoundError(bucket, path) from e
                raise
            return BlobMetadata(
                path=path,
                size_bytes=stat.size or 0,
                content_type=stat.content_type or "application/octet-stream",
                created_at=stat.last_modified or datetime.now(UTC),
                etag=stat.etag or "",
            )

        return await loop.run_in_executor(None, _stat)

    async def copy(
        self,
        source_bucket: str,
        source_path: str,
        target_bucket: str,
        target_path: str,
    ) -> BlobMetadata:
        """Server-side copy.

        compose_object falls back to a plain copy for small sources and
        switches to part copies above the 5 GiB single-copy limit.
        """
        loop = asyncio.get_event_loop()

        def _copy() -> None:
            try:
                self._client.compose_object(
                    target_bucket,
                    target_path,
                    [ComposeSource(source_bucket, source_path)],
                )
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    raise BlobNotFoundError(source_bucket, source_path) from e
                raise

        await loop.run_in_executor(None, _copy)
        return await self.get_metadata(target_bucket, target_path)

    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
        method: str = "GET",
    ) -> str:
        """Generate a presigned URL for direct access."""
        loop = asyncio.get_event_loop()
        expires = timedelta(seconds=expiry_seconds)

        def _presign() -> str:
            if method.upper() == "PUT":
                return str(self._client.presigned_put_object(bucket, path, expires))
            return str(self._client.presigned_get_object(bucket, path, expires))

        return await loop.run_in_executor(None, _presign)

    async def create_multipart_upload(
        self,
        bucket: str,
        path: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Open a multipart upload session."""
        loop = asyncio.get_event_loop()

        def _create() -> str:
            upload_id = self._client._create_multipart_upload(  # noqa: SLF001
                bucket, path, {"Content-Type": content_type}
            )
            return str(upload_id)

        return await loop.run_in_executor(None, _create)

    async def generate_presigned_part_url(
        self,
        bucket: str,
        path: str,
        upload_id: str,
        part_number: int,
        expiry_seconds: int = 300,
    ) -> str:
        """Presign an UploadPart request for one part number."""
        loop = asyncio.get_event_loop()

        def _presign() -> str:
            url = self._client.get_presigned_url(
                "PUT",
                bucket,
                path,
                expires=timedelta(seconds=expiry_seconds),
                extra_query_params={
                    "uploadId": upload_id,
                    "partNumber": str(part_number),
                },
            )
            return str(url)

        return await loop.run_in_executor(None, _presign)

    async def complete_multipart_upload(
        self,
        bucket: str,
        path: str,
        upload_id: str,
        parts: list[CompletedPart],
    ) -> str:
        """Assemble the uploaded parts into the final object."""
        loop = asyncio.get_event_loop()
        sdk_parts = [Part(part.part_number, part.etag) for part in parts]

        def _complete() -> str:
            result = self._client._complete_multipart_upload(  # noqa: SLF001
                bucket, path, upload_id, sdk_parts
            )
            return str(result.etag or "")

        return await loop.run_in_executor(None, _complete)

    async def abort_multipart_upload(
        self, bucket: str, path: str, upload_id: str
    ) -> None:
        """Abort a multipart session."""
        loop = asyncio.get_event_loop()

        def _abort() -> None:
            try:
                self._client._abort_multipart_upload(  # noqa: SLF001
                    bucket, path, upload_id
                )
            except S3Error as e:
                # Already completed or aborted.
                if e.code != "NoSuchUpload":
                    raise

        await loop.run_in_executor(None, _abort)

    async def ensure_bucket(self, bucket: str) -> bool:
        """Create the bucket if it does not exist."""
        loop = asyncio.get_event_loop()

        def _ensure() -> bool:
            if self._client.bucket_exists(bucket):
                return False
            self._client.make_bucket(bucket)
            return True

        return await loop.run_in_executor(None, _ensure)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_event_loop()
            await loop.run_in_executor(None, self._client.list_buckets)
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MinIO is healthy",
                details={"endpoint": self._endpoint},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
