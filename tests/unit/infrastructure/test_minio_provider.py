"""Unit tests for the MinIO blob storage provider."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from minio.error import S3Error

from src.commons.infrastructure.blob import BlobNotFoundError
from src.commons.infrastructure.blob.base import CompletedPart


def _s3_error(code: str) -> S3Error:
    return S3Error(
        code=code,
        message=code,
        resource="resource",
        request_id="request-id",
        host_id="host-id",
        response=MagicMock(),
    )


@pytest.fixture
def mock_minio():
    with patch(
        "src.commons.infrastructure.blob.minio_provider.Minio"
    ) as mock_minio_class:
        client = MagicMock()
        mock_minio_class.return_value = client
        yield client


@pytest.fixture
def storage(mock_minio):
    from src.commons.infrastructure.blob.minio_provider import MinioBlobStorage

    return MinioBlobStorage(
        endpoint="localhost:9000", access_key="key", secret_key="secret"
    )


class TestMinioBlobStorage:
    """Tests for the S3 calls behind the upload protocol."""

    async def test_presigned_put(self, storage, mock_minio):
        mock_minio.presigned_put_object.return_value = "http://signed/put"

        url = await storage.generate_presigned_url(
            "temp", "u1/abc/source.mp4", expiry_seconds=300, method="PUT"
        )

        assert url == "http://signed/put"
        mock_minio.presigned_put_object.assert_called_once_with(
            "temp", "u1/abc/source.mp4", timedelta(seconds=300)
        )

    async def test_presigned_get(self, storage, mock_minio):
        mock_minio.presigned_get_object.return_value = "http://signed/get"

        assert await storage.generate_presigned_url("media", "k") == "http://signed/get"

    async def test_create_multipart_upload(self, storage, mock_minio):
        mock_minio._create_multipart_upload.return_value = "upload-1"

        upload_id = await storage.create_multipart_upload("temp", "k", "video/mp4")

        assert upload_id == "upload-1"
        mock_minio._create_multipart_upload.assert_called_once_with(
            "temp", "k", {"Content-Type": "video/mp4"}
        )

    async def test_presigned_part_url_scopes_part(self, storage, mock_minio):
        mock_minio.get_presigned_url.return_value = "http://signed/part"

        url = await storage.generate_presigned_part_url("temp", "k", "upload-1", 3)

        assert url == "http://signed/part"
        args, kwargs = mock_minio.get_presigned_url.call_args
        assert args == ("PUT", "temp", "k")
        assert kwargs["extra_query_params"] == {
            "uploadId": "upload-1",
            "partNumber": "3",
        }

    async def test_complete_multipart_upload(self, storage, mock_minio):
        mock_minio._complete_multipart_upload.return_value = MagicMock(etag="final")

        etag = await storage.complete_multipart_upload(
            "temp",
            "k",
            "upload-1",
            [CompletedPart(1, "e1"), CompletedPart(2, "e2")],
        )

        assert etag == "final"
        parts = mock_minio._complete_multipart_upload.call_args.args[3]
        assert [(p.part_number, p.etag) for p in parts] == [(1, "e1"), (2, "e2")]

    async def test_abort_tolerates_missing_upload(self, storage, mock_minio):
        mock_minio._abort_multipart_upload.side_effect = _s3_error("NoSuchUpload")

        await storage.abort_multipart_upload("temp", "k", "upload-1")

    async def test_abort_propagates_other_errors(self, storage, mock_minio):
        mock_minio._abort_multipart_upload.side_effect = _s3_error("AccessDenied")

        with pytest.raises(S3Error):
            await storage.abort_multipart_upload("temp", "k", "upload-1")

    async def test_get_metadata_missing(self, storage, mock_minio):
        mock_minio.stat_object.side_effect = _s3_error("NoSuchKey")

        with pytest.raises(BlobNotFoundError):
            await storage.get_metadata("temp", "k")

    async def test_copy_then_stat(self, storage, mock_minio):
        mock_minio.stat_object.return_value = MagicMock(
            size=42, content_type="video/mp4", last_modified=None, etag="e"
        )

        metadata = await storage.copy("temp", "a", "media", "b")

        target_bucket, target_key, sources = mock_minio.compose_object.call_args.args
        assert (target_bucket, target_key) == ("media", "b")
        assert len(sources) == 1
        assert metadata.size_bytes == 42
        assert metadata.path == "b"

    async def test_copy_missing_source(self, storage, mock_minio):
        mock_minio.compose_object.side_effect = _s3_error("NoSuchKey")

        with pytest.raises(BlobNotFoundError) as exc_info:
            await storage.copy("temp", "a", "media", "b")
        assert exc_info.value.path == "a"

    async def test_ensure_bucket(self, storage, mock_minio):
        mock_minio.bucket_exists.return_value = False

        assert await storage.ensure_bucket("temp") is True
        mock_minio.make_bucket.assert_called_once_with("temp")
