"""Unit tests for API routes."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.application.dtos.uploads import (
    CompleteMultipartResponse,
    FinalizeUploadResponse,
    MultipartPresignResponse,
    MultipartSessionResponse,
    SignPartResponse,
    SimplePresignResponse,
    UploadedPart,
)
from src.commons.infrastructure.blob import BlobNotFoundError
from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.settings.models import Settings
from src.domain.exceptions import (
    IntentNotFoundException,
    IntentOwnershipException,
    UploadIncompleteException,
    UploadValidationException,
)

INTENT_ID = "0123456789abcdef0123456789abcdef"
HEADERS = {"X-User-Id": "u1"}
EXPIRES_AT = datetime.now(UTC) + timedelta(minutes=5)


@pytest.fixture
def settings():
    """Create settings for the app."""
    return Settings()


@pytest.fixture
def mock_factory():
    """Create mock infrastructure factory with healthy stores."""
    factory = MagicMock()
    for getter in (factory.get_blob_storage, factory.get_document_db):
        component = MagicMock()
        component.health_check = AsyncMock(
            return_value=HealthStatus(healthy=True, latency_ms=1.234, message="ok")
        )
        getter.return_value = component
    return factory


@pytest.fixture
def mock_presign_service():
    """Create mock presign service."""
    return AsyncMock()


@pytest.fixture
def mock_finalize_service():
    """Create mock finalize service."""
    return AsyncMock()


@pytest.fixture
def client(settings, mock_factory, mock_presign_service, mock_finalize_service):
    """Create test client with mocked dependencies."""
    from src.api.dependencies import (
        get_finalize_service,
        get_infrastructure_factory,
        get_presign_service,
        get_settings,
    )

    with (
        patch("src.api.main.get_settings", return_value=settings),
        patch("src.api.dependencies.init_services", new_callable=AsyncMock),
        patch("src.api.dependencies.shutdown_services", new_callable=AsyncMock),
    ):
        app = create_app()
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_infrastructure_factory] = lambda: mock_factory
        app.dependency_overrides[get_presign_service] = lambda: mock_presign_service
        app.dependency_overrides[get_finalize_service] = lambda: mock_finalize_service
        yield TestClient(app, raise_server_exceptions=False)


PRESIGN_BODY = {
    "asset_type": "video",
    "mime_type": "video/mp4",
    "size_bytes": 3 * 1024 * 1024,
    "filename": "lecture.mp4",
}


class TestHealthRoutes:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        """Test basic health check."""
        response = client.get("/health")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert {c["name"] for c in data["components"]} == {
            "blob_storage",
            "document_db",
        }

    def test_health_degraded(self, client, mock_factory):
        """Test one failing store degrades the service."""
        mock_factory.get_document_db.return_value.health_check.side_effect = (
            RuntimeError("down")
        )

        response = client.get("/health")

        assert response.json()["status"] == "degraded"

    def test_liveness_check(self, client):
        """Test liveness probe."""
        response = client.get("/health/live")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"status": "ok"}

    def test_readiness_check(self, client):
        """Test readiness probe."""
        response = client.get("/health/ready")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "ready": True,
            "checks": {"blob_storage": True, "document_db": True},
        }


class TestCallerIdentity:
    """Tests for the X-User-Id requirement."""

    def test_missing_header(self, client, mock_presign_service):
        response = client.post("/v1/uploads/presign", json=PRESIGN_BODY)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        mock_presign_service.presign.assert_not_awaited()

    def test_malformed_header(self, client):
        response = client.post(
            "/v1/uploads/presign",
            json=PRESIGN_BODY,
            headers={"X-User-Id": "../admin"},
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestPresignRoutes:
    """Tests for presign and the multipart companion calls."""

    def test_presign_simple(self, client, mock_presign_service):
        mock_presign_service.presign.return_value = SimplePresignResponse(
            intent_id=INTENT_ID,
            upload_url="https://storage.local/put",
            raw_key=f"u1/{INTENT_ID}/source.mp4",
            version=1,
            expires_at=EXPIRES_AT,
        )

        response = client.post(
            "/v1/uploads/presign", json=PRESIGN_BODY, headers=HEADERS
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["mode"] == "simple"
        assert data["upload_url"] == "https://storage.local/put"
        caller_id, request = mock_presign_service.presign.await_args.args
        assert caller_id == "u1"
        assert request.size_bytes == 3 * 1024 * 1024

    def test_presign_multipart(self, client, mock_presign_service):
        mock_presign_service.presign.return_value = MultipartPresignResponse(
            intent_id=INTENT_ID,
            raw_key=f"u1/{INTENT_ID}/source.mp4",
            expires_at=EXPIRES_AT,
        )

        response = client.post(
            "/v1/uploads/presign", json=PRESIGN_BODY, headers=HEADERS
        )

        assert response.json()["mode"] == "multipart"
        assert "upload_url" not in response.json()

    def test_presign_invalid_body(self, client):
        response = client.post(
            "/v1/uploads/presign",
            json={**PRESIGN_BODY, "size_bytes": 0},
            headers=HEADERS,
        )

        assert response.status_code == 422

    def test_presign_rejected(self, client, mock_presign_service):
        mock_presign_service.presign.side_effect = UploadValidationException(
            "MIME type 'text/html' is not allowed for video", field="mime_type"
        )

        response = client.post(
            "/v1/uploads/presign", json=PRESIGN_BODY, headers=HEADERS
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"] == {"field": "mime_type"}

    def test_init_multipart(self, client, mock_presign_service):
        mock_presign_service.init_multipart.return_value = MultipartSessionResponse(
            intent_id=INTENT_ID, upload_id="up-1", part_size=5_242_880, total_parts=5
        )

        response = client.post(f"/v1/uploads/{INTENT_ID}/multipart", headers=HEADERS)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["total_parts"] == 5
        mock_presign_service.init_multipart.assert_awaited_once_with("u1", INTENT_ID)

    def test_malformed_intent_id(self, client):
        response = client.post("/v1/uploads/not-an-id/multipart", headers=HEADERS)

        assert response.status_code == 422

    def test_sign_part(self, client, mock_presign_service):
        mock_presign_service.sign_part.return_value = SignPartResponse(
            part_number=3, url="https://storage.local/part", expires_in_seconds=300
        )

        response = client.post(
            f"/v1/uploads/{INTENT_ID}/multipart/parts/3",
            json={"upload_id": "up-1"},
            headers=HEADERS,
        )

        assert response.status_code == status.HTTP_200_OK
        mock_presign_service.sign_part.assert_awaited_once_with(
            "u1", INTENT_ID, "up-1", 3
        )

    def test_sign_part_out_of_range(self, client):
        response = client.post(
            f"/v1/uploads/{INTENT_ID}/multipart/parts/0",
            json={"upload_id": "up-1"},
            headers=HEADERS,
        )

        assert response.status_code == 422

    def test_complete_multipart(self, client, mock_presign_service):
        mock_presign_service.complete_multipart.return_value = (
            CompleteMultipartResponse(intent_id=INTENT_ID, etag="final")
        )

        response = client.post(
            f"/v1/uploads/{INTENT_ID}/multipart/complete",
            json={
                "upload_id": "up-1",
                "parts": [
                    {"part_number": 2, "etag": '"b"'},
                    {"part_number": 1, "etag": '"a"'},
                ],
            },
            headers=HEADERS,
        )

        assert response.status_code == status.HTTP_200_OK
        parts = mock_presign_service.complete_multipart.await_args.args[3]
        assert parts == [
            UploadedPart(part_number=2, etag='"b"'),
            UploadedPart(part_number=1, etag='"a"'),
        ]

    def test_abort_multipart(self, client, mock_presign_service):
        response = client.post(
            f"/v1/uploads/{INTENT_ID}/multipart/abort",
            json={"upload_id": "up-1"},
            headers=HEADERS,
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        mock_presign_service.abort_multipart.assert_awaited_once_with(
            "u1", INTENT_ID, "up-1"
        )


class TestFinalizeRoutes:
    """Tests for finalize and its error mapping."""

    def test_finalize(self, client, mock_finalize_service):
        mock_finalize_service.finalize.return_value = FinalizeUploadResponse(
            final_key="u1/lessons/42/video/abc/source.mp4",
            url="https://cdn.local/u1/lessons/42/video/abc/source.mp4",
        )

        response = client.post(f"/v1/uploads/{INTENT_ID}/finalize", headers=HEADERS)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["final_key"].endswith("source.mp4")

    @pytest.mark.parametrize(
        ("error", "expected_status", "expected_code"),
        [
            (IntentNotFoundException(INTENT_ID), 404, "INTENT_NOT_FOUND"),
            (IntentOwnershipException(INTENT_ID, "u1"), 403, "FORBIDDEN"),
            (
                UploadIncompleteException(INTENT_ID, "no object was uploaded"),
                409,
                "UPLOAD_INCOMPLETE",
            ),
            (BlobNotFoundError("temp", "k"), 404, "OBJECT_NOT_FOUND"),
            (RuntimeError("boom"), 500, "INTERNAL_ERROR"),
        ],
    )
    def test_error_mapping(
        self,
        client,
        mock_finalize_service,
        error,
        expected_status,
        expected_code,
    ):
        mock_finalize_service.finalize.side_effect = error

        response = client.post(f"/v1/uploads/{INTENT_ID}/finalize", headers=HEADERS)

        assert response.status_code == expected_status
        assert response.json()["error"]["code"] == expected_code
