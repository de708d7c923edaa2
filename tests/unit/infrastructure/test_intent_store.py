"""Unit tests for the document-backed upload intent store."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from src.domain.models.upload import AssetType, ResourceRef, UploadIntent, UploadMode
from src.infrastructure.intents import DocumentIntentStore


def _intent(ttl_seconds: int = 300) -> UploadIntent:
    return UploadIntent.create(
        owner_id="u1",
        object_key="u1/abc/source.mp4",
        declared_size_bytes=1_000,
        declared_mime="video/mp4",
        asset_type=AssetType.VIDEO,
        resource=ResourceRef(kind="lessons", id="42"),
        mode=UploadMode.MULTIPART,
        ttl_seconds=ttl_seconds,
        file_extension=".mp4",
    )


@pytest.fixture
def document_db():
    return AsyncMock()


@pytest.fixture
def store(document_db):
    return DocumentIntentStore(document_db, collection="upload_intents")


class TestDocumentIntentStore:
    """Tests for intent persistence and expiry filtering."""

    async def test_save_upserts_plain_values(self, store, document_db):
        intent = _intent()

        await store.save(intent)

        collection, document_id, condition, document = (
            document_db.conditional_upsert.call_args[0]
        )
        assert collection == "upload_intents"
        assert document_id == intent.id
        assert condition == {}
        assert document["asset_type"] == "video"
        assert document["mode"] == "multipart"
        assert document["resource"] == {"kind": "lessons", "id": "42"}

    async def test_get_round_trips_document(self, store, document_db):
        intent = _intent().with_multipart_session("up-1", 5_242_880, 3)
        document_db.find_by_id.return_value = store._to_document(intent)

        loaded = await store.get(intent.id)

        assert loaded == intent

    async def test_get_missing(self, store, document_db):
        document_db.find_by_id.return_value = None
        assert await store.get("missing") is None

    async def test_get_ignores_expired_document(self, store, document_db):
        intent = _intent()
        document = store._to_document(intent)
        document["expires_at"] = datetime.now(UTC) - timedelta(seconds=1)
        document_db.find_by_id.return_value = document

        assert await store.get(intent.id) is None

    async def test_get_accepts_naive_datetimes(self, store, document_db):
        intent = _intent()
        document = store._to_document(intent)
        document["created_at"] = intent.created_at.replace(tzinfo=None)
        document["expires_at"] = intent.expires_at.replace(tzinfo=None)
        document_db.find_by_id.return_value = document

        loaded = await store.get(intent.id)

        assert loaded is not None
        assert loaded.expires_at == intent.expires_at

    async def test_delete(self, store, document_db):
        document_db.delete.return_value = True
        assert await store.delete("abc") is True
        document_db.delete.assert_awaited_once_with("upload_intents", "abc")

    async def test_ensure_indexes_creates_ttl_index(self, store, document_db):
        await store.ensure_indexes()
        document_db.create_index.assert_awaited_once_with(
            "upload_intents",
            [("expires_at", 1)],
            name="expires_at_ttl",
            expire_after_seconds=0,
        )

    async def test_claim_removes_and_returns_intent(self, store, document_db):
        intent = _intent()
        document_db.find_and_delete.return_value = store._to_document(intent)

        claimed = await store.claim(intent.id)

        assert claimed == intent
        document_db.find_and_delete.assert_awaited_once_with(
            "upload_intents", intent.id
        )

    async def test_claim_lost_to_another_caller(self, store, document_db):
        document_db.find_and_delete.return_value = None
        assert await store.claim("abc") is None

    async def test_claim_ignores_expired_document(self, store, document_db):
        intent = _intent()
        document = store._to_document(intent)
        document["expires_at"] = datetime.now(UTC) - timedelta(seconds=1)
        document_db.find_and_delete.return_value = document

        assert await store.claim(intent.id) is None
