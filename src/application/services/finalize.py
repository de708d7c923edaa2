"""Finalize service: move a completed upload into the permanent namespace."""

from src.application.dtos.uploads import FinalizeUploadResponse
from src.commons.infrastructure.blob import BlobNotFoundError
from src.commons.infrastructure.blob.base import BlobStorageBase
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    IntentNotFoundException,
    IntentOwnershipException,
    UploadIncompleteException,
)
from src.domain.models.upload import UploadIntent
from src.domain.value_objects.object_key import permanent_object_key
from src.infrastructure.intents.base import IntentStoreBase


class FinalizeService:
    """Consumes an upload intent and publishes its object.

    The intent is claimed (atomically removed) before the temporary
    object is copied server-side to a fresh permanent key, so a second
    or concurrent finalize for the same intent fails with not found.
    A failed copy puts the intent back.
    """

    def __init__(
        self,
        intent_store: IntentStoreBase,
        blob_storage: BlobStorageBase,
        settings: Settings,
    ) -> None:
        self._intents = intent_store
        self._blob = blob_storage
        self._buckets = settings.blob_storage.buckets
        self._public_base_url = settings.blob_storage.public_base_url
        self._url_expiry = settings.blob_storage.presigned_url_expiry_seconds
        self._logger = get_logger(__name__)

    async def finalize(self, owner_id: str, intent_id: str) -> FinalizeUploadResponse:
        """Verify the uploaded object and move it to its permanent key.

        Args:
            owner_id: Caller identity; must match the intent's owner.
            intent_id: Intent returned by presign.

        Returns:
            The permanent key and a URL for reading it.

        Raises:
            IntentNotFoundException: Unknown, expired or already finalized.
            IntentOwnershipException: Caller does not own the intent.
            UploadIncompleteException: Object missing or size mismatch.
        """
        intent = await self._intents.get(intent_id)
        if intent is None:
            raise IntentNotFoundException(intent_id)
        if not intent.is_owned_by(owner_id):
            raise IntentOwnershipException(intent_id, owner_id)

        await self._verify_upload(intent)

        # Only one concurrent finalize gets past the claim.
        if await self._intents.claim(intent.id) is None:
            raise IntentNotFoundException(intent_id)

        final_key = permanent_object_key(
            intent.owner_id,
            intent.resource,
            intent.asset_type,
            intent.file_extension,
        )
        try:
            await self._blob.copy(
                self._buckets.temp,
                intent.object_key,
                self._buckets.permanent,
                final_key,
            )
        except Exception:
            # Nothing was published; hand the intent back for a retry.
            await self._intents.save(intent)
            raise
        await self._blob.delete(self._buckets.temp, intent.object_key)

        self._logger.info(
            "Upload finalized",
            extra={
                "intent_id": intent.id,
                "owner_id": owner_id,
                "final_key": final_key,
                "size_bytes": intent.declared_size_bytes,
            },
        )
        url = await self._url(final_key)
        return FinalizeUploadResponse(final_key=final_key, url=url)

    async def _verify_upload(self, intent: UploadIntent) -> None:
        try:
            metadata = await self._blob.get_metadata(
                self._buckets.temp, intent.object_key
            )
        except BlobNotFoundError:
            raise UploadIncompleteException(
                intent.id, "no object was uploaded"
            ) from None

        if metadata.size_bytes != intent.declared_size_bytes:
            raise UploadIncompleteException(
                intent.id,
                f"uploaded {metadata.size_bytes} bytes, "
                f"declared {intent.declared_size_bytes}",
            )

    async def _url(self, final_key: str) -> str:
        if self._public_base_url:
            return f"{self._public_base_url.rstrip('/')}/{final_key}"
        return await self._blob.generate_presigned_url(
            self._buckets.permanent, final_key, expiry_seconds=self._url_expiry
        )
