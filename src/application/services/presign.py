"""Upload presign service: intents, signed URLs and multipart sessions."""

from collections import Counter

from src.application.dtos.uploads import (
    CompleteMultipartResponse,
    MultipartPresignResponse,
    MultipartSessionResponse,
    PresignUploadRequest,
    PresignUploadResponse,
    SignPartResponse,
    SimplePresignResponse,
    UploadedPart,
)
from src.commons.infrastructure.blob.base import BlobStorageBase, CompletedPart
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    IntentNotFoundException,
    IntentOwnershipException,
    UploadIncompleteException,
    UploadValidationException,
)
from src.domain.models.upload import ResourceRef, UploadIntent, UploadMode
from src.domain.value_objects.object_key import file_extension, temp_object_key
from src.domain.value_objects.part_plan import PartPlan
from src.infrastructure.intents.base import IntentStoreBase


class PresignService:
    """Authorizes uploads straight to the temporary bucket.

    Each presign call creates one independent intent; retries are not
    deduplicated because the declared size and type are unverified.
    Multipart companion calls slide the intent's expiry forward so a
    long upload stays alive while each idle window stays short.
    """

    def __init__(
        self,
        intent_store: IntentStoreBase,
        blob_storage: BlobStorageBase,
        settings: Settings,
    ) -> None:
        """Initialize presign service with dependencies.

        Args:
            intent_store: Store for pending upload intents.
            blob_storage: Object storage issuing signed URLs.
            settings: Application settings.
        """
        self._intents = intent_store
        self._blob = blob_storage
        self._uploads = settings.uploads
        self._temp_bucket = settings.blob_storage.buckets.temp
        self._logger = get_logger(__name__)

    def select_mode(self, size_bytes: int) -> UploadMode:
        """Simple below the multipart threshold, multipart at or above it."""
        if size_bytes < self._uploads.multipart_threshold_bytes:
            return UploadMode.SIMPLE
        return UploadMode.MULTIPART

    def plan_parts(self, size_bytes: int) -> PartPlan:
        return PartPlan.for_size(
            size_bytes,
            min_part_size=self._uploads.min_part_size_bytes,
            max_parts=self._uploads.max_parts,
        )

    async def presign(
        self, owner_id: str, request: PresignUploadRequest
    ) -> PresignUploadResponse:
        """Validate the declared file, create an intent and sign the upload.

        Args:
            owner_id: Caller identity; only this caller may finalize.
            request: Declared asset type, MIME type and size.

        Returns:
            A simple (single PUT) or multipart presign response.

        Raises:
            UploadValidationException: If the declaration is not allowed.
        """
        self._validate(request)

        mode = self.select_mode(request.size_bytes)
        extension = file_extension(request.filename, request.mime_type)
        resource = request.resource or ResourceRef(kind="users", id=owner_id)

        intent = UploadIntent.create(
            owner_id=owner_id,
            object_key="",
            declared_size_bytes=request.size_bytes,
            declared_mime=request.mime_type,
            asset_type=request.asset_type,
            resource=resource,
            mode=mode,
            ttl_seconds=self._uploads.intent_ttl_seconds,
            file_extension=extension,
        )
        intent = intent.model_copy(
            update={"object_key": temp_object_key(owner_id, intent.id, extension)}
        )
        await self._intents.save(intent)

        self._logger.info(
            "Upload intent created",
            extra={
                "intent_id": intent.id,
                "owner_id": owner_id,
                "mode": mode.value,
                "asset_type": request.asset_type.value,
                "size_bytes": request.size_bytes,
            },
        )

        if mode is UploadMode.MULTIPART:
            return MultipartPresignResponse(
                intent_id=intent.id,
                raw_key=intent.object_key,
                expires_at=intent.expires_at,
            )

        upload_url = await self._blob.generate_presigned_url(
            self._temp_bucket,
            intent.object_key,
            expiry_seconds=self._uploads.intent_ttl_seconds,
            method="PUT",
        )
        return SimplePresignResponse(
            intent_id=intent.id,
            upload_url=upload_url,
            raw_key=intent.object_key,
            version=request.current_version + 1,
            expires_at=intent.expires_at,
        )

    async def init_multipart(
        self, owner_id: str, intent_id: str
    ) -> MultipartSessionResponse:
        """Open the storage multipart session for a multipart intent.

        Calling it again returns the already-open session, so a resumed
        client keeps its uploaded parts. Once the parts were assembled the
        response says so and the client only needs to finalize.
        """
        intent = await self._load_owned(owner_id, intent_id)
        if intent.mode is not UploadMode.MULTIPART:
            raise UploadValidationException(
                "intent was presigned for a simple upload", field="mode"
            )

        if intent.has_multipart_session:
            intent = intent.touched(self._uploads.intent_ttl_seconds)
        else:
            plan = self.plan_parts(intent.declared_size_bytes)
            upload_id = await self._blob.create_multipart_upload(
                self._temp_bucket, intent.object_key, intent.declared_mime
            )
            intent = intent.with_multipart_session(
                upload_id, plan.part_size, plan.total_parts
            ).touched(self._uploads.intent_ttl_seconds)
            self._logger.info(
                "Multipart session opened",
                extra={
                    "intent_id": intent.id,
                    "part_size": plan.part_size,
                    "total_parts": plan.total_parts,
                },
            )
        await self._intents.save(intent)

        return MultipartSessionResponse(
            intent_id=intent.id,
            upload_id=intent.upload_id or "",
            part_size=intent.part_size or 0,
            total_parts=intent.total_parts or 0,
            completed=intent.multipart_completed,
        )

    async def sign_part(
        self,
        owner_id: str,
        intent_id: str,
        upload_id: str,
        part_number: int,
    ) -> SignPartResponse:
        """Sign a PUT for exactly one part of the open session."""
        intent = await self._load_session(owner_id, intent_id, upload_id)
        total_parts = intent.total_parts or 0
        if not 1 <= part_number <= total_parts:
            raise UploadValidationException(
                f"part number {part_number} outside 1..{total_parts}",
                field="part_number",
            )

        expiry = self._uploads.part_url_expiry_seconds
        url = await self._blob.generate_presigned_part_url(
            self._temp_bucket,
            intent.object_key,
            upload_id,
            part_number,
            expiry_seconds=expiry,
        )
        await self._intents.save(intent.touched(self._uploads.intent_ttl_seconds))
        return SignPartResponse(
            part_number=part_number, url=url, expires_in_seconds=expiry
        )

    async def complete_multipart(
        self,
        owner_id: str,
        intent_id: str,
        upload_id: str,
        parts: list[UploadedPart],
    ) -> CompleteMultipartResponse:
        """Assemble the parts once every part number is listed exactly once.

        Raises:
            UploadValidationException: Duplicate, missing or out-of-range parts.
        """
        intent = await self._load_session(owner_id, intent_id, upload_id)
        ordered = self._validate_parts(parts, intent.total_parts or 0)

        etag = await self._blob.complete_multipart_upload(
            self._temp_bucket,
            intent.object_key,
            upload_id,
            [CompletedPart(part_number=p.part_number, etag=p.etag) for p in ordered],
        )
        await self._intents.save(
            intent.with_completed_multipart().touched(self._uploads.intent_ttl_seconds)
        )

        self._logger.info(
            "Multipart upload completed",
            extra={"intent_id": intent_id, "total_parts": len(ordered)},
        )
        return CompleteMultipartResponse(intent_id=intent_id, etag=etag)

    async def abort_multipart(
        self, owner_id: str, intent_id: str, upload_id: str
    ) -> None:
        """Abort the storage session and discard the intent."""
        intent = await self._load_session(owner_id, intent_id, upload_id)
        await self._blob.abort_multipart_upload(
            self._temp_bucket, intent.object_key, upload_id
        )
        await self._intents.delete(intent_id)
        self._logger.info("Multipart upload aborted", extra={"intent_id": intent_id})

    def _validate(self, request: PresignUploadRequest) -> None:
        policy = self._uploads.policies.get(request.asset_type.value)
        if policy is None:
            raise UploadValidationException(
                f"asset type '{request.asset_type.value}' is not accepted",
                field="asset_type",
            )
        if not policy.allows_mime(request.mime_type):
            raise UploadValidationException(
                f"MIME type '{request.mime_type}' is not allowed for "
                f"{request.asset_type.value}",
                field="mime_type",
            )
        if request.size_bytes > policy.max_size_bytes:
            raise UploadValidationException(
                f"size {request.size_bytes} exceeds the "
                f"{policy.max_size_bytes} byte limit",
                field="size_bytes",
            )

    @staticmethod
    def _validate_parts(
        parts: list[UploadedPart], total_parts: int
    ) -> list[UploadedPart]:
        counts = Counter(part.part_number for part in parts)
        numbers = set(counts)
        duplicates = sorted(n for n, seen in counts.items() if seen > 1)
        if duplicates:
            raise UploadValidationException(
                f"parts listed more than once: {duplicates}", field="parts"
            )
        out_of_range = sorted(n for n in numbers if n > total_parts)
        if out_of_range:
            raise UploadValidationException(
                f"parts outside 1..{total_parts}: {out_of_range}", field="parts"
            )
        missing = sorted(set(range(1, total_parts + 1)) - numbers)
        if missing:
            raise UploadValidationException(
                f"parts missing: {missing}", field="parts"
            )
        return sorted(parts, key=lambda part: part.part_number)

    async def _load_owned(self, owner_id: str, intent_id: str) -> UploadIntent:
        intent = await self._intents.get(intent_id)
        if intent is None:
            raise IntentNotFoundException(intent_id)
        if not intent.is_owned_by(owner_id):
            raise IntentOwnershipException(intent_id, owner_id)
        return intent

    async def _load_session(
        self, owner_id: str, intent_id: str, upload_id: str
    ) -> UploadIntent:
        intent = await self._load_owned(owner_id, intent_id)
        if not intent.has_multipart_session:
            raise UploadIncompleteException(intent_id, "multipart session not opened")
        if intent.upload_id != upload_id:
            raise UploadIncompleteException(intent_id, "upload id does not match")
        return intent
