"""HTTP client for the upload API, plus the end-to-end upload helper."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, assert_never

import httpx
from pydantic import TypeAdapter

from src.application.dtos.uploads import (
    CompleteMultipartResponse,
    FinalizeUploadResponse,
    MultipartPresignResponse,
    MultipartSessionResponse,
    PresignUploadRequest,
    PresignUploadResponse,
    SignPartResponse,
    SimplePresignResponse,
    UploadedPart,
)
from src.client.state import PartStateStore
from src.client.uploader import ChunkUploader, MultipartSession, UploadOutcome
from src.commons.telemetry import get_logger

logger = get_logger(__name__)

_presign_adapter: TypeAdapter[SimplePresignResponse | MultipartPresignResponse] = (
    TypeAdapter(PresignUploadResponse)
)


class UploadApiError(Exception):
    """The upload API answered with an error envelope."""

    def __init__(self, status_code: int, code: str, message: str) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        super().__init__(f"[{status_code}] {code}: {message}")


@dataclass(frozen=True)
class UploadFileResult:
    """Where an upload_file call got to.

    ``finalized`` is None when a multipart upload paused; resume it with
    ``resume_file`` and the same ``intent_id``.
    """

    intent_id: str
    outcome: UploadOutcome
    finalized: FinalizeUploadResponse | None = None


class UploadApiClient:
    """Calls presign, the multipart companion calls and finalize.

    Identifies the caller with the ``X-User-Id`` header.
    """

    def __init__(
        self,
        base_url: str,
        user_id: str,
        state_store: PartStateStore,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        concurrency: int = 4,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root including the version prefix, e.g.
                ``https://api.example.com/v1``.
            user_id: Caller identity.
            state_store: Where multipart progress is persisted.
            http_client: Shared client for API and storage calls.
            timeout: Request timeout when the client is created here.
            concurrency: Parts in flight during multipart uploads.
        """
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._base_url = base_url.rstrip("/")
        self._headers = {"X-User-Id": user_id}
        self._state = state_store
        self._uploader = ChunkUploader(
            self, state_store, http_client=self._http, concurrency=concurrency
        )

    async def close(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _request(
        self, method: str, path: str, json: dict[str, Any] | None = None
    ) -> Any:
        response = await self._http.request(
            method, f"{self._base_url}{path}", json=json, headers=self._headers
        )
        if response.is_success:
            return response.json() if response.content else None

        code, message = "HTTP_ERROR", response.text
        try:
            error = response.json().get("error") or {}
            code = error.get("code", code)
            message = error.get("message", message)
        except ValueError:
            pass
        raise UploadApiError(response.status_code, code, message)

    async def presign(
        self, request: PresignUploadRequest
    ) -> SimplePresignResponse | MultipartPresignResponse:
        data = await self._request(
            "POST", "/uploads/presign", request.model_dump(mode="json")
        )
        return _presign_adapter.validate_python(data)

    async def init_multipart(self, intent_id: str) -> MultipartSessionResponse:
        data = await self._request("POST", f"/uploads/{intent_id}/multipart")
        return MultipartSessionResponse.model_validate(data)

    async def sign_part(self, intent_id: str, upload_id: str, part_number: int) -> str:
        data = await self._request(
            "POST",
            f"/uploads/{intent_id}/multipart/parts/{part_number}",
            {"upload_id": upload_id},
        )
        return SignPartResponse.model_validate(data).url

    async def complete_multipart(
        self, intent_id: str, upload_id: str, parts: list[UploadedPart]
    ) -> CompleteMultipartResponse:
        data = await self._request(
            "POST",
            f"/uploads/{intent_id}/multipart/complete",
            {
                "upload_id": upload_id,
                "parts": [part.model_dump() for part in parts],
            },
        )
        return CompleteMultipartResponse.model_validate(data)

    async def abort_multipart(self, intent_id: str, upload_id: str) -> None:
        await self._request(
            "POST", f"/uploads/{intent_id}/multipart/abort", {"upload_id": upload_id}
        )

    async def finalize(self, intent_id: str) -> FinalizeUploadResponse:
        data = await self._request("POST", f"/uploads/{intent_id}/finalize")
        return FinalizeUploadResponse.model_validate(data)

    async def upload_file(
        self,
        path: Path,
        request: PresignUploadRequest,
        is_paused: Callable[[], bool] = lambda: False,
        on_progress: Callable[[float], None] | None = None,
    ) -> UploadFileResult:
        """Presign, send the bytes the way the server chose, then finalize.

        Args:
            path: Local file; its size should match ``request.size_bytes``.
            request: Declared asset type, MIME type and size.
            is_paused: Pause predicate for multipart uploads.
            on_progress: Cumulative percentage callback.

        Returns:
            The intent, how the upload ended and, if finished, where it lives.
        """
        presigned = await self.presign(request)

        if isinstance(presigned, SimplePresignResponse):
            await self._put_simple(path, presigned.upload_url, request.mime_type)
            if on_progress is not None:
                on_progress(100.0)
            return UploadFileResult(
                intent_id=presigned.intent_id,
                outcome=UploadOutcome.COMPLETED,
                finalized=await self.finalize(presigned.intent_id),
            )
        if isinstance(presigned, MultipartPresignResponse):
            return await self.resume_file(
                path, presigned.intent_id, is_paused, on_progress
            )
        assert_never(presigned)

    async def resume_file(
        self,
        path: Path,
        intent_id: str,
        is_paused: Callable[[], bool] = lambda: False,
        on_progress: Callable[[float], None] | None = None,
    ) -> UploadFileResult:
        """Open (or reopen) the multipart session and upload what is missing.

        If an earlier call assembled the parts but failed to finalize, no
        parts are sent again; only finalize is retried.
        """
        opened = await self.init_multipart(intent_id)
        if opened.completed:
            self._state.clear(intent_id)
            if on_progress is not None:
                on_progress(100.0)
            return UploadFileResult(
                intent_id=intent_id,
                outcome=UploadOutcome.COMPLETED,
                finalized=await self.finalize(intent_id),
            )

        session = MultipartSession(
            intent_id=opened.intent_id,
            upload_id=opened.upload_id,
            part_size=opened.part_size,
            total_parts=opened.total_parts,
        )
        outcome = await self._uploader.upload(path, session, is_paused, on_progress)
        if outcome is UploadOutcome.PAUSED:
            return UploadFileResult(intent_id=intent_id, outcome=outcome)
        return UploadFileResult(
            intent_id=intent_id,
            outcome=outcome,
            finalized=await self.finalize(intent_id),
        )

    async def _put_simple(self, path: Path, url: str, mime_type: str) -> None:
        loop = asyncio.get_event_loop()
        data = await loop.run_in_executor(None, path.read_bytes)
        response = await self._http.put(
            url, content=data, headers={"Content-Type": mime_type}
        )
        if not response.is_success:
            raise UploadApiError(
                response.status_code, "STORAGE_ERROR", "simple upload was rejected"
            )
        if not response.headers.get("ETag"):
            raise UploadApiError(
                response.status_code, "STORAGE_ERROR", "storage returned no ETag"
            )
        logger.info("Simple upload stored", extra={"size_bytes": len(data)})
