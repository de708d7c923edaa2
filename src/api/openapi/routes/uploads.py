"""Upload endpoints: presign, multipart companion calls and finalize."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from src.api.dependencies import CallerDep, FinalizeServiceDep, PresignServiceDep
from src.application.dtos.uploads import (
    AbortMultipartRequest,
    CompleteMultipartRequest,
    CompleteMultipartResponse,
    FinalizeUploadResponse,
    MultipartSessionResponse,
    PresignUploadRequest,
    PresignUploadResponse,
    SignPartRequest,
    SignPartResponse,
)

router = APIRouter()

IntentIdPath = Annotated[
    str,
    Path(pattern=r"^[a-f0-9]{32}$", description="Intent id returned by presign"),
]


@router.post(
    "/uploads/presign",
    response_model=PresignUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Authorize an upload",
    description=(
        "Validate the declared file and create an upload intent. Small files "
        "get one signed PUT URL; large files must open a multipart session."
    ),
)
async def presign_upload(
    request: PresignUploadRequest,
    caller_id: CallerDep,
    service: PresignServiceDep,
) -> PresignUploadResponse:
    """Create an upload intent."""
    return await service.presign(caller_id, request)


@router.post(
    "/uploads/{intent_id}/multipart",
    response_model=MultipartSessionResponse,
    summary="Open a multipart session",
    description="Open (or return the already open) multipart session of an intent.",
)
async def init_multipart(
    intent_id: IntentIdPath,
    caller_id: CallerDep,
    service: PresignServiceDep,
) -> MultipartSessionResponse:
    """Open the storage multipart upload."""
    return await service.init_multipart(caller_id, intent_id)


@router.post(
    "/uploads/{intent_id}/multipart/parts/{part_number}",
    response_model=SignPartResponse,
    summary="Sign one part",
    description="Get a short-lived signed PUT URL for one part number.",
)
async def sign_part(
    intent_id: IntentIdPath,
    part_number: Annotated[int, Path(ge=1, le=10_000)],
    request: SignPartRequest,
    caller_id: CallerDep,
    service: PresignServiceDep,
) -> SignPartResponse:
    """Sign a part upload."""
    return await service.sign_part(
        caller_id, intent_id, request.upload_id, part_number
    )


@router.post(
    "/uploads/{intent_id}/multipart/complete",
    response_model=CompleteMultipartResponse,
    summary="Complete a multipart upload",
    description="Assemble the parts; every part must be listed exactly once.",
)
async def complete_multipart(
    intent_id: IntentIdPath,
    request: CompleteMultipartRequest,
    caller_id: CallerDep,
    service: PresignServiceDep,
) -> CompleteMultipartResponse:
    """Complete the storage multipart upload."""
    return await service.complete_multipart(
        caller_id, intent_id, request.upload_id, request.parts
    )


@router.post(
    "/uploads/{intent_id}/multipart/abort",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Abort a multipart upload",
    description="Drop the uploaded parts and discard the intent.",
)
async def abort_multipart(
    intent_id: IntentIdPath,
    request: AbortMultipartRequest,
    caller_id: CallerDep,
    service: PresignServiceDep,
) -> None:
    """Abort the storage multipart upload."""
    await service.abort_multipart(caller_id, intent_id, request.upload_id)


@router.post(
    "/uploads/{intent_id}/finalize",
    response_model=FinalizeUploadResponse,
    summary="Finalize an upload",
    description=(
        "Move the uploaded object to permanent storage. Single use: the "
        "intent is consumed and a second call returns 404."
    ),
)
async def finalize_upload(
    intent_id: IntentIdPath,
    caller_id: CallerDep,
    service: FinalizeServiceDep,
) -> FinalizeUploadResponse:
    """Finalize an upload intent."""
    return await service.finalize(caller_id, intent_id)
