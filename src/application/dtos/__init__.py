"""Data transfer objects for API boundaries."""

from src.application.dtos.uploads import (
    AbortMultipartRequest,
    CompleteMultipartRequest,
    CompleteMultipartResponse,
    FinalizeUploadResponse,
    MultipartPresignResponse,
    MultipartSessionResponse,
    PresignUploadRequest,
    PresignUploadResponse,
    SignPartRequest,
    SignPartResponse,
    SimplePresignResponse,
    UploadedPart,
)

__all__ = [
    "AbortMultipartRequest",
    "CompleteMultipartRequest",
    "CompleteMultipartResponse",
    "FinalizeUploadResponse",
    "MultipartPresignResponse",
    "MultipartSessionResponse",
    "PresignUploadRequest",
    "PresignUploadResponse",
    "SignPartRequest",
    "SignPartResponse",
    "SimplePresignResponse",
    "UploadedPart",
]
