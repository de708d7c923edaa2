"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.infrastructure.blob import BlobNotFoundError
from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    DomainException,
    IntentNotFoundException,
    IntentOwnershipException,
    UploadIncompleteException,
    UploadValidationException,
)

logger = get_logger(__name__)


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build standardized error response.

    Args:
        request: HTTP request.
        code: Error code.
        message: Error message.
        status_code: HTTP status code.
        details: Additional details.

    Returns:
        JSON error response.
    """
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
    )


def _handle_exception(  # noqa: PLR0911
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle exception and return appropriate error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, UploadValidationException):
        logger.warning(f"Upload rejected: {exc}")
        return _build_error_response(
            request=request,
            code="VALIDATION_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"field": exc.field} if exc.field else None,
        )

    if isinstance(exc, IntentNotFoundException):
        logger.warning(f"Intent not found: {exc}")
        return _build_error_response(
            request=request,
            code="INTENT_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
            details={"intent_id": exc.intent_id},
        )

    if isinstance(exc, IntentOwnershipException):
        logger.warning(f"Intent ownership mismatch: {exc}")
        return _build_error_response(
            request=request,
            code="FORBIDDEN",
            message="Upload intent belongs to another caller",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"intent_id": exc.intent_id},
        )

    if isinstance(exc, UploadIncompleteException):
        logger.warning(f"Upload incomplete: {exc}")
        return _build_error_response(
            request=request,
            code="UPLOAD_INCOMPLETE",
            message=str(exc),
            status_code=status.HTTP_409_CONFLICT,
            details={"intent_id": exc.intent_id, "reason": exc.reason},
        )

    if isinstance(exc, BlobNotFoundError):
        logger.warning(f"Object not found: {exc}")
        return _build_error_response(
            request=request,
            code="OBJECT_NOT_FOUND",
            message=str(exc),
            status_code=status.HTTP_404_NOT_FOUND,
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request=request,
            code="DOMAIN_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    # Catch-all for unexpected errors
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions.

    Args:
        request: HTTP request.
        call_next: Next handler in chain.

    Returns:
        HTTP response.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
