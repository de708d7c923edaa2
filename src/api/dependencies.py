"""FastAPI dependency injection for services and settings."""

import re
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from src.application.services.finalize import FinalizeService
from src.application.services.presign import PresignService
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

CALLER_ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


def get_caller_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Caller identity forwarded by the authenticating gateway.

    Raises:
        HTTPException: 401 when the header is missing, 400 when malformed.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required",
        )
    if not re.match(CALLER_ID_PATTERN, x_user_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-Id header is malformed",
        )
    return x_user_id


def get_presign_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PresignService:
    """Get the presign service with its dependencies."""
    return PresignService(
        intent_store=factory.get_intent_store(),
        blob_storage=factory.get_blob_storage(),
        settings=settings,
    )


def get_finalize_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> FinalizeService:
    """Get the finalize service with its dependencies."""
    return FinalizeService(
        intent_store=factory.get_intent_store(),
        blob_storage=factory.get_blob_storage(),
        settings=settings,
    )


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
CallerDep = Annotated[str, Depends(get_caller_id)]
PresignServiceDep = Annotated[PresignService, Depends(get_presign_service)]
FinalizeServiceDep = Annotated[FinalizeService, Depends(get_finalize_service)]


async def init_services(settings: Settings) -> None:
    """Initialize infrastructure on startup.

    Creates the buckets if missing and the intent TTL index, so a
    misconfigured deployment fails at boot rather than on first upload.

    Args:
        settings: Application settings.
    """
    factory = get_factory(settings)

    blob = factory.get_blob_storage()
    for bucket in (
        settings.blob_storage.buckets.temp,
        settings.blob_storage.buckets.permanent,
    ):
        await blob.ensure_bucket(bucket)

    await factory.get_intent_store().ensure_indexes()


async def shutdown_services() -> None:
    """Shutdown all infrastructure services."""
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_settings.cache_clear()
