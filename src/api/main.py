"""FastAPI application factory and lifespan management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import get_settings, init_services, shutdown_services
from src.api.middleware.error_handler import error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware
from src.api.openapi.routes import health, uploads
from src.commons.settings.models import Settings
from src.commons.telemetry import JsonFormatter, TextFormatter, configure_logging

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _log_level(settings: Settings) -> str:
    return (settings.telemetry.log_level or settings.app.log_level).upper()


def _configure_app_logging(settings: Settings) -> None:
    """Route the application's loggers through the configured formatter.

    Runs at import time so the format is in place before uvicorn logs
    its first line.
    """
    level = _log_level(settings)
    configure_logging(
        level=level,
        format_type=settings.telemetry.log_format,
        logger_name="src",
    )
    logging.getLogger().setLevel(level)


def _configure_server_logging(settings: Settings) -> None:
    """Give uvicorn's loggers the same format as the application.

    uvicorn installs its handlers after import, so this runs in the
    lifespan.
    """
    level = _log_level(settings)
    formatter: logging.Formatter = (
        JsonFormatter() if settings.telemetry.log_format == "json" else TextFormatter()
    )

    for name in UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.setLevel(level)
        if not server_logger.handlers:
            server_logger.addHandler(logging.StreamHandler())
            server_logger.propagate = False
        for handler in server_logger.handlers:
            handler.setFormatter(formatter)
            handler.setLevel(level)


_configure_app_logging(get_settings())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Ensure buckets and the intent index exist, then close on shutdown."""
    settings = get_settings()
    _configure_server_logging(settings)

    await init_services(settings)
    yield
    await shutdown_services()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    docs = settings.server.docs_enabled

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Video intake - resumable uploads into durable object storage",
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    # Added last, so outermost.
    app.middleware("http")(error_handler_middleware)

    # Health checks stay unversioned for load balancers.
    app.include_router(health.router, tags=["Health"])
    app.include_router(
        uploads.router, prefix=settings.server.api_prefix, tags=["Uploads"]
    )

    return app


app = create_app()
