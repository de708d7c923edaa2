"""API layer - REST endpoints for the upload protocol."""

from src.api.main import app, create_app

__all__ = [
    "app",
    "create_app",
]
