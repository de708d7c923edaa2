"""API route handlers."""

from src.api.openapi.routes import health, uploads

__all__ = [
    "health",
    "uploads",
]
