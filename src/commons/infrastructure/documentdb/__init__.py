"""Document store used for upload intents and, optionally, processing locks."""

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.infrastructure.documentdb.mongodb_provider import MongoDBDocumentDB

__all__ = ["DocumentDBBase", "MongoDBDocumentDB"]
