"""Upload intent store."""

from src.infrastructure.intents.base import IntentStoreBase
from src.infrastructure.intents.document_store import DocumentIntentStore

__all__ = [
    "IntentStoreBase",
    "DocumentIntentStore",
]
