"""Processing lock store abstractions and implementations."""

from src.infrastructure.locks.base import LockStoreBase
from src.infrastructure.locks.dynamodb_lock import DynamoDBLockStore
from src.infrastructure.locks.mongodb_lock import MongoLockStore

__all__ = [
    # Base classes
    "LockStoreBase",
    # Implementations
    "DynamoDBLockStore",
    "MongoLockStore",
]
