"""
Storage Services Package

Key/value backends for persisted collections and the repository that
loads, saves and seeds the ledger store through them.
"""

from movemaster.services.storage.interface import (
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from movemaster.services.storage.json_files import JsonFileStorage
from movemaster.services.storage.memory import InMemoryStorage
from movemaster.services.storage.repository import StoreRepository

__all__ = [
    # Interface
    "StorageBackend",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Implementations
    "InMemoryStorage",
    "JsonFileStorage",
    # Repository
    "StoreRepository",
]
