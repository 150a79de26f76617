"""Services package."""

from movemaster.services.storage import (
    InMemoryStorage,
    JsonFileStorage,
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
    StoreRepository,
)

__all__ = [
    # Storage services
    "InMemoryStorage",
    "JsonFileStorage",
    "StorageBackend",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "StoreRepository",
]
