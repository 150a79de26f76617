"""
Abstract Storage Interface

The ledger persists each entity collection as a JSON array under its own
string key. Backends only move opaque text payloads in and out:
serialization and normalization belong to ``StoreRepository``.

The interface is intentionally small - a key/value store, nothing more.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StorageBackend(ABC):
    """
    Abstract key/value storage for persisted collections.

    Any storage implementation (JSON files, in-memory, ...)
    must implement these methods.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        """
        Read the raw payload stored under ``key``.

        Args:
            key: Storage key, e.g. ``mm_jobs_v6``

        Returns:
            The stored text, or None if nothing is stored under the key

        Raises:
            StorageReadError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def write(self, key: str, payload: str) -> None:
        """
        Replace the payload stored under ``key``.

        Args:
            key: Storage key
            payload: Serialized JSON text

        Raises:
            StorageWriteError: If the write fails
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove ``key``.

        Returns:
            True if something was removed
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """Stored data could not be read."""
    pass


class StorageWriteError(StorageError):
    """Data could not be written durably."""
    pass
