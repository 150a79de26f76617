"""In-memory storage backend, for tests and throwaway sessions."""

from typing import Optional

from movemaster.services.storage.interface import StorageBackend


class InMemoryStorage(StorageBackend):
    """Keeps payloads in a dict. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def write(self, key: str, payload: str) -> None:
        self._items[key] = payload

    def delete(self, key: str) -> bool:
        return self._items.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._items)
