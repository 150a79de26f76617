"""
JSON File Storage

One ``<key>.json`` file per storage key inside a data directory.

Writes go to a temporary file in the same directory and are moved into
place with ``os.replace``, so a reader never sees a half-written
collection. Transient OS errors are retried before giving up.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from movemaster.services.storage.interface import (
    StorageBackend,
    StorageError,
    StorageReadError,
    StorageWriteError,
)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class JsonFileStorage(StorageBackend):
    """Directory-of-JSON-files implementation of ``StorageBackend``."""

    def __init__(self, directory: Union[str, Path]):
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """File path for ``key``. Keys may not contain path separators."""
        if not _KEY_PATTERN.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._directory / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Failed to read {key}: {e}") from e

    def write(self, key: str, payload: str) -> None:
        path = self.path_for(key)
        try:
            self._write_atomic(path, payload)
        except OSError as e:
            raise StorageWriteError(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageWriteError(f"Failed to delete {key}: {e}") from e

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_atomic(self, path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            # Leave no stray temp file behind
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
