"""
File Cart Storage with Concurrency Control

One JSON file per snapshot key under the data directory. Reads and writes
are guarded by a per-key FileLock so that several worker processes sharing
the directory never interleave a write, and writes go through a temporary
file plus atomic rename so a crash never leaves half a snapshot behind.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import os
import re
import logging
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from foodcart.core.config import get_settings
from foodcart.exceptions import PersistenceError
from foodcart.services.storage.base import BaseCartStorage

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileCartStorage(BaseCartStorage):
    """Snapshot storage in the local filesystem."""

    def __init__(
        self,
        data_directory: Optional[str] = None,
        lock_timeout: Optional[int] = None,
    ):
        settings = get_settings()
        self.data_dir = Path(data_directory or settings.data_directory)
        self.lock_timeout = settings.storage_lock_timeout if lock_timeout is None else lock_timeout

        logger.info(f"FileCartStorage initialized (directory={self.data_dir})")

    @property
    def backend_name(self) -> str:
        return "file"

    def _ensure_data_dir(self) -> None:
        """Create data directory if needed."""
        if not self.data_dir.exists():
            self.data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {self.data_dir}")

    def _paths(self, key: str) -> tuple[Path, Path]:
        name = _UNSAFE_CHARS.sub("_", key)
        return self.data_dir / f"{name}.json", self.data_dir / f"{name}.json.lock"

    def _read(self, key: str) -> Optional[str]:
        path, lock_path = self._paths(key)
        if not path.exists():
            return None

        with FileLock(str(lock_path), timeout=self.lock_timeout):
            return path.read_text(encoding="utf-8")

    def _write(self, key: str, value: str) -> None:
        self._ensure_data_dir()
        path, lock_path = self._paths(key)
        tmp_path = path.with_suffix(".json.tmp")

        with FileLock(str(lock_path), timeout=self.lock_timeout):
            logger.debug(f"Lock acquired for '{key}'")
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)

    def _remove(self, key: str) -> bool:
        path, lock_path = self._paths(key)
        if not path.exists():
            return False

        with FileLock(str(lock_path), timeout=self.lock_timeout):
            path.unlink(missing_ok=True)
        lock_path.unlink(missing_ok=True)
        return True

    async def load(self, key: str) -> Optional[str]:
        try:
            return await asyncio.to_thread(self._read, key)
        except Timeout:
            raise PersistenceError(f"Lock timeout ({self.lock_timeout}s) reading '{key}'")
        except OSError as e:
            raise PersistenceError(f"Error reading '{key}': {e}") from e

    async def save(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._write, key, value)
        except Timeout:
            raise PersistenceError(f"Lock timeout ({self.lock_timeout}s) writing '{key}'")
        except OSError as e:
            raise PersistenceError(f"Error writing '{key}': {e}") from e

    async def delete(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._remove, key)
        except Timeout:
            raise PersistenceError(f"Lock timeout ({self.lock_timeout}s) deleting '{key}'")
        except OSError as e:
            raise PersistenceError(f"Error deleting '{key}': {e}") from e

    async def health_check(self) -> bool:
        try:
            self._ensure_data_dir()
        except OSError as e:
            logger.error(f"File storage health check failed: {e}")
            return False
        return os.access(self.data_dir, os.W_OK)
