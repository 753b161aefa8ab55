"""
In-Memory Cart Storage

Dict-backed snapshot storage for tests and single-process demos.
Snapshots vanish when the process exits.
"""

import logging
from typing import Optional

from foodcart.services.storage.base import BaseCartStorage

logger = logging.getLogger(__name__)


class MemoryCartStorage(BaseCartStorage):
    """Snapshot storage held in a plain dict."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.save_count = 0

    @property
    def backend_name(self) -> str:
        return "memory"

    async def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def save(self, key: str, value: str) -> None:
        self._data[key] = value
        self.save_count += 1
        logger.debug(f"Memory: saved '{key}' ({len(value)} bytes)")

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def health_check(self) -> bool:
        return True
