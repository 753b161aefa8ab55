"""
Cart Storage Factory

Provides a single entry point for obtaining the snapshot storage.
Automatically selects File or Redis based on ENV_MODE, unless
STORAGE_BACKEND names one explicitly.

Usage:
    from foodcart.services.storage import get_cart_storage

    storage = get_cart_storage()
    store = await CartStore.open(storage)

Environment Switching:
    - ENV_MODE=development → FileCartStorage (data/ directory)
    - ENV_MODE=staging → RedisCartStorage
    - ENV_MODE=production → RedisCartStorage

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from foodcart.core.config import StorageBackend, get_settings
from foodcart.services.storage.base import BaseCartStorage
from foodcart.services.storage.file import FileCartStorage
from foodcart.services.storage.memory import MemoryCartStorage
from foodcart.services.storage.redis import RedisCartStorage

logger = logging.getLogger(__name__)


@lru_cache()
def get_cart_storage() -> BaseCartStorage:
    """
    Get the configured cart storage instance.

    Returns:
        BaseCartStorage: Memory, File or Redis storage
    """
    settings = get_settings()
    backend = settings.resolved_storage_backend

    if backend == StorageBackend.MEMORY:
        logger.info("Cart Storage: Using MemoryCartStorage")
        return MemoryCartStorage()
    if backend == StorageBackend.FILE:
        logger.info(f"Cart Storage: Using FileCartStorage ({settings.env_mode.value} mode)")
        return FileCartStorage()

    logger.info(f"Cart Storage: Using RedisCartStorage ({settings.env_mode.value} mode)")
    return RedisCartStorage()


def reset_cart_storage() -> None:
    """
    Clear the cached storage instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_cart_storage.cache_clear()
    logger.debug("Cart storage cache cleared")


__all__ = [
    "get_cart_storage",
    "reset_cart_storage",
    "BaseCartStorage",
    "MemoryCartStorage",
    "FileCartStorage",
    "RedisCartStorage",
]
