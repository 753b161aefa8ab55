"""
Cart Storage Abstract Base Class

Defines the interface contract for the durable key-value sink that holds
serialized cart snapshots. Memory, File and Redis implementations must
implement these methods.

Failure contract:
    Implementations raise PersistenceError for every storage-side failure
    (connection, lock timeout, OS error). The Cart Store catches it, logs
    it and keeps working in memory.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from typing import Optional


class BaseCartStorage(ABC):
    """
    Abstract base class for cart snapshot storage.

    Example:
        >>> storage = get_cart_storage()
        >>> await storage.save("cart_data", serialize_cart(state))
        >>> raw = await storage.load("cart_data")
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """
        Return the name of the storage backend.

        Returns:
            str: Backend name (e.g., "memory", "file", "redis")
        """
        pass

    @abstractmethod
    async def load(self, key: str) -> Optional[str]:
        """
        Read a snapshot.

        Args:
            key: Snapshot key (e.g., "cart_data")

        Returns:
            The serialized snapshot, or None if nothing is stored

        Raises:
            PersistenceError: If the storage cannot be read
        """
        pass

    @abstractmethod
    async def save(self, key: str, value: str) -> None:
        """
        Write a snapshot, replacing any previous one.

        Raises:
            PersistenceError: If the storage cannot be written
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a snapshot.

        Returns:
            bool: True if something was deleted
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify the storage is reachable.

        Returns:
            bool: True if operational
        """
        pass
