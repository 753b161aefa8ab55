"""
Cart Registry

Holds one CartStore per customer session for the API process. Each store
persists under its own key, `<cart_storage_key>:<session_id>`, and is
hydrated from that key the first time the session is touched.

Stores are unloaded again (flushed, then dropped) once they sit idle for
`cart_idle_ttl_seconds`, or when more than `max_open_carts` are open, least
recently used first. A store with a checkout in flight is never unloaded.
The next request for an unloaded session hydrates it from storage.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Callable, Optional

from foodcart.cart.store import CartStore
from foodcart.core.config import get_settings
from foodcart.services.storage.base import BaseCartStorage

logger = logging.getLogger(__name__)


class CartRegistry:
    """
    Session id -> CartStore.

    Example:
        >>> registry = CartRegistry(get_cart_storage())
        >>> store = await registry.get("session-1", create=True)
    """

    def __init__(
        self,
        storage: BaseCartStorage,
        *,
        key_prefix: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
        idle_ttl_seconds: Optional[float] = None,
        max_open: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()

        self._storage = storage
        self._key_prefix = key_prefix or settings.cart_storage_key
        self._debounce_seconds = debounce_seconds
        self._idle_ttl = settings.cart_idle_ttl_seconds if idle_ttl_seconds is None else idle_ttl_seconds
        self._max_open = settings.max_open_carts if max_open is None else max_open
        self._clock = clock

        # Least recently used first
        self._stores: "OrderedDict[str, CartStore]" = OrderedDict()
        self._last_used: dict[str, float] = {}
        self._lock = asyncio.Lock()

    @property
    def storage(self) -> BaseCartStorage:
        return self._storage

    def storage_key(self, session_id: str) -> str:
        return f"{self._key_prefix}:{session_id}"

    def __len__(self) -> int:
        return len(self._stores)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._stores

    def _touch(self, session_id: str) -> None:
        self._stores.move_to_end(session_id)
        self._last_used[session_id] = self._clock()

    async def get(self, session_id: str, *, create: bool = False) -> Optional[CartStore]:
        """
        Return the session's store, hydrating it on first access.

        Args:
            session_id: Customer session identifier
            create: Open an empty store when nothing is persisted

        Returns:
            The store, or None for an unknown session when create is False
        """
        async with self._lock:
            store = self._stores.get(session_id)
            if store is not None:
                self._touch(session_id)
                await self._evict_locked()
                return store

            store = CartStore(
                self._storage,
                storage_key=self.storage_key(session_id),
                debounce_seconds=self._debounce_seconds,
            )
            loaded = await store.hydrate()
            if not loaded and not create:
                return None

            self._stores[session_id] = store
            self._touch(session_id)
            logger.info(f"Cart session '{session_id}' opened (restored={loaded})")

            await self._evict_locked()
            return store

    # =========================================================================
    # EVICTION
    # =========================================================================

    def _eviction_candidates(self) -> list[str]:
        now = self._clock()
        overflow = len(self._stores) - self._max_open
        candidates = []

        for session_id, store in self._stores.items():
            idle = now - self._last_used[session_id] >= self._idle_ttl
            if not idle and overflow <= 0:
                break
            if store.checkout_lock.locked():
                continue
            candidates.append(session_id)
            overflow -= 1

        return candidates

    async def _evict_locked(self) -> int:
        evicted = self._eviction_candidates()

        for session_id in evicted:
            store = self._stores.pop(session_id)
            del self._last_used[session_id]
            await store.close()

        if evicted:
            logger.info(f"Unloaded {len(evicted)} cart session(s); {len(self._stores)} open")
        return len(evicted)

    async def evict_idle(self) -> int:
        """
        Flush and unload idle or surplus stores now.

        Returns:
            Number of sessions unloaded
        """
        async with self._lock:
            return await self._evict_locked()

    async def close(self) -> None:
        """Flush every open store."""
        async with self._lock:
            stores = list(self._stores.values())
            self._stores.clear()
            self._last_used.clear()

        for store in stores:
            await store.close()

        logger.info(f"Cart registry closed ({len(stores)} sessions flushed)")
