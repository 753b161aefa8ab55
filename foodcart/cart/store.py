"""
Cart Store

Wraps the Mutation Engine with:
    - a current-state holder and a change counter (`version`) that serves as
      the snapshot identifier for checkout
    - subscriptions, notified only when a transition changed the state
    - a debounced persistence writer: at most one snapshot write per
      quiescence window after the last mutation, the snapshot being taken
      when the timer fires

Persistence failures are logged and swallowed; the in-memory cart keeps
working whatever the storage does.

Usage:
    store = await CartStore.open(get_cart_storage())
    unsubscribe = store.subscribe(lambda state: render(state))
    store.add_item(item, vendor)
    ...
    await store.close()   # flush pending snapshot on exit

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from decimal import Decimal
from typing import Callable, Optional

from pydantic import ValidationError

from foodcart.cart.actions import (
    AddItem,
    CartAction,
    ClearCart,
    LoadCart,
    RemoveItem,
    RemoveVendor,
    UpdateQuantity,
)
from foodcart.cart.debounce import Debouncer
from foodcart.cart.models import (
    ZERO,
    CartState,
    LineItem,
    VendorId,
    VendorRef,
    deserialize_cart,
    serialize_cart,
)
from foodcart.cart.reducer import apply
from foodcart.core.config import get_settings
from foodcart.exceptions import PersistenceError
from foodcart.services.storage.base import BaseCartStorage

logger = logging.getLogger(__name__)

Subscriber = Callable[[CartState], None]


class CartStore:
    """
    Single-session holder of the cart state.

    Attributes:
        storage_key: Key of the persisted snapshot
        version: Incremented on every state-changing transition
    """

    def __init__(
        self,
        storage: BaseCartStorage,
        *,
        storage_key: Optional[str] = None,
        debounce_seconds: Optional[float] = None,
        default_delivery_fee: Optional[Decimal] = None,
    ):
        settings = get_settings()

        self._storage = storage
        self.storage_key = storage_key or settings.cart_storage_key
        self._default_delivery_fee = (
            settings.default_delivery_fee
            if default_delivery_fee is None else default_delivery_fee
        )

        self._state = CartState.empty()
        self._version = 0
        self._persisted_version = 0
        self._subscribers: list[Subscriber] = []
        self._write_lock = asyncio.Lock()
        self._checkout_lock = asyncio.Lock()
        self._closed = False

        delay = settings.persist_debounce_seconds if debounce_seconds is None else debounce_seconds
        self._debouncer = Debouncer(delay, self._persist)

    @classmethod
    async def open(cls, storage: BaseCartStorage, **kwargs) -> "CartStore":
        """Create a store and hydrate it from the last persisted snapshot."""
        store = cls(storage, **kwargs)
        await store.hydrate()
        return store

    # =========================================================================
    # HYDRATION & PERSISTENCE
    # =========================================================================

    async def hydrate(self) -> bool:
        """
        Restore the last persisted snapshot via LOAD_CART.

        Returns:
            bool: True if a snapshot was loaded, False if the store stays empty
        """
        try:
            raw = await self._storage.load(self.storage_key)
        except PersistenceError as e:
            logger.warning(f"Cart hydration failed for '{self.storage_key}': {e}")
            return False

        if raw is None:
            logger.debug(f"No persisted cart under '{self.storage_key}'")
            return False

        try:
            snapshot = deserialize_cart(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cart snapshot '{self.storage_key}': {e}")
            return False

        self.dispatch(LoadCart(snapshot))
        # What was just read is what is on disk
        self._persisted_version = self._version
        self._debouncer.cancel()

        logger.info(
            f"Cart restored from '{self.storage_key}' "
            f"({len(snapshot.vendors)} vendors, {snapshot.total_item_count} items)"
        )
        return True

    def _schedule_persist(self) -> None:
        if self._closed:
            return
        try:
            self._debouncer.schedule()
        except RuntimeError:
            logger.debug("No running event loop; cart snapshot deferred until flush()")

    async def _persist(self) -> None:
        async with self._write_lock:
            if self._version == self._persisted_version:
                return

            version, snapshot = self._version, self._state
            try:
                await self._storage.save(self.storage_key, serialize_cart(snapshot))
            except PersistenceError as e:
                logger.error(f"Error saving cart '{self.storage_key}': {e}")
                return
            except Exception as e:
                logger.exception(f"Unexpected error saving cart '{self.storage_key}': {e}")
                return

            self._persisted_version = version
            logger.debug(f"Cart '{self.storage_key}' saved (v{version})")

    @property
    def dirty(self) -> bool:
        """True when the in-memory state has not been written yet."""
        return self._version != self._persisted_version

    async def flush(self) -> None:
        """Write the current snapshot now if it has unsaved changes."""
        await self._debouncer.flush()

    async def close(self) -> None:
        """Flush pending changes and stop scheduling further writes."""
        await self.flush()
        self._closed = True

    # =========================================================================
    # DISPATCH & SUBSCRIPTIONS
    # =========================================================================

    def dispatch(self, action: CartAction) -> CartState:
        """
        Run one action through the Mutation Engine.

        Subscribers are notified and a snapshot write is scheduled only when
        the state actually changed.
        """
        previous = self._state
        state = apply(previous, action, default_delivery_fee=self._default_delivery_fee)

        if state is previous or state == previous:
            return previous

        self._state = state
        self._version += 1
        self._notify(state)
        self._schedule_persist()
        return state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, state: CartState) -> None:
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception as e:
                logger.exception(f"Cart subscriber {callback!r} failed: {e}")

    # =========================================================================
    # ACTION SHORTCUTS
    # =========================================================================

    def add_item(self, item: LineItem, vendor: VendorRef) -> CartState:
        existing = self.find_item(vendor.vendor_id, item.item_id)
        if existing is not None and existing.unit_price != item.unit_price:
            # Kept as first-seen; the catalog price may have moved mid-session.
            logger.warning(
                f"Price drift for item '{item.item_id}' at vendor '{vendor.vendor_id}': "
                f"cart has {existing.unit_price}, catalog now {item.unit_price}"
            )
        return self.dispatch(AddItem(item=item, vendor=vendor))

    def update_quantity(self, item_id: str, quantity: int, vendor_id: VendorId) -> CartState:
        return self.dispatch(UpdateQuantity(item_id=item_id, quantity=quantity, vendor_id=vendor_id))

    def remove_item(self, item_id: str, vendor_id: VendorId) -> CartState:
        return self.dispatch(RemoveItem(item_id=item_id, vendor_id=vendor_id))

    def remove_vendor(self, vendor_id: VendorId) -> CartState:
        return self.dispatch(RemoveVendor(vendor_id=vendor_id))

    def clear(self) -> CartState:
        return self.dispatch(ClearCart())

    # =========================================================================
    # READ ACCESSORS (pure projections of the current state)
    # =========================================================================

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def version(self) -> int:
        return self._version

    @property
    def checkout_lock(self) -> asyncio.Lock:
        """Serializes checkouts of this cart."""
        return self._checkout_lock

    def snapshot(self) -> tuple[int, CartState]:
        """Current (version, state) pair; the state is immutable."""
        return self._version, self._state

    @property
    def item_count(self) -> int:
        return self._state.total_item_count

    @property
    def line_count(self) -> int:
        return self._state.line_count

    def vendors(self) -> list[VendorRef]:
        """Vendors currently represented in the cart, in insertion order."""
        return [vc.vendor for vc in self._state.vendors.values()]

    def items_for(self, vendor_id: VendorId) -> tuple[LineItem, ...]:
        vendor_cart = self._state.vendors.get(vendor_id)
        return vendor_cart.items if vendor_cart else ()

    def subtotal_for(self, vendor_id: VendorId) -> Decimal:
        vendor_cart = self._state.vendors.get(vendor_id)
        return vendor_cart.subtotal if vendor_cart else ZERO

    def delivery_fee_for(self, vendor_id: VendorId) -> Decimal:
        vendor_cart = self._state.vendors.get(vendor_id)
        return vendor_cart.delivery_fee if vendor_cart else ZERO

    def find_item(self, vendor_id: VendorId, item_id: str) -> Optional[LineItem]:
        vendor_cart = self._state.vendors.get(vendor_id)
        return vendor_cart.find_item(item_id) if vendor_cart else None
