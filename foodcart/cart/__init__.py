"""
Cart Module

Multi-vendor cart model, the pure Mutation Engine and the Cart Store.

Usage:
    from foodcart.cart import CartStore, LineItem, VendorRef

    store = await CartStore.open(storage)
    store.add_item(LineItem(item_id="burger", unit_price="10"), VendorRef(vendor_id="a"))
"""

from foodcart.cart.actions import (
    ActionType,
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
    CartState,
    LineItem,
    VendorCart,
    VendorId,
    VendorRef,
    deserialize_cart,
    serialize_cart,
)
from foodcart.cart.reducer import apply, recompute_totals
from foodcart.cart.registry import CartRegistry
from foodcart.cart.store import CartStore

__all__ = [
    "ActionType",
    "AddItem",
    "CartAction",
    "ClearCart",
    "LoadCart",
    "RemoveItem",
    "RemoveVendor",
    "UpdateQuantity",
    "Debouncer",
    "CartState",
    "LineItem",
    "VendorCart",
    "VendorId",
    "VendorRef",
    "deserialize_cart",
    "serialize_cart",
    "apply",
    "recompute_totals",
    "CartRegistry",
    "CartStore",
]
