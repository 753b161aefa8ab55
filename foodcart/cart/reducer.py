"""
Cart Mutation Engine

A pure reducer, `apply(state, action) -> state`, and the sole writer of
cart state. No I/O, no logging, no mutation of its inputs: every transition
builds new immutable models and re-derives the affected totals, so all
CartState invariants hold after each call.

Transitions never fail. Actions that reference an unknown vendor or item
return the input state unchanged (the very same object), which lets callers
detect a no-op with an identity check.

Example:
    >>> state = apply(CartState.empty(), AddItem(item=burger, vendor=vendor_a))
    >>> state.total_item_count
    1
"""

from decimal import Decimal
from typing import Callable, Iterable

from foodcart.cart.actions import (
    AddItem,
    CartAction,
    ClearCart,
    LoadCart,
    RemoveItem,
    RemoveVendor,
    UpdateQuantity,
)
from foodcart.cart.models import ZERO, CartState, LineItem, VendorCart, VendorId

DEFAULT_DELIVERY_FEE = Decimal("50")


# =============================================================================
# DERIVATION HELPERS
# =============================================================================

def _with_items(vendor_cart: VendorCart, items: Iterable[LineItem]) -> VendorCart:
    """Return a copy of `vendor_cart` holding `items` and a fresh subtotal."""
    items = tuple(items)
    subtotal = sum((item.line_total for item in items), ZERO)
    return vendor_cart.model_copy(update={"items": items, "subtotal": subtotal})


def _rebuild(vendors: dict[VendorId, VendorCart]) -> CartState:
    """Derive the global totals from scratch for a vendor map."""
    # Empty partitions never survive a transition
    vendors = {vid: vc for vid, vc in vendors.items() if vc.items}
    return CartState(
        vendors=vendors,
        total_item_count=sum(vc.item_count for vc in vendors.values()),
        total_amount=sum((vc.subtotal for vc in vendors.values()), ZERO),
        total_delivery_fee=sum((vc.delivery_fee for vc in vendors.values()), ZERO),
    )


def _replace_vendor_items(
    state: CartState,
    vendor_id: VendorId,
    items: Iterable[LineItem],
) -> CartState:
    vendors = dict(state.vendors)
    vendors[vendor_id] = _with_items(vendors[vendor_id], items)
    return _rebuild(vendors)


# =============================================================================
# TRANSITIONS
# =============================================================================

def _add_item(state: CartState, action: AddItem, default_delivery_fee: Decimal) -> CartState:
    vendor = action.vendor
    vendor_cart = state.vendors.get(vendor.vendor_id)

    if vendor_cart is None:
        fee = vendor.base_delivery_fee
        vendor_cart = VendorCart(
            vendor=vendor,
            delivery_fee=default_delivery_fee if fee is None else fee,
        )

    if vendor_cart.find_item(action.item.item_id) is not None:
        # First-seen price and metadata win; only the quantity moves.
        items = [
            item.model_copy(update={"quantity": item.quantity + 1})
            if item.item_id == action.item.item_id else item
            for item in vendor_cart.items
        ]
    else:
        items = [*vendor_cart.items, action.item.model_copy(update={"quantity": 1})]

    vendors = dict(state.vendors)
    vendors[vendor.vendor_id] = _with_items(vendor_cart, items)
    return _rebuild(vendors)


def _update_quantity(state: CartState, action: UpdateQuantity, _fee: Decimal) -> CartState:
    vendor_cart = state.vendors.get(action.vendor_id)
    if vendor_cart is None or vendor_cart.find_item(action.item_id) is None:
        return state

    quantity = max(0, action.quantity)
    if quantity == 0:
        return _remove_item(state, RemoveItem(action.item_id, action.vendor_id), _fee)

    items = [
        item.model_copy(update={"quantity": quantity})
        if item.item_id == action.item_id else item
        for item in vendor_cart.items
    ]
    return _replace_vendor_items(state, action.vendor_id, items)


def _remove_item(state: CartState, action: RemoveItem, _fee: Decimal) -> CartState:
    vendor_cart = state.vendors.get(action.vendor_id)
    if vendor_cart is None or vendor_cart.find_item(action.item_id) is None:
        return state

    items = [item for item in vendor_cart.items if item.item_id != action.item_id]
    return _replace_vendor_items(state, action.vendor_id, items)


def _remove_vendor(state: CartState, action: RemoveVendor, _fee: Decimal) -> CartState:
    if action.vendor_id not in state.vendors:
        return state

    vendors = {vid: vc for vid, vc in state.vendors.items() if vid != action.vendor_id}
    return _rebuild(vendors)


def _clear_cart(state: CartState, action: ClearCart, _fee: Decimal) -> CartState:
    return CartState.empty()


def _load_cart(state: CartState, action: LoadCart, _fee: Decimal) -> CartState:
    # Snapshots come from this engine; totals are trusted, not re-derived.
    return action.snapshot


_TRANSITIONS: dict[type, Callable[[CartState, CartAction, Decimal], CartState]] = {
    AddItem: _add_item,
    UpdateQuantity: _update_quantity,
    RemoveItem: _remove_item,
    RemoveVendor: _remove_vendor,
    ClearCart: _clear_cart,
    LoadCart: _load_cart,
}


def apply(
    state: CartState,
    action: CartAction,
    *,
    default_delivery_fee: Decimal = DEFAULT_DELIVERY_FEE,
) -> CartState:
    """
    Apply one action to a cart state.

    Args:
        state: Current cart state (never modified)
        action: Any CartAction
        default_delivery_fee: Fee seeded for a vendor without a base fee

    Returns:
        CartState: The next state; `state` itself when the action is a no-op
    """
    transition = _TRANSITIONS.get(type(action))
    if transition is None:
        return state
    return transition(state, action, default_delivery_fee)


def recompute_totals(state: CartState) -> CartState:
    """Re-derive every total from the line items, e.g. for consistency checks."""
    return _rebuild({vid: _with_items(vc, vc.items) for vid, vc in state.vendors.items()})
