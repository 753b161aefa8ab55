"""
Cart Actions

Tagged action records accepted by the Mutation Engine. Each action is an
immutable dataclass whose class identifies its transition rule.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from foodcart.cart.models import CartState, LineItem, VendorId, VendorRef


class ActionType(str, Enum):
    ADD_ITEM = "ADD_ITEM"
    UPDATE_QUANTITY = "UPDATE_QUANTITY"
    REMOVE_ITEM = "REMOVE_ITEM"
    REMOVE_VENDOR = "REMOVE_VENDOR"
    CLEAR_CART = "CLEAR_CART"
    LOAD_CART = "LOAD_CART"


@dataclass(frozen=True)
class AddItem:
    """Add one unit of `item` under `vendor` (quantity on `item` is ignored)."""
    item: LineItem
    vendor: VendorRef

    type: ClassVar[ActionType] = ActionType.ADD_ITEM


@dataclass(frozen=True)
class UpdateQuantity:
    item_id: str
    quantity: int
    vendor_id: VendorId

    type: ClassVar[ActionType] = ActionType.UPDATE_QUANTITY


@dataclass(frozen=True)
class RemoveItem:
    item_id: str
    vendor_id: VendorId

    type: ClassVar[ActionType] = ActionType.REMOVE_ITEM


@dataclass(frozen=True)
class RemoveVendor:
    """Drop a whole vendor partition, e.g. after its order was submitted."""
    vendor_id: VendorId

    type: ClassVar[ActionType] = ActionType.REMOVE_VENDOR


@dataclass(frozen=True)
class ClearCart:
    type: ClassVar[ActionType] = ActionType.CLEAR_CART


@dataclass(frozen=True)
class LoadCart:
    """Replace the state with a trusted snapshot written by this engine."""
    snapshot: CartState

    type: ClassVar[ActionType] = ActionType.LOAD_CART


CartAction = Union[AddItem, UpdateQuantity, RemoveItem, RemoveVendor, ClearCart, LoadCart]
