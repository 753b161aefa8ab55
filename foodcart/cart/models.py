"""
Cart Data Model

Immutable Pydantic models for the aggregated multi-vendor cart:

    CartState
      └── vendors: {vendor_id: VendorCart}
                      ├── vendor: VendorRef
                      └── items: (LineItem, ...)

Invariants (maintained by the Mutation Engine, never by callers):
    - VendorCart.subtotal == sum(unit_price * quantity) over its items
    - CartState.total_item_count == sum of every item quantity
    - CartState.total_amount == sum of vendor subtotals
    - CartState.total_delivery_fee == sum of vendor delivery fees
    - no VendorCart with an empty item list, no LineItem with quantity <= 0

Money is Decimal everywhere; JSON snapshots carry decimals as strings so a
save/restore cycle is exact.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Normalized vendor identifier. The catalog hands out ids as strings, numbers
# or {"_id": ...} objects; all of them collapse to a plain string here.
VendorId = str

ZERO = Decimal("0")


def normalize_identifier(value: Any) -> str:
    """Reduce a raw catalog identifier to its string form."""
    if isinstance(value, dict):
        value = value.get("_id", value.get("id"))
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError("identifier is required")
    return str(value).strip()


class LineItem(BaseModel):
    """A menu item selected into the cart, with its quantity."""

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(..., examples=["burger"])
    name: str = Field(default="", max_length=200, examples=["Chicken Burger"])
    unit_price: Decimal = Field(..., ge=0, examples=["10.00"])
    quantity: int = Field(default=1, ge=1)
    vegetarian: Optional[bool] = None
    special_instructions: Optional[str] = Field(None, max_length=500)

    @field_validator("item_id", mode="before")
    @classmethod
    def validate_item_id(cls, v: Any) -> str:
        return normalize_identifier(v)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class VendorRef(BaseModel):
    """
    Restaurant metadata carried alongside its cart partition.

    Attributes:
        vendor_id: Normalized restaurant identifier
        name: Display name
        base_delivery_fee: Restaurant delivery fee; None means "use default"
    """

    model_config = ConfigDict(frozen=True)

    vendor_id: VendorId = Field(..., examples=["vendor-a"])
    name: str = Field(default="Restaurant", max_length=200)
    base_delivery_fee: Optional[Decimal] = Field(None, ge=0)
    address: Optional[str] = None
    phone: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("vendor_id", mode="before")
    @classmethod
    def validate_vendor_id(cls, v: Any) -> str:
        return normalize_identifier(v)


class VendorCart(BaseModel):
    """One restaurant's slice of the cart."""

    model_config = ConfigDict(frozen=True)

    vendor: VendorRef
    items: tuple[LineItem, ...] = ()
    subtotal: Decimal = ZERO
    delivery_fee: Decimal = ZERO

    @property
    def vendor_id(self) -> VendorId:
        return self.vendor.vendor_id

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def find_item(self, item_id: str) -> Optional[LineItem]:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None


class CartState(BaseModel):
    """The customer's whole in-progress cart across every vendor."""

    model_config = ConfigDict(frozen=True)

    vendors: dict[VendorId, VendorCart] = Field(default_factory=dict)
    total_item_count: int = 0
    total_amount: Decimal = ZERO
    total_delivery_fee: Decimal = ZERO

    @classmethod
    def empty(cls) -> "CartState":
        """The canonical empty cart."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.vendors

    @property
    def line_count(self) -> int:
        """Number of distinct lines across all vendors."""
        return sum(len(vc.items) for vc in self.vendors.values())

    @property
    def grand_total(self) -> Decimal:
        return self.total_amount + self.total_delivery_fee


# =============================================================================
# SERIALIZATION
# =============================================================================

def serialize_cart(state: CartState) -> str:
    """Serialize a cart snapshot for the persistence sink."""
    return state.model_dump_json()


def deserialize_cart(data: str | bytes) -> CartState:
    """
    Parse a persisted snapshot.

    Raises:
        pydantic.ValidationError: If the payload is not a cart snapshot
    """
    return CartState.model_validate_json(data)
