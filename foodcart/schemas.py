"""
Pydantic Schemas for Request/Response Validation

Shapes of the cart HTTP API. The cart model itself lives in
foodcart.cart.models; these schemas only describe what crosses the API.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from foodcart.cart.models import CartState, LineItem, VendorCart, VendorRef
from foodcart.orders.schemas import DeliveryAddress, DeliveryContext


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class MenuItemIn(BaseModel):
    """Menu item as the catalog presents it when the customer taps "add"."""
    item_id: Any = Field(..., alias="id", examples=["burger"])
    name: str = Field(default="", max_length=200, examples=["Chicken Burger"])
    price: Decimal = Field(..., ge=0, examples=["10.00"])
    vegetarian: Optional[bool] = None
    special_instructions: Optional[str] = Field(None, max_length=500)

    model_config = ConfigDict(populate_by_name=True)

    def to_line_item(self) -> LineItem:
        return LineItem(
            item_id=self.item_id,
            name=self.name,
            unit_price=self.price,
            vegetarian=self.vegetarian,
            special_instructions=self.special_instructions,
        )


class RestaurantIn(BaseModel):
    """Restaurant the item belongs to."""
    vendor_id: Any = Field(..., alias="id", examples=["vendor-a"])
    name: str = Field(default="Restaurant", max_length=200)
    delivery_fee: Optional[Decimal] = Field(None, ge=0)
    address: Optional[str] = None
    phone: Optional[str] = None
    image_url: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_vendor_ref(self) -> VendorRef:
        return VendorRef(
            vendor_id=self.vendor_id,
            name=self.name,
            base_delivery_fee=self.delivery_fee,
            address=self.address,
            phone=self.phone,
            image_url=self.image_url,
        )


class AddItemRequest(BaseModel):
    """Request schema for adding one unit of an item."""
    item: MenuItemIn
    restaurant: RestaurantIn


class UpdateQuantityRequest(BaseModel):
    """Quantity <= 0 removes the line."""
    vendor_id: str = Field(..., min_length=1)
    quantity: int = Field(..., examples=[3])


class CheckoutRequest(BaseModel):
    """Checkout context shared by every vendor order."""
    delivery_address: DeliveryAddress = Field(default_factory=DeliveryAddress)
    payment_method: Optional[str] = Field(None, examples=["cash_on_delivery"])
    special_instructions: str = Field(default="", max_length=500)

    def to_context(self) -> DeliveryContext:
        return DeliveryContext(
            address=self.delivery_address,
            payment_method=self.payment_method,
            special_instructions=self.special_instructions,
        )


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class LineItemResponse(BaseModel):
    item_id: str
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal
    vegetarian: Optional[bool] = None
    special_instructions: Optional[str] = None

    @classmethod
    def from_item(cls, item: LineItem) -> "LineItemResponse":
        return cls(
            item_id=item.item_id,
            name=item.name,
            unit_price=item.unit_price,
            quantity=item.quantity,
            line_total=item.line_total,
            vegetarian=item.vegetarian,
            special_instructions=item.special_instructions,
        )


class VendorCartResponse(BaseModel):
    vendor_id: str
    name: str
    items: list[LineItemResponse]
    item_count: int
    subtotal: Decimal
    delivery_fee: Decimal

    @classmethod
    def from_vendor_cart(cls, vendor_cart: VendorCart) -> "VendorCartResponse":
        return cls(
            vendor_id=vendor_cart.vendor_id,
            name=vendor_cart.vendor.name,
            items=[LineItemResponse.from_item(item) for item in vendor_cart.items],
            item_count=vendor_cart.item_count,
            subtotal=vendor_cart.subtotal,
            delivery_fee=vendor_cart.delivery_fee,
        )


class CartResponse(BaseModel):
    """Full cart view for one session."""
    session_id: str
    version: int
    vendors: list[VendorCartResponse]
    total_item_count: int
    line_count: int
    total_amount: Decimal
    total_delivery_fee: Decimal
    grand_total: Decimal

    @classmethod
    def from_state(cls, session_id: str, version: int, state: CartState) -> "CartResponse":
        return cls(
            session_id=session_id,
            version=version,
            vendors=[VendorCartResponse.from_vendor_cart(vc) for vc in state.vendors.values()],
            total_item_count=state.total_item_count,
            line_count=state.line_count,
            total_amount=state.total_amount,
            total_delivery_fee=state.total_delivery_fee,
            grand_total=state.grand_total,
        )


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    storage: str
    delivery_resolver: str
    order_client: str
    active_carts: int
    timestamp: datetime
