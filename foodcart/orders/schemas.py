"""
Pydantic Schemas for Order Payloads

Wire shapes accepted by the ordering backend. Field names are snake_case in
Python and camelCase on the wire (`restaurantId`, `deliveryAddress`, ...).

Only identifiers and quantities travel; prices are authoritative on the
server and never sent from the cart snapshot.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from decimal import Decimal
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for camelCase wire payloads."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# DELIVERY CONTEXT
# =============================================================================

class Coordinates(WireModel):
    latitude: float = 0.0
    longitude: float = 0.0


class DeliveryAddress(WireModel):
    """Where every vendor's order is delivered."""
    street: str = Field(default="Location not specified", max_length=255)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=100)
    zip_code: str = Field(default="", max_length=20)
    coordinates: Coordinates = Field(default_factory=Coordinates)


class DeliveryContext(BaseModel):
    """Customer-side checkout context shared by every vendor payload."""
    address: DeliveryAddress = Field(default_factory=DeliveryAddress)
    payment_method: Optional[str] = Field(None, examples=["cash_on_delivery"])
    special_instructions: str = Field(default="", max_length=500)


# =============================================================================
# ORDER PAYLOADS
# =============================================================================

class OrderLineItem(WireModel):
    item_id: str
    quantity: int = Field(..., ge=1)
    special_instructions: str = ""


class OrderPayload(WireModel):
    """One vendor's independently fulfillable order."""
    vendor_id: str = Field(..., alias="restaurantId")
    items: tuple[OrderLineItem, ...]
    delivery_address: DeliveryAddress
    delivery_fee: Decimal = Field(..., ge=0)
    payment_method: str
    special_instructions: str = ""

    @field_serializer("delivery_fee", when_used="json")
    def serialize_fee(self, value: Decimal) -> float:
        return float(value)


class SingleOrder(BaseModel):
    """Checkout spanning exactly one vendor."""
    model_config = ConfigDict(frozen=True)

    multiple_orders: Literal[False] = False
    order: OrderPayload
    total_delivery_fee: Decimal

    @property
    def payloads(self) -> list[OrderPayload]:
        return [self.order]


class MultiOrderBundle(BaseModel):
    """Checkout spanning several vendors: one payload per vendor."""
    model_config = ConfigDict(frozen=True)

    multiple_orders: Literal[True] = True
    orders: tuple[OrderPayload, ...]
    total_delivery_fee: Decimal

    @property
    def payloads(self) -> list[OrderPayload]:
        return list(self.orders)


FormattedOrder = Union[SingleOrder, MultiOrderBundle]
