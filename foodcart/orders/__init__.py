"""
Order formatting: cart snapshot -> per-vendor order payloads.
"""

from foodcart.orders.formatter import format_order, vendor_delivery_fee
from foodcart.orders.schemas import (
    Coordinates,
    DeliveryAddress,
    DeliveryContext,
    FormattedOrder,
    MultiOrderBundle,
    OrderLineItem,
    OrderPayload,
    SingleOrder,
)

__all__ = [
    "format_order",
    "vendor_delivery_fee",
    "Coordinates",
    "DeliveryAddress",
    "DeliveryContext",
    "FormattedOrder",
    "MultiOrderBundle",
    "OrderLineItem",
    "OrderPayload",
    "SingleOrder",
]
