"""
Order Formatter / Splitter

Turns a cart snapshot plus resolved delivery charges into submittable order
payloads:

    1 vendor  -> SingleOrder(order=OrderPayload)
    N vendors -> MultiOrderBundle(orders=[OrderPayload, ...])  one per vendor

Each vendor payload carries its own copy of the delivery address, payment
method and instructions so it can be fulfilled independently. Line items
carry only identifiers, quantities and instructions; no price leaves the
client.

Pure function of its inputs: no network, no clock, no randomness.
"""

from decimal import Decimal
from typing import Mapping, Optional, Union

from foodcart.cart.models import ZERO, CartState, VendorCart
from foodcart.exceptions import EmptyCartError
from foodcart.orders.schemas import (
    DeliveryContext,
    FormattedOrder,
    MultiOrderBundle,
    OrderLineItem,
    OrderPayload,
    SingleOrder,
)
from foodcart.services.delivery.base import DeliveryCharge

DEFAULT_PAYMENT_METHOD = "cash_on_delivery"

ResolvedCharge = Union[DeliveryCharge, Decimal]


def _charge_amount(value: ResolvedCharge) -> Decimal:
    if isinstance(value, DeliveryCharge):
        return value.charge
    return Decimal(value)


def vendor_delivery_fee(
    vendor_cart: VendorCart,
    resolved_charges: Mapping[str, ResolvedCharge],
) -> Decimal:
    """Resolved charge for the vendor, else the fee stored in the cart."""
    resolved = resolved_charges.get(vendor_cart.vendor_id)
    if resolved is None:
        return vendor_cart.delivery_fee
    return _charge_amount(resolved)


def _build_payload(
    vendor_cart: VendorCart,
    context: DeliveryContext,
    delivery_fee: Decimal,
    payment_method: str,
) -> OrderPayload:
    items = tuple(
        OrderLineItem(
            item_id=item.item_id,
            quantity=item.quantity,
            special_instructions=item.special_instructions or "",
        )
        for item in vendor_cart.items
    )
    return OrderPayload(
        vendor_id=vendor_cart.vendor_id,
        items=items,
        delivery_address=context.address,
        delivery_fee=delivery_fee,
        payment_method=payment_method,
        special_instructions=context.special_instructions,
    )


def format_order(
    cart_state: CartState,
    context: DeliveryContext,
    resolved_charges: Optional[Mapping[str, ResolvedCharge]] = None,
    *,
    default_payment_method: str = DEFAULT_PAYMENT_METHOD,
) -> FormattedOrder:
    """
    Format a cart snapshot into order payload(s).

    Args:
        cart_state: Snapshot of the cart at checkout
        context: Delivery address, payment method and order instructions
        resolved_charges: vendor_id -> DeliveryCharge (or plain amount)
        default_payment_method: Used when the context names none

    Returns:
        SingleOrder for one vendor, MultiOrderBundle for several

    Raises:
        EmptyCartError: If the cart holds no vendors
    """
    if not cart_state.vendors:
        raise EmptyCartError()

    resolved_charges = resolved_charges or {}
    payment_method = context.payment_method or default_payment_method

    fees = {
        vendor_id: vendor_delivery_fee(vendor_cart, resolved_charges)
        for vendor_id, vendor_cart in cart_state.vendors.items()
    }
    payloads = [
        _build_payload(vendor_cart, context, fees[vendor_id], payment_method)
        for vendor_id, vendor_cart in cart_state.vendors.items()
    ]
    total_delivery_fee = sum(fees.values(), ZERO)

    if len(payloads) == 1:
        return SingleOrder(order=payloads[0], total_delivery_fee=total_delivery_fee)

    return MultiOrderBundle(orders=tuple(payloads), total_delivery_fee=total_delivery_fee)
