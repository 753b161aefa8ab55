"""
Checkout Flow

Drives a cart from "Place Order" to created orders:

    1. Snapshot the store (state + version). Empty cart -> EmptyCartError,
       before any network call.
    2. Resolve delivery charges for every vendor concurrently, each lookup
       bounded by a timeout, and wait for all of them to settle.
    3. If the cart changed meanwhile, discard the charges (StaleCheckoutError).
       If any vendor failed, raise DeliveryResolutionError listing them all.
    4. Format the snapshot into SingleOrder / MultiOrderBundle.
    5. Submit every vendor payload concurrently and report per vendor.
    6. Full success on an unchanged cart -> CLEAR_CART. Otherwise only the
       vendors whose orders went through are removed; failed vendors keep
       their items for a retry. If the cart was edited while orders were in
       flight, only the submitted quantities are subtracted.

One checkout per cart runs at a time (CartStore.checkout_lock); a second
request waits and then quotes whatever the first one left behind.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence

from foodcart.cart.models import CartState
from foodcart.cart.store import CartStore
from foodcart.core.config import get_settings
from foodcart.exceptions import (
    DeliveryResolutionError,
    EmptyCartError,
    StaleCheckoutError,
    SubmissionError,
)
from foodcart.orders.formatter import format_order
from foodcart.orders.schemas import DeliveryContext, FormattedOrder, OrderPayload
from foodcart.services.delivery.base import BaseDeliveryChargeResolver, DeliveryCharge
from foodcart.services.ordering.base import BaseOrderSubmissionClient

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class CheckoutQuote:
    """
    Priced, formatted checkout for one cart snapshot.

    Attributes:
        version: Store version the quote was computed for
        state: The cart snapshot
        charges: Resolved delivery charge per vendor
        order: Formatted payload(s)
    """
    version: int
    state: CartState
    charges: dict[str, DeliveryCharge]
    order: FormattedOrder

    @property
    def subtotal(self) -> Decimal:
        return self.state.total_amount

    @property
    def total_delivery_fee(self) -> Decimal:
        return self.order.total_delivery_fee

    @property
    def grand_total(self) -> Decimal:
        return self.subtotal + self.total_delivery_fee

    @property
    def eta_minutes(self) -> int:
        """Slowest vendor decides when the whole delivery is complete."""
        return max((c.eta_minutes for c in self.charges.values()), default=0)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "multiple_orders": self.order.multiple_orders,
            "subtotal": str(self.subtotal),
            "total_delivery_fee": str(self.total_delivery_fee),
            "grand_total": str(self.grand_total),
            "eta_minutes": self.eta_minutes,
            "charges": {vid: charge.to_dict() for vid, charge in self.charges.items()},
            "orders": [payload.to_wire() for payload in self.order.payloads],
        }


@dataclass(frozen=True)
class VendorOrderOutcome:
    """Submission result for one vendor's order."""
    vendor_id: str
    success: bool
    order_id: Optional[str] = None
    error_message: Optional[str] = None
    status_code: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "vendor_id": self.vendor_id,
            "success": self.success,
            "order_id": self.order_id,
            "error_message": self.error_message,
            "status_code": self.status_code,
        }


@dataclass(frozen=True)
class CheckoutResult:
    """Aggregated per-vendor outcome of placing an order."""
    quote: CheckoutQuote
    outcomes: list[VendorOrderOutcome] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return bool(self.outcomes) and all(o.success for o in self.outcomes)

    @property
    def failed_vendor_ids(self) -> list[str]:
        return [o.vendor_id for o in self.outcomes if not o.success]

    @property
    def order_ids(self) -> dict[str, str]:
        return {o.vendor_id: o.order_id for o in self.outcomes if o.success}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.all_succeeded,
            "order_ids": self.order_ids,
            "failed_vendor_ids": self.failed_vendor_ids,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "grand_total": str(self.quote.grand_total),
            "eta_minutes": self.quote.eta_minutes,
        }


# =============================================================================
# CHECKOUT SERVICE
# =============================================================================

class CheckoutService:
    """
    Orchestrates delivery pricing and order submission for one cart store.

    Example:
        >>> checkout = CheckoutService(store, get_delivery_resolver(), get_order_client())
        >>> result = await checkout.place_order(DeliveryContext(address=addr))
        >>> if not result.all_succeeded:
        ...     print("Retry:", result.failed_vendor_ids)
    """

    def __init__(
        self,
        store: CartStore,
        resolver: BaseDeliveryChargeResolver,
        client: BaseOrderSubmissionClient,
        *,
        resolver_timeout: Optional[float] = None,
        default_payment_method: Optional[str] = None,
    ):
        settings = get_settings()

        self._store = store
        self._resolver = resolver
        self._client = client
        self._resolver_timeout = resolver_timeout or settings.delivery_resolver_timeout_seconds
        self._default_payment_method = default_payment_method or settings.default_payment_method

    # =========================================================================
    # DELIVERY CHARGES
    # =========================================================================

    async def _resolve_one(self, vendor_id: str) -> DeliveryCharge:
        try:
            return await asyncio.wait_for(
                self._resolver.resolve(vendor_id),
                timeout=self._resolver_timeout,
            )
        except asyncio.TimeoutError:
            raise DeliveryResolutionError.for_vendor(
                vendor_id, f"Delivery charge lookup timed out after {self._resolver_timeout}s"
            )

    async def _gather_charges(
        self,
        vendor_ids: Sequence[str],
    ) -> tuple[dict[str, DeliveryCharge], dict[str, str]]:
        results = await asyncio.gather(
            *(self._resolve_one(vendor_id) for vendor_id in vendor_ids),
            return_exceptions=True,
        )

        charges: dict[str, DeliveryCharge] = {}
        failures: dict[str, str] = {}

        for vendor_id, result in zip(vendor_ids, results):
            if isinstance(result, DeliveryResolutionError):
                failures[vendor_id] = result.failures.get(vendor_id, result.message)
            elif isinstance(result, Exception):
                logger.exception(f"Unexpected delivery resolver error for {vendor_id}", exc_info=result)
                failures[vendor_id] = str(result) or type(result).__name__
            elif isinstance(result, BaseException):
                raise result
            else:
                charges[vendor_id] = result

        return charges, failures

    async def quote(self, context: DeliveryContext) -> CheckoutQuote:
        """
        Price and format the current cart.

        Raises:
            EmptyCartError: Cart has no vendors
            StaleCheckoutError: Cart changed while charges were resolved
            DeliveryResolutionError: At least one vendor could not be priced
        """
        version, state = self._store.snapshot()
        if state.is_empty:
            raise EmptyCartError("Your cart is empty. Add some items to continue.")

        vendor_ids = list(state.vendors)
        logger.info(f"Resolving delivery charges for {len(vendor_ids)} vendor(s) (cart v{version})")

        charges, failures = await self._gather_charges(vendor_ids)

        if self._store.version != version:
            logger.warning(
                f"Discarding delivery charges for cart v{version}; "
                f"cart is now v{self._store.version}"
            )
            raise StaleCheckoutError(version, self._store.version)

        if failures:
            for vendor_id, reason in failures.items():
                logger.error(f"Delivery charge failed for {vendor_id}: {reason}")
            raise DeliveryResolutionError(failures)

        order = format_order(
            state,
            context,
            charges,
            default_payment_method=self._default_payment_method,
        )
        return CheckoutQuote(version=version, state=state, charges=charges, order=order)

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    async def _submit_one(
        self,
        payload: OrderPayload,
        auth_token: Optional[str],
    ) -> VendorOrderOutcome:
        try:
            receipt = await self._client.submit(payload, auth_token=auth_token)
        except SubmissionError as e:
            logger.error(f"Order submission failed for {payload.vendor_id}: {e.message}")
            return VendorOrderOutcome(
                vendor_id=payload.vendor_id,
                success=False,
                error_message=e.message,
                status_code=e.status_code,
            )
        except Exception as e:
            logger.exception(f"Unexpected submission error for {payload.vendor_id}: {e}")
            return VendorOrderOutcome(
                vendor_id=payload.vendor_id,
                success=False,
                error_message="Failed to place order. Please try again.",
            )

        return VendorOrderOutcome(
            vendor_id=payload.vendor_id,
            success=True,
            order_id=receipt.order_id,
        )

    def _release_submitted_lines(self, payload: OrderPayload) -> None:
        """Subtract one submitted payload from the live cart, line by line."""
        for line in payload.items:
            current = self._store.find_item(payload.vendor_id, line.item_id)
            if current is None:
                continue
            # Quantity 0 drops the line; added units stay for the next order
            self._store.update_quantity(line.item_id, current.quantity - line.quantity, payload.vendor_id)

    def _settle_cart(self, quote: CheckoutQuote, outcomes: list[VendorOrderOutcome]) -> None:
        submitted = [o.vendor_id for o in outcomes if o.success]
        unchanged = self._store.version == quote.version

        if unchanged and len(submitted) == len(outcomes):
            self._store.clear()
            logger.info("All orders placed; cart cleared")
            return

        if not submitted:
            return

        if unchanged:
            for vendor_id in submitted:
                self._store.remove_vendor(vendor_id)
            logger.info(f"Removed submitted vendors from cart: {submitted}")
            return

        # Cart was edited during submission: remove only what was ordered
        payloads = {payload.vendor_id: payload for payload in quote.order.payloads}
        for vendor_id in submitted:
            self._release_submitted_lines(payloads[vendor_id])
        logger.info(
            f"Cart changed during checkout (v{quote.version} -> v{self._store.version}); "
            f"removed submitted lines for {submitted}"
        )

    async def place_order(
        self,
        context: DeliveryContext,
        auth_token: Optional[str] = None,
    ) -> CheckoutResult:
        """
        Quote, submit every vendor order and settle the cart.

        Args:
            context: Delivery address, payment method and instructions
            auth_token: Session token forwarded to the submission client

        Returns:
            CheckoutResult: Per-vendor outcomes
        """
        lock = self._store.checkout_lock
        if lock.locked():
            logger.info("Checkout already in progress for this cart; waiting")

        # Held from quote to settlement so a repeated request re-quotes the settled cart
        async with lock:
            quote = await self.quote(context)
            payloads = quote.order.payloads

            logger.info(f"Submitting {len(payloads)} order(s), total {quote.grand_total}")

            outcomes = list(await asyncio.gather(
                *(self._submit_one(payload, auth_token) for payload in payloads)
            ))

            self._settle_cart(quote, outcomes)

        result = CheckoutResult(quote=quote, outcomes=outcomes)
        if not result.all_succeeded:
            logger.warning(f"Checkout incomplete; failed vendors: {result.failed_vendor_ids}")
        return result
