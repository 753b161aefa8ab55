"""
Tests for the checkout flow.

Tests:
- Quote: concurrent resolution, timeouts, failures, stale snapshots
- Place order: full success, partial failure, auth token forwarding,
  edits during submission, concurrent checkouts
"""
import asyncio
from decimal import Decimal
from typing import Callable, Optional

import pytest

from foodcart.cart import CartStore
from foodcart.exceptions import (
    DeliveryResolutionError,
    EmptyCartError,
    StaleCheckoutError,
    SubmissionError,
)
from foodcart.orders import DeliveryContext, MultiOrderBundle, OrderPayload, SingleOrder
from foodcart.orders.checkout import CheckoutService
from foodcart.services.delivery import (
    BaseDeliveryChargeResolver,
    DeliveryCharge,
    MockDeliveryChargeResolver,
)
from foodcart.services.ordering import (
    BaseOrderSubmissionClient,
    MockOrderSubmissionClient,
    SubmissionReceipt,
)


class FakeResolver(BaseDeliveryChargeResolver):
    """Resolver with per-vendor charges, failures, delays and a hook."""

    def __init__(
        self,
        charges: Optional[dict[str, str]] = None,
        failing: tuple[str, ...] = (),
        slow: tuple[str, ...] = (),
        on_resolve: Optional[Callable[[str], None]] = None,
    ):
        self.charges = charges or {}
        self.failing = failing
        self.slow = slow
        self.on_resolve = on_resolve
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    async def resolve(self, vendor_id: str) -> DeliveryCharge:
        self.calls.append(vendor_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(5 if vendor_id in self.slow else 0.01)
            if self.on_resolve is not None:
                self.on_resolve(vendor_id)
            if vendor_id in self.failing:
                raise DeliveryResolutionError.for_vendor(vendor_id, "zone not served")
            return DeliveryCharge(
                vendor_id=vendor_id,
                charge=Decimal(self.charges.get(vendor_id, "45")),
                eta_minutes=30 if vendor_id == "vendor-b" else 20,
            )
        finally:
            self.in_flight -= 1

    async def health_check(self) -> bool:
        return True


class FakeOrderClient(BaseOrderSubmissionClient):
    """Order client recording payloads and tokens; rejects listed vendors."""

    def __init__(
        self,
        failing: tuple[str, ...] = (),
        delay: float = 0,
        on_submit: Optional[Callable[[OrderPayload], None]] = None,
    ):
        self.failing = failing
        self.delay = delay
        self.on_submit = on_submit
        self.payloads: list[OrderPayload] = []
        self.tokens: list[Optional[str]] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def submit(self, payload: OrderPayload, auth_token: Optional[str] = None) -> SubmissionReceipt:
        self.tokens.append(auth_token)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.on_submit is not None:
            self.on_submit(payload)
        if payload.vendor_id in self.failing:
            raise SubmissionError(payload.vendor_id, "Restaurant is closed", status_code=503)
        self.payloads.append(payload)
        return SubmissionReceipt(
            vendor_id=payload.vendor_id,
            order_id=f"ORD-{payload.vendor_id.upper()}",
            response_time_ms=1.0,
        )

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def context() -> DeliveryContext:
    return DeliveryContext(payment_method="cash_on_delivery")


async def filled_store(memory_storage, items) -> CartStore:
    store = CartStore(memory_storage, debounce_seconds=0.01)
    for item, vendor in items:
        store.add_item(item, vendor)
    return store


# ============= Quote Tests =============


class TestQuote:
    """Tests for delivery charge resolution and formatting."""

    @pytest.mark.asyncio
    async def test_empty_cart_raises_before_network(self, memory_storage, context):
        """Test EmptyCartError is raised without calling the resolver."""
        resolver = FakeResolver()
        service = CheckoutService(CartStore(memory_storage), resolver, FakeOrderClient())

        with pytest.raises(EmptyCartError):
            await service.quote(context)

        assert resolver.calls == []

    @pytest.mark.asyncio
    async def test_vendors_resolved_concurrently(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test every vendor is priced and lookups overlap."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        resolver = FakeResolver(charges={"vendor-a": "40", "vendor-b": "70"})
        service = CheckoutService(store, resolver, FakeOrderClient())

        quote = await service.quote(context)

        assert sorted(resolver.calls) == ["vendor-a", "vendor-b"]
        assert resolver.max_in_flight == 2
        assert isinstance(quote.order, MultiOrderBundle)
        assert quote.total_delivery_fee == Decimal("110")
        assert quote.subtotal == Decimal("15")
        assert quote.grand_total == Decimal("125")
        assert quote.eta_minutes == 30
        assert quote.version == store.version

    @pytest.mark.asyncio
    async def test_single_vendor_quote(self, memory_storage, context, vendor_a, burger):
        """Test a one-vendor cart quotes a SingleOrder with the resolved fee."""
        store = await filled_store(memory_storage, [(burger, vendor_a)])
        service = CheckoutService(store, FakeResolver(charges={"vendor-a": "65"}), FakeOrderClient())

        quote = await service.quote(context)

        assert isinstance(quote.order, SingleOrder)
        assert quote.order.order.delivery_fee == Decimal("65")
        data = quote.to_dict()
        assert data["multiple_orders"] is False
        assert data["orders"][0]["restaurantId"] == "vendor-a"

    @pytest.mark.asyncio
    async def test_any_failure_blocks_checkout(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test one failed vendor raises DeliveryResolutionError naming it."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        service = CheckoutService(store, FakeResolver(failing=("vendor-b",)), FakeOrderClient())

        with pytest.raises(DeliveryResolutionError) as exc_info:
            await service.quote(context)

        assert exc_info.value.failures == {"vendor-b": "zone not served"}

    @pytest.mark.asyncio
    async def test_timeout_is_a_resolution_failure(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test a lookup exceeding the timeout fails that vendor."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        service = CheckoutService(
            store,
            FakeResolver(slow=("vendor-a",)),
            FakeOrderClient(),
            resolver_timeout=0.05,
        )

        with pytest.raises(DeliveryResolutionError) as exc_info:
            await service.quote(context)

        assert list(exc_info.value.failures) == ["vendor-a"]
        assert "timed out" in exc_info.value.failures["vendor-a"]

    @pytest.mark.asyncio
    async def test_unexpected_resolver_error_is_reported(self, memory_storage, context, vendor_a, burger):
        """Test arbitrary resolver exceptions become resolution failures."""
        store = await filled_store(memory_storage, [(burger, vendor_a)])

        def explode(vendor_id):
            raise KeyError("charge")

        service = CheckoutService(store, FakeResolver(on_resolve=explode), FakeOrderClient())

        with pytest.raises(DeliveryResolutionError) as exc_info:
            await service.quote(context)

        assert "vendor-a" in exc_info.value.failures

    @pytest.mark.asyncio
    async def test_cart_change_during_resolution_is_stale(self, memory_storage, context, vendor_a, burger, fries):
        """Test charges resolved for a superseded snapshot are discarded."""
        store = await filled_store(memory_storage, [(burger, vendor_a)])
        resolver = FakeResolver(on_resolve=lambda vendor_id: store.add_item(fries, vendor_a))
        client = FakeOrderClient()
        service = CheckoutService(store, resolver, client)

        with pytest.raises(StaleCheckoutError) as exc_info:
            await service.place_order(context)

        assert exc_info.value.expected_version == 1
        assert exc_info.value.actual_version == 2
        assert client.payloads == []
        assert store.item_count == 2


# ============= Place Order Tests =============


class TestPlaceOrder:
    """Tests for submission and cart settlement."""

    @pytest.mark.asyncio
    async def test_full_success_clears_cart(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test every vendor submitted means the cart is cleared."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        client = FakeOrderClient()
        service = CheckoutService(store, FakeResolver(), client)

        result = await service.place_order(context, auth_token="tok-123")

        assert result.all_succeeded
        assert result.order_ids == {"vendor-a": "ORD-VENDOR-A", "vendor-b": "ORD-VENDOR-B"}
        assert result.failed_vendor_ids == []
        assert store.state.is_empty
        assert client.tokens == ["tok-123", "tok-123"]
        assert {p.delivery_fee for p in client.payloads} == {Decimal("45")}

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_failed_vendor(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test only the submitted vendor leaves the cart."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        service = CheckoutService(store, FakeResolver(), FakeOrderClient(failing=("vendor-b",)))

        result = await service.place_order(context)

        assert not result.all_succeeded
        assert result.failed_vendor_ids == ["vendor-b"]
        assert result.order_ids == {"vendor-a": "ORD-VENDOR-A"}
        assert [v.vendor_id for v in store.vendors()] == ["vendor-b"]
        failed = next(o for o in result.outcomes if not o.success)
        assert failed.status_code == 503
        assert failed.error_message == "Restaurant is closed"

    @pytest.mark.asyncio
    async def test_total_failure_keeps_cart(self, memory_storage, context, vendor_a, burger):
        """Test a rejected single order leaves the cart untouched."""
        store = await filled_store(memory_storage, [(burger, vendor_a)])
        before = store.state
        service = CheckoutService(store, FakeResolver(), FakeOrderClient(failing=("vendor-a",)))

        result = await service.place_order(context)

        assert not result.all_succeeded
        assert store.state is before
        assert result.to_dict()["success"] is False

    @pytest.mark.asyncio
    async def test_retry_after_partial_failure(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test retrying submits only the remaining vendor."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        resolver = FakeResolver()
        await CheckoutService(store, resolver, FakeOrderClient(failing=("vendor-b",))).place_order(context)

        client = FakeOrderClient()
        result = await CheckoutService(store, resolver, client).place_order(context)

        assert result.all_succeeded
        assert [p.vendor_id for p in client.payloads] == ["vendor-b"]
        assert store.state.is_empty

    @pytest.mark.asyncio
    async def test_items_added_during_submission_survive(self, memory_storage, context, vendor_a, burger, fries):
        """Test lines added while the order is in flight stay in the cart."""
        store = await filled_store(memory_storage, [(burger, vendor_a)])

        def edit_cart(payload: OrderPayload) -> None:
            store.add_item(fries, vendor_a)
            store.add_item(burger, vendor_a)

        client = FakeOrderClient(delay=0.02, on_submit=edit_cart)

        result = await CheckoutService(store, FakeResolver(), client).place_order(context)

        assert result.all_succeeded
        assert [(i.item_id, i.quantity) for i in client.payloads[0].items] == [("burger", 1)]
        assert [(i.item_id, i.quantity) for i in store.items_for("vendor-a")] == [("burger", 1), ("fries", 1)]
        assert store.item_count == 2

    @pytest.mark.asyncio
    async def test_edit_during_partial_failure(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test a changed cart loses only the submitted quantities."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (burger, vendor_a), (fries, vendor_b)])

        def edit_cart(payload: OrderPayload) -> None:
            if payload.vendor_id == "vendor-a":
                store.add_item(burger, vendor_a)

        client = FakeOrderClient(failing=("vendor-b",), on_submit=edit_cart)

        result = await CheckoutService(store, FakeResolver(), client).place_order(context)

        assert result.failed_vendor_ids == ["vendor-b"]
        assert [(i.item_id, i.quantity) for i in store.items_for("vendor-a")] == [("burger", 1)]
        assert [(i.item_id, i.quantity) for i in store.items_for("vendor-b")] == [("fries", 1)]

    @pytest.mark.asyncio
    async def test_lines_removed_during_submission_are_skipped(self, memory_storage, context, vendor_a, burger, fries):
        """Test lines the customer already removed are left alone."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_a)])

        def edit_cart(payload: OrderPayload) -> None:
            store.remove_item("fries", "vendor-a")

        client = FakeOrderClient(on_submit=edit_cart)

        await CheckoutService(store, FakeResolver(), client).place_order(context)

        assert store.state.is_empty

    @pytest.mark.asyncio
    async def test_concurrent_checkouts_submit_once(self, memory_storage, context, vendor_a, burger):
        """Test a repeated checkout waits and then finds the cart settled."""
        store = await filled_store(memory_storage, [(burger, vendor_a)])
        client = FakeOrderClient(delay=0.02)
        service = CheckoutService(store, FakeResolver(), client)

        first, second = await asyncio.gather(
            service.place_order(context),
            service.place_order(context),
            return_exceptions=True,
        )

        assert first.all_succeeded
        assert isinstance(second, EmptyCartError)
        assert [p.vendor_id for p in client.payloads] == ["vendor-a"]
        assert store.state.is_empty
        assert not store.checkout_lock.locked()

    @pytest.mark.asyncio
    async def test_concurrent_checkouts_across_services(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test the guard lives on the store, not the service instance."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        client = FakeOrderClient(delay=0.02, failing=("vendor-b",))

        first, second = await asyncio.gather(
            CheckoutService(store, FakeResolver(), client).place_order(context),
            CheckoutService(store, FakeResolver(), client).place_order(context),
        )

        assert first.order_ids == {"vendor-a": "ORD-VENDOR-A"}
        assert [o.vendor_id for o in second.outcomes] == ["vendor-b"]
        assert [p.vendor_id for p in client.payloads] == ["vendor-a"]

    @pytest.mark.asyncio
    async def test_mock_client_history_is_bounded(self, memory_storage, context, vendor_a, burger):
        """Test the mock client keeps only its most recent payloads."""
        client = MockOrderSubmissionClient(failure_rate=0, min_latency=0, max_latency=0)
        resolver = MockDeliveryChargeResolver(failure_rate=0, min_latency=0, max_latency=0)
        store = CartStore(memory_storage, debounce_seconds=0.01)

        for _ in range(MockOrderSubmissionClient.HISTORY_LIMIT + 5):
            store.add_item(burger, vendor_a)
            await CheckoutService(store, resolver, client).place_order(context)

        assert len(client.submitted) == MockOrderSubmissionClient.HISTORY_LIMIT

    @pytest.mark.asyncio
    async def test_with_mock_collaborators(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test the development mocks drive a full multi-vendor checkout."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        resolver = MockDeliveryChargeResolver(failure_rate=0, min_latency=0, max_latency=0)
        client = MockOrderSubmissionClient(failure_rate=0, min_latency=0, max_latency=0)

        result = await CheckoutService(store, resolver, client).place_order(context)

        assert result.all_succeeded
        assert all(order_id.startswith("ORD-") for order_id in result.order_ids.values())
        assert result.quote.total_delivery_fee == Decimal("100")
        assert len(client.submitted) == 2

    @pytest.mark.asyncio
    async def test_mock_failing_vendor(self, memory_storage, context, vendor_a, vendor_b, burger, fries):
        """Test the mock client's forced rejections are reported per vendor."""
        store = await filled_store(memory_storage, [(burger, vendor_a), (fries, vendor_b)])
        resolver = MockDeliveryChargeResolver(failure_rate=0, min_latency=0, max_latency=0)
        client = MockOrderSubmissionClient(
            failure_rate=0, min_latency=0, max_latency=0, failing_vendors=["vendor-a"]
        )

        result = await CheckoutService(store, resolver, client).place_order(context)

        assert result.failed_vendor_ids == ["vendor-a"]
        assert [v.vendor_id for v in store.vendors()] == ["vendor-a"]
