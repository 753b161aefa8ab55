"""Shared pytest fixtures: isolated settings, cart fixtures, fake collaborators."""
from __future__ import annotations

from decimal import Decimal

import pytest

from foodcart.cart import CartState, LineItem, VendorRef, apply
from foodcart.cart.actions import AddItem
from foodcart.core.config import get_settings
from foodcart.services.delivery import reset_delivery_resolver
from foodcart.services.ordering import reset_order_client
from foodcart.services.storage import MemoryCartStorage, reset_cart_storage


def _reset_caches() -> None:
    get_settings.cache_clear()
    reset_cart_storage()
    reset_delivery_resolver()
    reset_order_client()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Development mode, in-memory storage, instant and reliable mocks."""
    monkeypatch.setenv("ENV_MODE", "development")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("DATA_DIRECTORY", str(tmp_path / "data"))
    monkeypatch.setenv("PERSIST_DEBOUNCE_MS", "20")
    monkeypatch.setenv("MOCK_FAILURE_RATE", "0")
    monkeypatch.setenv("MOCK_MIN_LATENCY", "0")
    monkeypatch.setenv("MOCK_MAX_LATENCY", "0")
    _reset_caches()
    yield
    _reset_caches()


# ============= Cart fixtures =============


@pytest.fixture
def vendor_a() -> VendorRef:
    return VendorRef(vendor_id="vendor-a", name="Momo House", base_delivery_fee=Decimal("50"))


@pytest.fixture
def vendor_b() -> VendorRef:
    return VendorRef(vendor_id="vendor-b", name="Burger Barn", base_delivery_fee=Decimal("60"))


@pytest.fixture
def burger() -> LineItem:
    return LineItem(item_id="burger", name="Chicken Burger", unit_price=Decimal("10"))


@pytest.fixture
def fries() -> LineItem:
    return LineItem(item_id="fries", name="Fries", unit_price=Decimal("5"), vegetarian=True)


@pytest.fixture
def two_vendor_state(vendor_a, vendor_b, burger, fries) -> CartState:
    """burger x2 + fries at vendor A, fries at vendor B."""
    state = CartState.empty()
    for item, vendor in [(burger, vendor_a), (burger, vendor_a), (fries, vendor_a), (fries, vendor_b)]:
        state = apply(state, AddItem(item=item, vendor=vendor))
    return state


@pytest.fixture
def memory_storage() -> MemoryCartStorage:
    return MemoryCartStorage()
