"""
Mock Delivery Charge Resolver

Simulates the delivery pricing service without making real API calls.
Used in development mode (ENV_MODE=development) for local testing.

Behavior:
    - Flat charge of 50 in the "kathmandu" zone, 5.2 km, 25 minutes
    - Per-vendor overrides for exercising multi-vendor totals
    - Simulates network latency (100-500ms by default)
    - Random failure rate for testing checkout error handling

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import random
import logging
from decimal import Decimal
from typing import Optional

from foodcart.exceptions import DeliveryResolutionError
from foodcart.services.delivery.base import BaseDeliveryChargeResolver, DeliveryCharge

logger = logging.getLogger(__name__)


class MockDeliveryChargeResolver(BaseDeliveryChargeResolver):
    """
    Mock implementation of the delivery charge resolver.

    Attributes:
        failure_rate: Probability of simulated failure (0.0-1.0)
        min_latency: Minimum response time in seconds
        max_latency: Maximum response time in seconds
        overrides: vendor_id -> fixed charge

    Example:
        >>> resolver = MockDeliveryChargeResolver(failure_rate=0.0)
        >>> quote = await resolver.resolve("vendor-a")
        >>> print(quote.charge)
        50
    """

    DEFAULT_CHARGE = Decimal("50")
    DEFAULT_ZONE = "kathmandu"
    DEFAULT_DISTANCE_KM = 5.2
    DEFAULT_ETA_MINUTES = 25

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.1,
        max_latency: float = 0.5,
        overrides: Optional[dict[str, Decimal]] = None,
    ):
        """
        Initialize the mock resolver.

        Args:
            failure_rate: Probability of lookup failure (default: 5%)
            min_latency: Minimum response time in seconds
            max_latency: Maximum response time in seconds
            overrides: Fixed charges for specific vendors
        """
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.overrides = dict(overrides or {})

        logger.info(
            f"MockDeliveryChargeResolver initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    async def _simulate_latency(self) -> float:
        """
        Simulate network latency.

        Returns:
            float: Latency in milliseconds
        """
        latency = random.uniform(self.min_latency, self.max_latency)
        await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        """Determine if this request should simulate a failure."""
        return random.random() < self.failure_rate

    async def resolve(self, vendor_id: str) -> DeliveryCharge:
        """Return the flat mock charge (or the vendor override)."""
        latency_ms = await self._simulate_latency()

        if self._should_fail():
            logger.debug(f"Mock: Simulated delivery lookup failure for {vendor_id}")
            raise DeliveryResolutionError.for_vendor(
                vendor_id, "Delivery pricing service temporarily unavailable"
            )

        charge = self.overrides.get(vendor_id, self.DEFAULT_CHARGE)

        logger.debug(f"Mock: Delivery charge for {vendor_id} = {charge} ({latency_ms:.0f}ms)")

        return DeliveryCharge(
            vendor_id=vendor_id,
            charge=charge,
            eta_minutes=self.DEFAULT_ETA_MINUTES,
            zone=self.DEFAULT_ZONE,
            distance_km=self.DEFAULT_DISTANCE_KM,
        )

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        logger.debug("Mock: Delivery resolver health check passed")
        return True
