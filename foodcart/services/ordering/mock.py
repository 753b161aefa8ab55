"""
Mock Order Submission Client

Simulates the ordering backend without making real API calls.
Used in development mode (ENV_MODE=development) to:
    - Exercise single and multi-vendor checkout end to end
    - Reproduce partial failures across vendors
    - Develop without the backend running

Behavior:
    - Simulates realistic response times
    - Randomly rejects a share of orders (failure_rate)
    - Vendors listed in `failing_vendors` are always rejected
    - Generates backend-like order numbers (ORD-xxxx)

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import random
import uuid
import logging
from collections import deque
from typing import Iterable, Optional

from foodcart.exceptions import SubmissionError
from foodcart.orders.schemas import OrderPayload
from foodcart.services.ordering.base import BaseOrderSubmissionClient, SubmissionReceipt

logger = logging.getLogger(__name__)


class MockOrderSubmissionClient(BaseOrderSubmissionClient):
    """
    Mock implementation of the order submission client.

    Attributes:
        failure_rate: Probability of simulated rejection (0.0-1.0)
        failing_vendors: Vendors whose orders are always rejected
        submitted: Most recent accepted payloads (at most HISTORY_LIMIT), oldest first
    """

    REJECTION_REASONS = [
        (503, "Restaurant is not accepting orders right now."),
        (422, "One or more items are unavailable."),
        (500, "An error occurred while creating the order."),
    ]

    HISTORY_LIMIT = 100

    def __init__(
        self,
        failure_rate: float = 0.05,
        min_latency: float = 0.2,
        max_latency: float = 0.8,
        failing_vendors: Optional[Iterable[str]] = None,
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.failing_vendors = set(failing_vendors or ())
        self.submitted: deque[OrderPayload] = deque(maxlen=self.HISTORY_LIMIT)

        logger.info(
            f"MockOrderSubmissionClient initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    def _generate_order_number(self) -> str:
        return f"ORD-{uuid.uuid4().hex[:10].upper()}"

    async def _simulate_latency(self) -> float:
        latency = random.uniform(self.min_latency, self.max_latency)
        await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self, vendor_id: str) -> bool:
        return vendor_id in self.failing_vendors or random.random() < self.failure_rate

    async def submit(
        self,
        payload: OrderPayload,
        auth_token: Optional[str] = None,
    ) -> SubmissionReceipt:
        """Simulate creating an order."""
        latency_ms = await self._simulate_latency()

        if self._should_fail(payload.vendor_id):
            status_code, message = random.choice(self.REJECTION_REASONS)
            logger.debug(f"Mock: Order rejected for {payload.vendor_id} - {status_code}")
            raise SubmissionError(payload.vendor_id, message, status_code=status_code)

        order_id = self._generate_order_number()
        self.submitted.append(payload)

        logger.info(
            f"Mock: Order {order_id} created for {payload.vendor_id} "
            f"({len(payload.items)} lines, fee {payload.delivery_fee})"
        )

        return SubmissionReceipt(
            vendor_id=payload.vendor_id,
            order_id=order_id,
            response_time_ms=latency_ms,
        )

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        logger.debug("Mock: Order client health check passed")
        return True
