"""
Order Submission Client Abstract Base Class

Defines the interface contract for posting one vendor's OrderPayload to the
ordering backend. Both MockOrderSubmissionClient and HttpOrderSubmissionClient
must implement these methods.

The client never inspects authentication state: whatever token the session
layer supplies is attached to the request as-is.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from foodcart.orders.schemas import OrderPayload


@dataclass(frozen=True)
class SubmissionReceipt:
    """
    Standardized result of a successful order submission.

    Attributes:
        vendor_id: Vendor whose order was created
        order_id: Identifier assigned by the backend
        response_time_ms: Time taken by the backend
    """
    vendor_id: str
    order_id: str
    response_time_ms: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "vendor_id": self.vendor_id,
            "order_id": self.order_id,
            "response_time_ms": self.response_time_ms,
        }


class BaseOrderSubmissionClient(ABC):
    """
    Abstract base class for order submission clients.

    Example:
        >>> client = get_order_client()
        >>> receipt = await client.submit(payload, auth_token=token)
        >>> print(receipt.order_id)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the submission provider.

        Returns:
            str: Provider name (e.g., "mock", "http")
        """
        pass

    @abstractmethod
    async def submit(
        self,
        payload: OrderPayload,
        auth_token: Optional[str] = None,
    ) -> SubmissionReceipt:
        """
        Create one order.

        Args:
            payload: A single vendor's order
            auth_token: Bearer token supplied by the session layer

        Returns:
            SubmissionReceipt: Created order identifier

        Raises:
            SubmissionError: On network failure or server rejection
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the ordering backend.

        Returns:
            bool: True if service is reachable and operational
        """
        pass
