"""
Cart and Checkout Error Taxonomy

Every failure originates in an I/O-touching collaborator (resolver,
submission client, persistence). The Mutation Engine itself never raises.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from typing import Optional


class CartError(Exception):
    """Base class for all cart and checkout errors."""

    error_code = "cart_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": False,
            "error": self.error_code,
            "detail": self.message,
        }


class EmptyCartError(CartError):
    """Checkout attempted with no vendors in the cart."""

    error_code = "empty_cart"

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class DeliveryResolutionError(CartError):
    """
    One or more vendors' delivery-charge lookups failed or timed out.

    Attributes:
        failures: vendor_id -> human readable reason
    """

    error_code = "delivery_resolution_failed"

    def __init__(self, failures: dict[str, str]):
        self.failures = dict(failures)
        vendors = ", ".join(sorted(self.failures))
        super().__init__(f"Failed to calculate delivery charges for: {vendors}")

    @classmethod
    def for_vendor(cls, vendor_id: str, reason: str) -> "DeliveryResolutionError":
        return cls({vendor_id: reason})

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["failures"] = self.failures
        return data


class SubmissionError(CartError):
    """Network or server rejection while posting one vendor's order."""

    error_code = "submission_failed"

    def __init__(
        self,
        vendor_id: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.vendor_id = vendor_id
        self.status_code = status_code

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["vendor_id"] = self.vendor_id
        data["status_code"] = self.status_code
        return data


class PersistenceError(CartError):
    """Snapshot read or write failure. Logged by the store, never surfaced."""

    error_code = "persistence_failed"


class StaleCheckoutError(CartError):
    """The cart changed while delivery charges were being resolved."""

    error_code = "stale_checkout"

    def __init__(self, expected_version: int, actual_version: int):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Cart changed during checkout (snapshot v{expected_version}, "
            f"now v{actual_version}); delivery charges discarded"
        )
