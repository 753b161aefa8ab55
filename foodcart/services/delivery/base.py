"""
Delivery Charge Resolver Abstract Base Class

Defines the interface contract for computing a vendor's delivery charge at
checkout time. Both MockDeliveryChargeResolver and HttpDeliveryChargeResolver
must implement these methods.

Failure contract:
    resolve() raises DeliveryResolutionError on any failure. It never falls
    back to a zero or default charge; the checkout flow decides what to do.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class DeliveryCharge:
    """
    Resolved delivery charge for one vendor.

    Attributes:
        vendor_id: Vendor the charge applies to
        charge: Delivery charge in the platform currency
        eta_minutes: Estimated delivery time
        zone: Delivery zone name, if the provider reports one
        distance_km: Vendor-to-customer distance, if known
    """
    vendor_id: str
    charge: Decimal
    eta_minutes: int
    zone: Optional[str] = None
    distance_km: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "vendor_id": self.vendor_id,
            "charge": str(self.charge),
            "eta_minutes": self.eta_minutes,
            "zone": self.zone,
            "distance_km": self.distance_km,
        }


class BaseDeliveryChargeResolver(ABC):
    """
    Abstract base class for delivery charge resolvers.

    Example:
        >>> resolver = get_delivery_resolver()
        >>> quote = await resolver.resolve("vendor-a")
        >>> print(quote.charge, quote.eta_minutes)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the resolver provider.

        Returns:
            str: Provider name (e.g., "mock", "http")
        """
        pass

    @abstractmethod
    async def resolve(self, vendor_id: str) -> DeliveryCharge:
        """
        Compute the delivery charge for one vendor.

        Args:
            vendor_id: Normalized vendor identifier

        Returns:
            DeliveryCharge: Charge and ETA

        Raises:
            DeliveryResolutionError: If the charge cannot be determined
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the resolver.

        Returns:
            bool: True if service is operational
        """
        pass
