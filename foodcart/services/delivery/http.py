"""
HTTP Delivery Charge Resolver

Production resolver that asks the ordering backend for a vendor's delivery
charge. Used when ENV_MODE=production or ENV_MODE=staging.

Expected response body (optionally wrapped in {"data": ...}):
    {"charge": 50, "estimatedTime": 25, "zone": "kathmandu", "distance": 5.2}

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from foodcart.core.config import get_settings
from foodcart.exceptions import DeliveryResolutionError
from foodcart.services.delivery.base import BaseDeliveryChargeResolver, DeliveryCharge

logger = logging.getLogger(__name__)


class HttpDeliveryChargeResolver(BaseDeliveryChargeResolver):
    """
    Delivery charge lookup over the ordering backend's REST API.

    Example:
        >>> resolver = HttpDeliveryChargeResolver()
        >>> quote = await resolver.resolve("64f1c0ffee")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()

        self._base_url = (base_url or settings.order_api_base_url).rstrip("/")
        self._path_template = settings.delivery_charge_path
        self._timeout = timeout or settings.delivery_resolver_timeout_seconds
        self._transport = transport

        logger.info(f"HttpDeliveryChargeResolver initialized ({self._base_url})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "http"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )

    def _parse(self, vendor_id: str, body: dict) -> DeliveryCharge:
        data = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(data, dict) or data.get("charge") is None:
            raise DeliveryResolutionError.for_vendor(vendor_id, "Malformed delivery charge response")

        try:
            charge = Decimal(str(data["charge"]))
        except InvalidOperation:
            raise DeliveryResolutionError.for_vendor(vendor_id, f"Invalid charge: {data['charge']!r}")

        if charge < 0:
            raise DeliveryResolutionError.for_vendor(vendor_id, f"Negative charge: {charge}")

        distance = data.get("distance")
        return DeliveryCharge(
            vendor_id=vendor_id,
            charge=charge,
            eta_minutes=int(data.get("estimatedTime") or data.get("etaMinutes") or 0),
            zone=data.get("zone"),
            distance_km=float(distance) if distance is not None else None,
        )

    async def resolve(self, vendor_id: str) -> DeliveryCharge:
        """Fetch the charge for one vendor."""
        path = self._path_template.format(vendor_id=vendor_id)

        logger.debug(f"HTTP: Resolving delivery charge - {path}")

        try:
            async with self._client() as client:
                response = await client.get(path)
                response.raise_for_status()
                body = response.json()

        except httpx.TimeoutException:
            logger.error(f"HTTP: Delivery charge timeout for {vendor_id}")
            raise DeliveryResolutionError.for_vendor(vendor_id, "Delivery charge lookup timed out")

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP: Delivery charge rejected for {vendor_id} - {e.response.status_code}")
            raise DeliveryResolutionError.for_vendor(
                vendor_id, f"Delivery charge lookup failed ({e.response.status_code})"
            )

        except httpx.HTTPError as e:
            logger.error(f"HTTP: Transport error for {vendor_id} - {e}")
            raise DeliveryResolutionError.for_vendor(vendor_id, "Unable to reach delivery pricing service")

        except ValueError:
            raise DeliveryResolutionError.for_vendor(vendor_id, "Delivery charge response is not JSON")

        return self._parse(vendor_id, body)

    async def health_check(self) -> bool:
        """Verify the ordering backend answers at all."""
        try:
            async with self._client() as client:
                response = await client.get("/health")
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.error(f"HTTP: Delivery resolver health check failed - {e}")
            return False
