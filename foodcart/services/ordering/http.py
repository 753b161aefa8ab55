"""
HTTP Order Submission Client

Production client posting order payloads to the ordering backend's mobile
endpoint. Used when ENV_MODE=production or ENV_MODE=staging.

Response handling:
    The created order id is read from `data.orderNumber`, then `data._id`,
    then a top-level `_id`; a 2xx response without any of them is treated
    as a failed submission.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from foodcart.core.config import get_settings
from foodcart.exceptions import SubmissionError
from foodcart.orders.schemas import OrderPayload
from foodcart.services.ordering.base import BaseOrderSubmissionClient, SubmissionReceipt

logger = logging.getLogger(__name__)


class HttpOrderSubmissionClient(BaseOrderSubmissionClient):
    """
    Order submission over httpx.

    Example:
        >>> client = HttpOrderSubmissionClient()
        >>> receipt = await client.submit(payload, auth_token="eyJ...")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()

        self._base_url = (base_url or settings.order_api_base_url).rstrip("/")
        self._path = settings.order_submission_path
        self._timeout = timeout or settings.order_api_timeout_seconds
        self._transport = transport

        logger.info(f"HttpOrderSubmissionClient initialized ({self._base_url})")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "http"

    def _client(self, auth_token: Optional[str] = None) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
            headers=headers,
        )

    @staticmethod
    def _extract_order_id(body: Any) -> Optional[str]:
        if not isinstance(body, dict):
            return None
        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        order_id = data.get("orderNumber") or data.get("_id") or body.get("_id")
        return str(order_id) if order_id else None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}"

    async def submit(
        self,
        payload: OrderPayload,
        auth_token: Optional[str] = None,
    ) -> SubmissionReceipt:
        """Post one vendor's order."""
        start_time = datetime.now()
        vendor_id = payload.vendor_id

        logger.info(f"HTTP: Creating order for {vendor_id} ({len(payload.items)} lines)")

        try:
            async with self._client(auth_token) as client:
                response = await client.post(self._path, json=payload.to_wire())

        except httpx.TimeoutException:
            logger.error(f"HTTP: Order submission timeout for {vendor_id}")
            raise SubmissionError(vendor_id, "Order submission timed out. Please try again.")

        except httpx.HTTPError as e:
            logger.error(f"HTTP: Transport error for {vendor_id} - {e}")
            raise SubmissionError(vendor_id, "Network error. Please check your internet connection.")

        elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000

        if response.is_error:
            message = self._error_message(response)
            logger.error(f"HTTP: Order rejected for {vendor_id} - {response.status_code} {message}")
            raise SubmissionError(vendor_id, message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError:
            body = None

        order_id = self._extract_order_id(body)
        if order_id is None:
            logger.error(f"HTTP: Order response for {vendor_id} carried no order id")
            raise SubmissionError(
                vendor_id, "Failed to save order", status_code=response.status_code
            )

        logger.info(f"HTTP: Order {order_id} created for {vendor_id}")

        return SubmissionReceipt(
            vendor_id=vendor_id,
            order_id=order_id,
            response_time_ms=elapsed_ms,
        )

    async def health_check(self) -> bool:
        """Verify the ordering backend answers at all."""
        try:
            async with self._client() as client:
                response = await client.get("/health")
            return response.status_code < 500
        except httpx.HTTPError as e:
            logger.error(f"HTTP: Order client health check failed - {e}")
            return False
