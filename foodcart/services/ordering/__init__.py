"""
Order Submission Client Factory

Returns Mock or HTTP order submission client based on ENV_MODE.

Environment Switching:
    - ENV_MODE=development → MockOrderSubmissionClient (no API calls)
    - ENV_MODE=staging → HttpOrderSubmissionClient
    - ENV_MODE=production → HttpOrderSubmissionClient

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from foodcart.core.config import get_settings
from foodcart.services.ordering.base import BaseOrderSubmissionClient, SubmissionReceipt
from foodcart.services.ordering.http import HttpOrderSubmissionClient
from foodcart.services.ordering.mock import MockOrderSubmissionClient

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_client() -> BaseOrderSubmissionClient:
    """Get the configured order submission client."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Order Client: Using MockOrderSubmissionClient (development mode)")
        return MockOrderSubmissionClient(
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    logger.info(f"Order Client: Using HttpOrderSubmissionClient ({settings.env_mode.value} mode)")
    return HttpOrderSubmissionClient()


def reset_order_client() -> None:
    """Clear the cached client instance."""
    get_order_client.cache_clear()


__all__ = [
    "get_order_client",
    "reset_order_client",
    "BaseOrderSubmissionClient",
    "SubmissionReceipt",
    "MockOrderSubmissionClient",
    "HttpOrderSubmissionClient",
]
