"""
Delivery Charge Resolver Factory

Provides a single entry point for obtaining a delivery charge resolver.
Automatically selects Mock or HTTP based on ENV_MODE configuration.

Usage:
    from foodcart.services.delivery import get_delivery_resolver

    resolver = get_delivery_resolver()
    quote = await resolver.resolve("vendor-a")

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from foodcart.core.config import get_settings
from foodcart.services.delivery.base import BaseDeliveryChargeResolver, DeliveryCharge
from foodcart.services.delivery.http import HttpDeliveryChargeResolver
from foodcart.services.delivery.mock import MockDeliveryChargeResolver

logger = logging.getLogger(__name__)


@lru_cache()
def get_delivery_resolver() -> BaseDeliveryChargeResolver:
    """
    Get the configured delivery charge resolver.

    Returns:
        BaseDeliveryChargeResolver: Mock or HTTP resolver
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Delivery Resolver: Using MockDeliveryChargeResolver (development mode)")
        return MockDeliveryChargeResolver(
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    logger.info(
        f"Delivery Resolver: Using HttpDeliveryChargeResolver "
        f"({settings.env_mode.value} mode)"
    )
    return HttpDeliveryChargeResolver()


def reset_delivery_resolver() -> None:
    """Clear the cached resolver instance."""
    get_delivery_resolver.cache_clear()
    logger.debug("Delivery resolver cache cleared")


__all__ = [
    "get_delivery_resolver",
    "reset_delivery_resolver",
    "BaseDeliveryChargeResolver",
    "DeliveryCharge",
    "MockDeliveryChargeResolver",
    "HttpDeliveryChargeResolver",
]
