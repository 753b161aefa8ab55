"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Uses mock collaborators and file-backed cart storage
    - STAGING: Uses real HTTP collaborators and Redis with test endpoints
    - PRODUCTION: Uses real HTTP collaborators and Redis

The ENV_MODE variable controls which services are instantiated throughout
the application, enabling seamless switching between local testing and
production deployment.

Usage:
    from foodcart.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Use mock services
    else:
        # Use real APIs

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
import sys
from decimal import Decimal
from enum import Enum
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with mock services
        PRODUCTION: Live environment with real API integrations
        STAGING: Pre-production testing with real APIs but test endpoints
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class StorageBackend(str, Enum):
    """Durable store used for cart snapshots."""
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Cart persistence
        storage_backend: memory, file or redis (defaults by env_mode)
        cart_storage_key: Key under which the cart snapshot is written
        persist_debounce_ms: Quiescence window before a snapshot is written
        cart_idle_ttl_seconds: Idle time before a session cart is unloaded
        max_open_carts: Session carts kept in memory at most

        # Checkout collaborators
        order_api_base_url: Base URL of the ordering backend
        delivery_resolver_timeout_seconds: Upper bound per vendor lookup
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Multi-Vendor Food Cart",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )

    # ==========================================================================
    # CART PERSISTENCE
    # ==========================================================================

    storage_backend: Optional[StorageBackend] = Field(
        default=None,
        description="Cart snapshot store (memory/file/redis); derived from env_mode if unset"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    data_directory: str = Field(
        default="data",
        description="Directory for file-backed cart snapshots"
    )
    storage_lock_timeout: int = Field(
        default=10,
        description="Seconds to wait for a snapshot file lock"
    )
    cart_storage_key: str = Field(
        default="cart_data",
        description="Key of the persisted cart snapshot"
    )
    persist_debounce_ms: int = Field(
        default=500,
        ge=0,
        description="Quiescence window before a cart snapshot is written"
    )
    cart_idle_ttl_seconds: float = Field(
        default=1800.0,
        gt=0,
        description="Idle time after which a session cart is flushed and unloaded"
    )
    max_open_carts: int = Field(
        default=10000,
        ge=1,
        description="Upper bound on session carts held in memory"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    default_delivery_fee: Decimal = Field(
        default=Decimal("50"),
        ge=0,
        description="Delivery fee used when a restaurant has none configured"
    )
    default_payment_method: str = Field(
        default="cash_on_delivery",
        description="Payment method used when the customer picks none"
    )

    # ==========================================================================
    # ORDERING BACKEND
    # ==========================================================================

    order_api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the ordering backend"
    )
    order_api_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout for order submission"
    )
    order_submission_path: str = Field(
        default="/mobile/orders",
        description="Path that accepts order payloads"
    )
    delivery_charge_path: str = Field(
        default="/delivery/charge/{vendor_id}",
        description="Path template of the delivery charge lookup"
    )
    delivery_resolver_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for a single vendor's delivery charge lookup"
    )

    # ==========================================================================
    # MOCK COLLABORATORS
    # ==========================================================================

    mock_failure_rate: float = Field(
        default=0.05,
        ge=0.0,
        le=1.0,
        description="Probability of a simulated collaborator failure"
    )
    mock_min_latency: float = Field(
        default=0.1,
        ge=0.0,
        description="Minimum simulated latency in seconds"
    )
    mock_max_latency: float = Field(
        default=0.5,
        ge=0.0,
        description="Maximum simulated latency in seconds"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_services(self) -> bool:
        """Check if real external services should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def resolved_storage_backend(self) -> StorageBackend:
        """Storage backend, falling back to the env_mode default."""
        if self.storage_backend is not None:
            return self.storage_backend
        return StorageBackend.REDIS if self.use_real_services else StorageBackend.FILE

    @property
    def persist_debounce_seconds(self) -> float:
        return self.persist_debounce_ms / 1000

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.order_api_base_url:
                missing.append("ORDER_API_BASE_URL")
            if self.resolved_storage_backend == StorageBackend.REDIS and not self.redis_url:
                missing.append("REDIS_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once,
    ensuring consistency across the application lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.env_mode)
        EnvironmentMode.DEVELOPMENT
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured root logger
    """
    settings = get_settings()

    # Set level based on debug mode
    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)

    return logging.getLogger("foodcart")
