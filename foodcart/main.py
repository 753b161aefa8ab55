"""
FastAPI Application Entry Point

Multi-Vendor Food Cart - Hybrid Architecture
Supports both Mock collaborators (development) and Real APIs (production).

Endpoints:
    - GET    /api/carts/{session_id}: Cart view with per-vendor projections
    - POST   /api/carts/{session_id}/items: Add one unit of an item
    - PATCH  /api/carts/{session_id}/items/{item_id}: Set a line's quantity
    - DELETE /api/carts/{session_id}/items/{item_id}: Remove a line
    - DELETE /api/carts/{session_id}/vendors/{vendor_id}: Drop a vendor
    - DELETE /api/carts/{session_id}: Clear the cart
    - POST   /api/carts/{session_id}/quote: Delivery charges and totals
    - POST   /api/carts/{session_id}/checkout: Place one order per vendor
    - GET    /health: System health check

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Path, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from foodcart.cart import CartRegistry, CartStore
from foodcart.core.config import get_settings, setup_logging
from foodcart.exceptions import (
    CartError,
    DeliveryResolutionError,
    EmptyCartError,
    StaleCheckoutError,
)
from foodcart.orders.checkout import CheckoutService
from foodcart.schemas import (
    AddItemRequest,
    CartResponse,
    CheckoutRequest,
    ErrorResponse,
    HealthResponse,
    UpdateQuantityRequest,
)
from foodcart.services.delivery import BaseDeliveryChargeResolver, get_delivery_resolver
from foodcart.services.ordering import BaseOrderSubmissionClient, get_order_client
from foodcart.services.storage import get_cart_storage

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = r"^[A-Za-z0-9_.-]{1,64}$"

ERROR_STATUS_CODES: dict[type[CartError], int] = {
    EmptyCartError: 400,
    StaleCheckoutError: 409,
    DeliveryResolutionError: 502,
}


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    storage = get_cart_storage()
    app.state.registry = CartRegistry(storage)
    logger.info(f"✅ Cart Storage: {storage.backend_name}")
    logger.info(f"✅ Delivery Resolver: {get_delivery_resolver().provider_name}")
    logger.info(f"✅ Order Client: {get_order_client().provider_name}")

    # Validate production config
    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await app.state.registry.close()
    close = getattr(storage, "close", None)
    if close is not None:
        await close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Multi-vendor food cart with per-restaurant order splitting. "
        "Supports both mock collaborators for development and real APIs for production."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_registry(request: Request) -> CartRegistry:
    return request.app.state.registry


async def get_store(
    session_id: str = Path(..., pattern=SESSION_ID_PATTERN),
    registry: CartRegistry = Depends(get_registry),
) -> CartStore:
    """Existing session's store; 404 when the session has no cart."""
    store = await registry.get(session_id)
    if store is None:
        raise HTTPException(status_code=404, detail=f"Cart '{session_id}' not found")
    return store


async def get_or_create_store(
    session_id: str = Path(..., pattern=SESSION_ID_PATTERN),
    registry: CartRegistry = Depends(get_registry),
) -> CartStore:
    return await registry.get(session_id, create=True)


def get_checkout_service(
    store: CartStore = Depends(get_store),
    resolver: BaseDeliveryChargeResolver = Depends(get_delivery_resolver),
    client: BaseOrderSubmissionClient = Depends(get_order_client),
) -> CheckoutService:
    return CheckoutService(store, resolver, client)


def bearer_token(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Session token from `Authorization: Bearer <token>`, passed on as is."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def cart_view(session_id: str, store: CartStore) -> CartResponse:
    version, state = store.snapshot()
    return CartResponse.from_state(session_id, version, state)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🛒 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    registry: CartRegistry = Depends(get_registry),
    resolver: BaseDeliveryChargeResolver = Depends(get_delivery_resolver),
    client: BaseOrderSubmissionClient = Depends(get_order_client),
) -> HealthResponse:
    """Verify all system components are operational."""
    storage_status = "healthy" if await registry.storage.health_check() else "unhealthy"
    resolver_status = "healthy" if await resolver.health_check() else "unhealthy"
    client_status = "healthy" if await client.health_check() else "unhealthy"

    overall = "operational" if all(
        s == "healthy" for s in [storage_status, resolver_status, client_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        storage=storage_status,
        delivery_resolver=resolver_status,
        order_client=client_status,
        active_carts=len(registry),
        timestamp=datetime.now(),
    )


# =============================================================================
# CART ENDPOINTS
# =============================================================================

@app.get(
    "/api/carts/{session_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Cart"],
)
async def get_cart(
    session_id: str,
    store: CartStore = Depends(get_store),
) -> CartResponse:
    """Current cart with per-vendor subtotals and fees."""
    return cart_view(session_id, store)


@app.post(
    "/api/carts/{session_id}/items",
    response_model=CartResponse,
    tags=["Cart"],
    summary="Add Item",
)
async def add_item(
    session_id: str,
    body: AddItemRequest,
    store: CartStore = Depends(get_or_create_store),
) -> CartResponse:
    """Add one unit of a menu item; repeated adds increment the quantity."""
    item = body.item.to_line_item()
    vendor = body.restaurant.to_vendor_ref()
    store.add_item(item, vendor)

    logger.info(f"Cart '{session_id}': +1 {item.item_id} from {vendor.vendor_id}")
    return cart_view(session_id, store)


@app.patch(
    "/api/carts/{session_id}/items/{item_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Cart"],
    summary="Update Quantity",
)
async def update_quantity(
    session_id: str,
    item_id: str,
    body: UpdateQuantityRequest,
    store: CartStore = Depends(get_store),
) -> CartResponse:
    """Set a line's quantity; zero or less removes the line."""
    store.update_quantity(item_id, body.quantity, body.vendor_id)
    return cart_view(session_id, store)


@app.delete(
    "/api/carts/{session_id}/items/{item_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Cart"],
    summary="Remove Item",
)
async def remove_item(
    session_id: str,
    item_id: str,
    vendor_id: str = Query(..., min_length=1),
    store: CartStore = Depends(get_store),
) -> CartResponse:
    store.remove_item(item_id, vendor_id)
    return cart_view(session_id, store)


@app.delete(
    "/api/carts/{session_id}/vendors/{vendor_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Cart"],
    summary="Remove Vendor",
)
async def remove_vendor(
    session_id: str,
    vendor_id: str,
    store: CartStore = Depends(get_store),
) -> CartResponse:
    store.remove_vendor(vendor_id)
    return cart_view(session_id, store)


@app.delete(
    "/api/carts/{session_id}",
    response_model=CartResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["Cart"],
    summary="Clear Cart",
)
async def clear_cart(
    session_id: str,
    store: CartStore = Depends(get_store),
) -> CartResponse:
    store.clear()
    logger.info(f"Cart '{session_id}' cleared")
    return cart_view(session_id, store)


# =============================================================================
# CHECKOUT ENDPOINTS
# =============================================================================

@app.post(
    "/api/carts/{session_id}/quote",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    tags=["Checkout"],
    summary="Delivery Quote",
)
async def quote(
    session_id: str,
    body: CheckoutRequest,
    checkout: CheckoutService = Depends(get_checkout_service),
) -> dict[str, Any]:
    """Resolve every vendor's delivery charge and format the order(s)."""
    result = await checkout.quote(body.to_context())
    return {"session_id": session_id, **result.to_dict()}


@app.post(
    "/api/carts/{session_id}/checkout",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    tags=["Checkout"],
    summary="Place Order",
)
async def checkout(
    session_id: str,
    body: CheckoutRequest,
    service: CheckoutService = Depends(get_checkout_service),
    store: CartStore = Depends(get_store),
    auth_token: Optional[str] = Depends(bearer_token),
) -> dict[str, Any]:
    """
    Place one order per vendor.

    Submission failures are reported per vendor in the response body; the
    failed vendors stay in the cart so the customer can retry them.
    """
    result = await service.place_order(body.to_context(), auth_token=auth_token)

    message = (
        "Order placed successfully!" if result.all_succeeded
        else "Some orders could not be placed."
    )
    return {
        "session_id": session_id,
        "message": message,
        **result.to_dict(),
        "cart": cart_view(session_id, store).model_dump(mode="json"),
    }


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(CartError)
async def cart_error_handler(request: Request, exc: CartError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")

    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Catalog data that fails cart model validation."""
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "validation_error",
            "detail": exc.errors(include_url=False, include_context=False, include_input=False),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(
        "foodcart.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    run()
