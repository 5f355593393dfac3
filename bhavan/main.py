"""
FastAPI Application Entry Point

Bengaluru Bhavan ordering service. Supports Mock services (development)
and Real providers (production).

Endpoints:
    - GET  /api/menu: Public menu with today's specials
    - POST /api/location: Capture delivery coordinates
    - POST /api/orders: Checkout
    - GET  /api/orders: The caller's orders
    - GET/PUT /api/profile: Checkout prefill
    - /api/admin/*: Catalog CRUD, order console, receipts, admin roles
    - POST /functions/add-admin: Privileged admin-role function
    - WS   /ws/admin/orders: Realtime new-order alerts
    - GET  /health: System health check
"""

import asyncio
import sys
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Query, Request, Header, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, HTMLResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import redis.asyncio as aioredis

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from bhavan.core.config import get_settings, setup_logging
from bhavan.core.exceptions import (
    AccessDenied,
    AuthenticationRequired,
    BhavanError,
    ValidationFailed,
)
from bhavan.database import async_session_maker, get_db, init_db, engine
from bhavan.models import OrderStatus, Portion
from bhavan.schemas import (
    AdminProfile,
    BannerCreate,
    BannerResponse,
    CategoryCreate,
    CategoryResponse,
    CheckoutRequest,
    ErrorResponse,
    HealthResponse,
    LocationRequest,
    LocationResponse,
    MenuCategoryGroup,
    MenuItemCreate,
    MenuItemResponse,
    MenuItemWithPortions,
    MenuResponse,
    OrderCreateResponse,
    OrderListResponse,
    OrderResponse,
    PortionCreate,
    PortionResponse,
    ProfileResponse,
    ProfileUpdate,
    SessionResponse,
    StatusUpdateRequest,
)
from bhavan.services import admins, catalog, orders, profiles
from bhavan.services.auth import get_auth_service
from bhavan.services.checkout import validate_checkout
from bhavan.services.geo import DeliveryAddress, get_geo_service
from bhavan.services.notifications import get_notification_service
from bhavan.services.printing import get_printer_service
from bhavan.services.realtime import relay_alerts, subscribe_alerts
from bhavan.services.receipts import (
    ReceiptOrder,
    receipt_filename,
    render_print_receipt,
    render_text_receipt,
)
from bhavan.tasks import publish_order_created

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


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
    logger.info(f"   Status policy: {settings.order_status_policy.value}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    logger.info(f"✅ Auth Service: {get_auth_service().provider_name}")
    logger.info(f"✅ Geo Service: {get_geo_service().provider_name}")
    logger.info(f"✅ Notification Service: {get_notification_service().provider_name}")
    logger.info(f"✅ Printer Service: {get_printer_service().provider_name}")

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Online ordering for a South Indian restaurant: menu, cart checkout, "
        "order tracking and an admin console with live new-order alerts."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# CALLER IDENTITY
# =============================================================================

@dataclass
class CurrentUser:
    user_id: str
    email: Optional[str]
    is_admin: bool


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    token = authorization.removeprefix("Bearer ").strip()
    return token or None


async def identify(token: Optional[str], db: AsyncSession) -> Optional[CurrentUser]:
    """Resolve a bearer token to the caller, or None for an anonymous/invalid one."""
    if not token:
        return None

    result = await get_auth_service().verify_token(token)
    if not result.success:
        logger.debug(f"Rejected bearer token: {result.error_message}")
        return None

    profile = await profiles.ensure_profile(db, result)
    return CurrentUser(
        user_id=result.user_id,
        email=profile.email,
        is_admin=await admins.is_admin(db, result.user_id),
    )


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[CurrentUser]:
    return await identify(bearer_token(authorization), db)


async def require_user(user: Optional[CurrentUser] = Depends(get_current_user)) -> CurrentUser:
    if user is None:
        raise AuthenticationRequired("Please sign in", code="not_authenticated")
    return user


async def require_admin(user: CurrentUser = Depends(require_user)) -> CurrentUser:
    if not user.is_admin:
        raise AccessDenied()
    return user


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍛 Welcome to {settings.restaurant_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "menu": "/api/menu",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify all system components are operational."""

    # Check database
    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    # Check Redis
    redis_status = "healthy"
    client = aioredis.Redis.from_url(settings.redis_url, socket_timeout=2)
    try:
        await client.ping()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")
    finally:
        await client.aclose()

    def label(ok: bool) -> str:
        return "healthy" if ok else "unhealthy"

    auth_status = label(await get_auth_service().health_check())
    geo_status = label(await get_geo_service().health_check())
    notification_status = label(await get_notification_service().health_check())
    printer_status = label(await asyncio.to_thread(get_printer_service().health_check))

    statuses = [db_status, redis_status, auth_status, geo_status, notification_status, printer_status]
    overall = "operational" if all(s == "healthy" for s in statuses) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        auth_service=auth_status,
        geo_service=geo_status,
        notification_service=notification_status,
        printer_service=printer_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# SESSION & PROFILE
# =============================================================================

@app.get("/api/session", response_model=SessionResponse, tags=["Session"])
async def session_info(user: Optional[CurrentUser] = Depends(get_current_user)) -> SessionResponse:
    """Who the caller is; anonymous callers get ``authenticated: false``."""
    if user is None:
        return SessionResponse(authenticated=False)
    return SessionResponse(
        authenticated=True,
        user_id=user.user_id,
        email=user.email,
        is_admin=user.is_admin,
    )


@app.get("/api/profile", response_model=ProfileResponse, tags=["Session"])
async def get_profile(
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profiles.get_profile(db, user.user_id)
    return ProfileResponse.model_validate(profile)


@app.put("/api/profile", response_model=ProfileResponse, tags=["Session"])
async def update_profile(
    payload: ProfileUpdate,
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    profile = await profiles.get_profile(db, user.user_id)
    profile = await profiles.update_profile(db, profile, payload)
    return ProfileResponse.model_validate(profile)


# =============================================================================
# PUBLIC MENU
# =============================================================================

@app.get("/api/menu", response_model=MenuResponse, tags=["Menu"])
async def get_menu(
    search: Optional[str] = Query(None, max_length=100),
    category_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
) -> MenuResponse:
    """Active categories with their available items and portions, plus today's specials."""
    menu = await catalog.load_menu(db, search=search, category_id=category_id)

    return MenuResponse(
        categories=[
            MenuCategoryGroup(
                category=CategoryResponse.model_validate(group["category"]),
                items=[
                    MenuItemWithPortions(
                        **MenuItemResponse.model_validate(entry["item"]).model_dump(),
                        portions=[PortionResponse.model_validate(p) for p in entry["portions"]],
                    )
                    for entry in group["items"]
                ],
            )
            for group in menu["categories"]
        ],
        banners={
            section: [BannerResponse.model_validate(b) for b in rows]
            for section, rows in menu["banners"].items()
        },
    )


# =============================================================================
# CHECKOUT & ORDER TRACKING
# =============================================================================

@app.post(
    "/api/location",
    response_model=LocationResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Checkout"],
)
async def capture_location(payload: LocationRequest) -> LocationResponse:
    """Turn the four address parts into a latitude/longitude pair."""
    fix = await get_geo_service().locate(DeliveryAddress(**payload.model_dump()))
    if not fix.success:
        raise ValidationFailed(fix.error_message or "Could not get your location", code="location_error")
    return LocationResponse(
        latitude=fix.latitude,
        longitude=fix.longitude,
        formatted_address=fix.formatted_address,
    )


@app.post(
    "/api/orders",
    response_model=OrderCreateResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Checkout",
)
async def create_order(
    payload: CheckoutRequest,
    user: Optional[CurrentUser] = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderCreateResponse:
    """
    Place an order from the caller's cart.

    Checks run in order (signed in, address details, location, cart) and
    nothing is written when one fails. Prices are taken from the catalog.
    """
    validate_checkout(
        authenticated=user is not None,
        details=payload.model_dump(),
        latitude=payload.latitude,
        longitude=payload.longitude,
        lines=payload.items,
    )

    order = await orders.place_order(db, user.user_id, payload)
    await asyncio.to_thread(publish_order_created, order.id)

    return OrderCreateResponse(
        success=True,
        message="Order placed successfully! We'll start preparing your food soon.",
        order=orders.order_to_response(order),
    )


@app.get("/api/orders", response_model=OrderListResponse, tags=["Orders"])
async def list_my_orders(
    user: CurrentUser = Depends(require_user),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """The caller's orders, newest first."""
    rows = await orders.list_customer_orders(db, user.user_id)
    return OrderListResponse(total=len(rows), orders=[orders.order_to_response(o) for o in rows])


# =============================================================================
# ADMIN: CATALOG
# =============================================================================

def _portion_response(portion: Portion, with_item: bool = False) -> PortionResponse:
    response = PortionResponse.model_validate(portion)
    if with_item and portion.menu_item is not None:
        response.menu_item_name = portion.menu_item.name
    return response


@app.get("/api/admin/categories", response_model=list[CategoryResponse], tags=["Admin: Catalog"])
async def admin_list_categories(
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[CategoryResponse]:
    return [CategoryResponse.model_validate(c) for c in await catalog.categories.list(db)]


@app.post("/api/admin/categories", response_model=CategoryResponse, status_code=201, tags=["Admin: Catalog"])
async def admin_create_category(
    payload: CategoryCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await catalog.categories.create(db, payload))


@app.put("/api/admin/categories/{category_id}", response_model=CategoryResponse, tags=["Admin: Catalog"])
async def admin_update_category(
    category_id: str,
    payload: CategoryCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await catalog.categories.update(db, category_id, payload))


@app.delete("/api/admin/categories/{category_id}", status_code=204, tags=["Admin: Catalog"])
async def admin_delete_category(
    category_id: str,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Menu items in the category stay; they just lose their category."""
    await catalog.categories.delete(db, category_id)


@app.get("/api/admin/menu-items", response_model=list[MenuItemResponse], tags=["Admin: Catalog"])
async def admin_list_menu_items(
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[MenuItemResponse]:
    return [MenuItemResponse.model_validate(i) for i in await catalog.menu_items.list(db)]


@app.post("/api/admin/menu-items", response_model=MenuItemResponse, status_code=201, tags=["Admin: Catalog"])
async def admin_create_menu_item(
    payload: MenuItemCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    return MenuItemResponse.model_validate(await catalog.menu_items.create(db, payload))


@app.put("/api/admin/menu-items/{item_id}", response_model=MenuItemResponse, tags=["Admin: Catalog"])
async def admin_update_menu_item(
    item_id: str,
    payload: MenuItemCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MenuItemResponse:
    return MenuItemResponse.model_validate(await catalog.menu_items.update(db, item_id, payload))


@app.delete("/api/admin/menu-items/{item_id}", status_code=204, tags=["Admin: Catalog"])
async def admin_delete_menu_item(
    item_id: str,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Removes the item together with its portions."""
    await catalog.menu_items.delete(db, item_id)


@app.get("/api/admin/portions", response_model=list[PortionResponse], tags=["Admin: Catalog"])
async def admin_list_portions(
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[PortionResponse]:
    return [_portion_response(p, with_item=True) for p in await catalog.portions.list(db)]


@app.post("/api/admin/portions", response_model=PortionResponse, status_code=201, tags=["Admin: Catalog"])
async def admin_create_portion(
    payload: PortionCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> PortionResponse:
    return _portion_response(await catalog.portions.create(db, payload))


@app.put("/api/admin/portions/{portion_id}", response_model=PortionResponse, tags=["Admin: Catalog"])
async def admin_update_portion(
    portion_id: str,
    payload: PortionCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> PortionResponse:
    return _portion_response(await catalog.portions.update(db, portion_id, payload))


@app.delete("/api/admin/portions/{portion_id}", status_code=204, tags=["Admin: Catalog"])
async def admin_delete_portion(
    portion_id: str,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await catalog.portions.delete(db, portion_id)


@app.get("/api/admin/banners", response_model=list[BannerResponse], tags=["Admin: Catalog"])
async def admin_list_banners(
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[BannerResponse]:
    return [BannerResponse.model_validate(b) for b in await catalog.banners.list(db)]


@app.post("/api/admin/banners", response_model=BannerResponse, status_code=201, tags=["Admin: Catalog"])
async def admin_create_banner(
    payload: BannerCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> BannerResponse:
    return BannerResponse.model_validate(await catalog.banners.create(db, payload))


@app.put("/api/admin/banners/{banner_id}", response_model=BannerResponse, tags=["Admin: Catalog"])
async def admin_update_banner(
    banner_id: str,
    payload: BannerCreate,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> BannerResponse:
    return BannerResponse.model_validate(await catalog.banners.update(db, banner_id, payload))


@app.delete("/api/admin/banners/{banner_id}", status_code=204, tags=["Admin: Catalog"])
async def admin_delete_banner(
    banner_id: str,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await catalog.banners.delete(db, banner_id)


# =============================================================================
# ADMIN: ORDERS & RECEIPTS
# =============================================================================

@app.get("/api/admin/orders", response_model=OrderListResponse, tags=["Admin: Orders"])
async def admin_list_orders(
    status: Optional[OrderStatus] = Query(None),
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Every order, newest first, optionally filtered by status."""
    rows = await orders.list_all_orders(db, status=status)
    return OrderListResponse(total=len(rows), orders=[orders.order_to_response(o) for o in rows])


@app.patch(
    "/api/admin/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["Admin: Orders"],
)
async def admin_set_order_status(
    order_id: str,
    payload: StatusUpdateRequest,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await orders.set_status(db, order_id, payload.status)
    return orders.order_to_response(order)


@app.get("/api/admin/orders/{order_id}/receipt.txt", response_class=PlainTextResponse, tags=["Admin: Orders"])
async def admin_download_receipt(
    order_id: str,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> PlainTextResponse:
    """Text receipt as a file download."""
    snapshot = ReceiptOrder.from_model(await orders.get_order(db, order_id))
    return PlainTextResponse(
        render_text_receipt(snapshot, settings),
        headers={"Content-Disposition": f'attachment; filename="{receipt_filename(snapshot, settings)}"'},
    )


@app.get("/api/admin/orders/{order_id}/receipt.html", response_class=HTMLResponse, tags=["Admin: Orders"])
async def admin_print_receipt(
    order_id: str,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    """80mm print-formatted receipt for the browser's print dialog."""
    snapshot = ReceiptOrder.from_model(await orders.get_order(db, order_id))
    return HTMLResponse(render_print_receipt(snapshot, settings))


@app.delete("/api/admin/admins/{user_id}", status_code=204, tags=["Admin: Users"])
async def admin_revoke(
    user_id: str,
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await admins.revoke_admin(db, user_id)


# =============================================================================
# PRIVILEGED FUNCTIONS
# =============================================================================

def _function_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.post("/functions/add-admin", tags=["Admin: Users"])
async def add_admin_function(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Grant the admin role by email, or list admins.

    Body: ``{"action": "add", "email": ...}`` or ``{"action": "list"}``.
    Every failure is ``{"error": ...}``.
    """
    if not authorization:
        return _function_error("No authorization header", 401)

    caller = await identify(bearer_token(authorization), db)
    if caller is None:
        return _function_error("Unauthorized", 401)
    if not caller.is_admin:
        return _function_error(AccessDenied.message, 403)

    try:
        body = await request.json()
    except ValueError:
        return _function_error("Invalid JSON body", 400)
    if not isinstance(body, dict):
        return _function_error("Invalid action", 400)

    action = body.get("action")
    logger.info(f"add-admin called by {caller.user_id}: action={action!r}")

    try:
        if action == "add":
            profile = await admins.grant_admin(db, body.get("email") or "")
            return {
                "success": True,
                "message": "Admin added successfully",
                "userId": profile.id,
            }
        if action == "list":
            rows = await admins.list_admins(db)
            return {
                "admins": [AdminProfile.model_validate(p).model_dump(mode="json") for p in rows],
            }
    except BhavanError as e:
        return _function_error(e.message, e.status_code)

    return _function_error("Invalid action", 400)


# =============================================================================
# REALTIME
# =============================================================================

@app.websocket("/ws/admin/orders")
async def admin_order_feed(websocket: WebSocket, token: Optional[str] = Query(None)) -> None:
    """Relay new-order alerts to a signed-in admin console."""
    async with async_session_maker() as db:
        caller = await identify(token, db)

    if caller is None or not caller.is_admin:
        await websocket.close(code=4403)
        return

    await websocket.accept()
    logger.info(f"🔌 Admin {caller.user_id} subscribed to order alerts")
    try:
        await relay_alerts(websocket, subscribe_alerts(settings))
    except WebSocketDisconnect:
        pass
    logger.info(f"🔌 Admin {caller.user_id} disconnected")


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(BhavanError)
async def domain_exception_handler(request: Request, exc: BhavanError) -> JSONResponse:
    """Domain errors carry their own status and one-line message."""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


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
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "bhavan.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    run()
