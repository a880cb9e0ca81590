"""
FastAPI Application Entry Point

Restaurant Storefront API - catalog, cart, checkout, addresses, rewards.
Every price is recomputed server-side; totals sent by the browser are only
compared, never trusted.

Endpoints:
    - /api/auth/*: Signup, login, logout, current user
    - /api/dishes, /api/coupons: Catalog
    - /api/cart/*: Session cart and checkout quote
    - /api/orders/*: Order placement and history
    - /api/addresses/*, /api/rewards/*, /api/users/*: Account data
    - GET /health: System health check

Author: Khalil_Bannouri
Version: 1.0.0
"""

import asyncio
import sys
import logging
from datetime import datetime, timezone
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Depends, Query, Request, Header, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update
from starlette.middleware.sessions import SessionMiddleware
import redis

# Windows-specific event loop policy
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Internal imports
from storefront.core.config import get_settings, setup_logging
from storefront.database import get_db, init_db, engine, async_session_maker
from storefront.models import Address, Coupon, Dish, Order, User, generate_id
from storefront.schemas import (
    AddressCreate,
    AddressResponse,
    CartItemRequest,
    CartLineResponse,
    CartQuantityUpdate,
    CartResponse,
    CategoryCount,
    CouponResponse,
    DishResponse,
    ErrorResponse,
    HealthResponse,
    LoginRequest,
    MessageResponse,
    OrderCreate,
    OrderResponse,
    PricingSummaryResponse,
    QuoteRequest,
    RewardHistoryResponse,
    SignupRequest,
    UserResponse,
)
from storefront.seed import seed_catalog
from storefront.services import auth, catalog, checkout, rewards
from storefront.services.catalog import DietFilter, SortOrder
from storefront.services.order_status import InvalidStatusTransition
from storefront.services.pricing import (
    CouponTerms,
    InvalidRedemptionError,
    OrderSummary,
    compute_subtotal,
    compute_summary,
    coupon_rejection_reason,
    has_expired,
)
from storefront.services.session import ShopperSession, get_shopper_session
from storefront.tasks import advance_order, schedule_status_progression

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
    logger.info(f"   Debug: {settings.debug}")
    logger.info(f"   Redemption policy: {settings.reward_redemption_policy.value}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    if settings.is_development and settings.seed_catalog:
        async with async_session_maker() as db:
            await seed_catalog(db)

    missing = settings.validate_production_config()
    if missing:
        logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("✅ Application ready!")

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
        "Restaurant ordering storefront: dish catalog, cart, checkout with "
        "coupons and reward points, addresses and order history."
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

app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret,
    session_cookie=settings.session_cookie_name,
    max_age=settings.session_max_age_seconds,
    same_site="lax",
    https_only=settings.is_production,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

async def require_user(
    shopper: ShopperSession,
    db: AsyncSession,
    message: str = "Please sign in",
) -> User:
    """Signed-in user of the session, or 401."""
    if not shopper.is_authenticated:
        raise HTTPException(status_code=401, detail=message)

    user = await db.get(User, shopper.user_id)
    if user is None:
        # Account vanished since the cookie was issued
        shopper.sign_out()
        raise HTTPException(status_code=401, detail=message)
    return user


async def get_current_user(
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await require_user(shopper, db)


def ensure_owner(user: User, user_id: str) -> None:
    if user.id != user_id:
        raise HTTPException(status_code=403, detail="You can only access your own account")


async def find_replayed_order(
    db: AsyncSession,
    idempotency_key: str,
    user_id: str,
) -> Optional[Order]:
    """
    Order already placed with an idempotency key, if any.

    Raises:
        HTTPException: 409 when the key belongs to another account
    """
    result = await db.execute(select(Order).where(Order.idempotency_key == idempotency_key))
    previous = result.scalar_one_or_none()
    if previous is None:
        return None
    if previous.user_id != user_id:
        raise HTTPException(status_code=409, detail="Idempotency key already used")
    logger.info(f"Order {previous.id[:8]} replayed for idempotency key")
    return previous


async def resolve_coupon(
    db: AsyncSession,
    code: Optional[str],
    subtotal_lines: list,
    as_of: datetime,
) -> Optional[CouponTerms]:
    """
    Look up a coupon code and check it applies to the cart.

    Raises:
        HTTPException: 400 for unknown or inapplicable coupons
    """
    if not code:
        return None

    coupon = await checkout.find_coupon(db, code)
    if coupon is None:
        raise HTTPException(status_code=400, detail=f"Coupon {code.upper()} does not exist")

    terms = CouponTerms.from_record(coupon)
    subtotal = compute_subtotal(subtotal_lines)
    reason = coupon_rejection_reason(terms, subtotal, as_of)
    if reason:
        raise HTTPException(status_code=400, detail=reason)
    return terms


async def price_cart(
    db: AsyncSession,
    quantities: dict[str, int],
    coupon_code: Optional[str],
    reward_points: int,
    available_points: int,
) -> tuple[list, dict[str, Dish], OrderSummary]:
    """Price requested quantities from catalog prices."""
    dishes = await checkout.load_dishes(db, quantities)
    lines = checkout.build_cart_lines(quantities, dishes)
    as_of = datetime.now(timezone.utc)
    coupon = await resolve_coupon(db, coupon_code, lines, as_of)

    summary = compute_summary(
        lines,
        coupon=coupon,
        reward_points_requested=reward_points,
        available_reward_points=available_points,
        as_of=as_of,
        config=settings.pricing,
    )
    return lines, dishes, summary


async def build_cart_response(
    db: AsyncSession,
    shopper: ShopperSession,
) -> CartResponse:
    quantities = shopper.cart
    dishes = await checkout.load_dishes(db, quantities)

    # Dishes taken off the menu drop out of the cart
    for dish_id in [d for d in quantities if d not in dishes]:
        shopper.remove_item(dish_id)
        quantities.pop(dish_id)

    lines = checkout.build_cart_lines(quantities, dishes)
    summary = compute_summary(lines, config=settings.pricing)

    return CartResponse(
        items=[
            CartLineResponse(
                dish=DishResponse.model_validate(dishes[line.dish_id]),
                quantity=line.quantity,
                line_total=line.line_total,
            )
            for line in lines
        ],
        summary=PricingSummaryResponse.model_validate(summary),
    )


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍛 Welcome to {settings.restaurant_name}",
        "version": settings.app_version,
        "currency": settings.currency,
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
    db: AsyncSession = Depends(get_db)
) -> HealthResponse:
    """Verify database and Redis are reachable."""

    db_status = "healthy"
    try:
        await db.execute(select(func.count(Dish.id)))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    redis_status = "healthy"
    try:
        r = redis.Redis.from_url(settings.redis_url, socket_timeout=2)
        r.ping()
        r.close()
    except Exception as e:
        redis_status = f"unhealthy: {str(e)}"
        logger.error(f"Redis health check failed: {e}")

    overall = "operational" if all(
        s == "healthy" for s in [db_status, redis_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        redis=redis_status,
        timestamp=datetime.now(),
    )


# =============================================================================
# AUTH ENDPOINTS
# =============================================================================

@app.post(
    "/api/auth/signup",
    response_model=UserResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def signup(
    data: SignupRequest,
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Create an account, grant the welcome bonus and sign in."""
    try:
        user = await auth.create_account(
            db, name=data.name, email=data.email, password=data.password, phone=data.phone
        )
        await rewards.grant_welcome_bonus(db, user, settings.welcome_bonus_points)
        await db.commit()
    except (auth.AccountExistsError, IntegrityError):
        await db.rollback()
        logger.info("Signup rejected")
        raise HTTPException(status_code=400, detail=auth.SIGNUP_FAILED)

    await db.refresh(user)
    shopper.sign_in(user.id)
    return UserResponse.model_validate(user)


@app.post(
    "/api/auth/login",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def login(
    data: LoginRequest,
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await auth.authenticate(db, data.email, data.password)
    if user is None:
        raise HTTPException(status_code=401, detail=auth.INVALID_CREDENTIALS)

    shopper.sign_in(user.id)
    logger.info(f"User {user.id} signed in")
    return UserResponse.model_validate(user)


@app.post("/api/auth/logout", response_model=MessageResponse, tags=["Auth"])
async def logout(
    shopper: ShopperSession = Depends(get_shopper_session),
) -> MessageResponse:
    """Sign out and reset the session, cart included."""
    shopper.sign_out()
    return MessageResponse(message="Signed out")


@app.get(
    "/api/auth/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}},
    tags=["Auth"],
)
async def me(
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await require_user(shopper, db, message="Not authenticated")
    return UserResponse.model_validate(user)


@app.get("/api/users/{user_id}", response_model=UserResponse, tags=["Users"])
async def get_user(
    user_id: str,
    user: User = Depends(get_current_user),
) -> UserResponse:
    """Refreshed account data, e.g. the reward balance after an order."""
    ensure_owner(user, user_id)
    return UserResponse.model_validate(user)


# =============================================================================
# CATALOG ENDPOINTS
# =============================================================================

@app.get("/api/dishes", response_model=list[DishResponse], tags=["Catalog"])
async def list_dishes(
    category: str = Query(catalog.ALL),
    diet: DietFilter = Query(DietFilter.ALL),
    search: Optional[str] = Query(None, max_length=100),
    sort: SortOrder = Query(SortOrder.POPULAR),
    db: AsyncSession = Depends(get_db),
) -> list[DishResponse]:
    """Menu, filtered and sorted like the menu page."""
    result = await db.execute(select(Dish).order_by(Dish.name))
    dishes = result.scalars().all()
    selected = catalog.filter_dishes(
        dishes, category=category, diet=diet, search=search, sort_by=sort
    )
    return [DishResponse.model_validate(d) for d in selected]


@app.get("/api/dishes/categories", response_model=list[CategoryCount], tags=["Catalog"])
async def list_categories(
    db: AsyncSession = Depends(get_db),
) -> list[CategoryCount]:
    """Menu tabs with the number of dishes in each."""
    result = await db.execute(select(Dish))
    counts = catalog.category_counts(result.scalars().all())
    labels = {catalog.ALL: "All", **catalog.CATEGORIES}
    return [
        CategoryCount(id=category_id, label=label, count=counts[category_id])
        for category_id, label in labels.items()
    ]


@app.get("/api/dishes/{dish_id}", response_model=DishResponse, tags=["Catalog"])
async def get_dish(
    dish_id: str,
    db: AsyncSession = Depends(get_db),
) -> DishResponse:
    dish = await db.get(Dish, dish_id)
    if not dish:
        raise HTTPException(status_code=404, detail=f"Dish {dish_id} not found")
    return DishResponse.model_validate(dish)


@app.get("/api/coupons", response_model=list[CouponResponse], tags=["Catalog"])
async def list_coupons(
    active: bool = Query(False),
    db: AsyncSession = Depends(get_db),
) -> list[CouponResponse]:
    """All coupons, or only active unexpired ones with ?active=true."""
    query = select(Coupon).order_by(Coupon.code)
    if active:
        query = query.where(Coupon.is_active.is_(True))
    result = await db.execute(query)
    coupons = result.scalars().all()
    if active:
        coupons = [c for c in coupons if not has_expired(c.expires_at)]
    return [CouponResponse.model_validate(c) for c in coupons]


# =============================================================================
# ADDRESS ENDPOINTS
# =============================================================================

@app.get(
    "/api/addresses/user/{user_id}",
    response_model=list[AddressResponse],
    tags=["Addresses"],
)
async def list_addresses(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[AddressResponse]:
    ensure_owner(user, user_id)
    result = await db.execute(
        select(Address)
        .where(Address.user_id == user_id)
        .order_by(Address.is_default.desc(), Address.city)
    )
    return [AddressResponse.model_validate(a) for a in result.scalars().all()]


@app.post(
    "/api/addresses",
    response_model=AddressResponse,
    status_code=201,
    tags=["Addresses"],
)
async def create_address(
    data: AddressCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> AddressResponse:
    """Save an address. The first address, or one marked default, becomes the default."""
    ensure_owner(user, data.user_id)

    existing = (await db.execute(
        select(func.count(Address.id)).where(Address.user_id == user.id)
    )).scalar() or 0
    make_default = data.is_default or existing == 0

    if make_default and existing:
        await db.execute(
            update(Address).where(Address.user_id == user.id).values(is_default=False)
        )

    address = Address(**data.model_dump(exclude={"is_default"}), is_default=make_default)
    db.add(address)
    await db.commit()
    await db.refresh(address)

    logger.info(f"Address {address.id} saved for {user.id}")
    return AddressResponse.model_validate(address)


@app.delete("/api/addresses/{address_id}", response_model=MessageResponse, tags=["Addresses"])
async def delete_address(
    address_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    address = await db.get(Address, address_id)
    if address is None or address.user_id != user.id:
        raise HTTPException(status_code=404, detail="Address not found")

    was_default = address.is_default
    await db.delete(address)
    await db.flush()

    if was_default:
        result = await db.execute(
            select(Address).where(Address.user_id == user.id).order_by(Address.city).limit(1)
        )
        replacement = result.scalar_one_or_none()
        if replacement is not None:
            replacement.is_default = True

    await db.commit()
    return MessageResponse(message="Address deleted")


# =============================================================================
# CART ENDPOINTS
# =============================================================================

@app.get("/api/cart", response_model=CartResponse, tags=["Cart"])
async def get_cart(
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> CartResponse:
    return await build_cart_response(db, shopper)


@app.post("/api/cart/items", response_model=CartResponse, tags=["Cart"])
async def add_to_cart(
    item: CartItemRequest,
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> CartResponse:
    if await db.get(Dish, item.dish_id) is None:
        raise HTTPException(status_code=404, detail=f"Dish {item.dish_id} not found")
    shopper.add_item(item.dish_id, item.quantity)
    return await build_cart_response(db, shopper)


@app.patch("/api/cart/items/{dish_id}", response_model=CartResponse, tags=["Cart"])
async def update_cart_item(
    dish_id: str,
    data: CartQuantityUpdate,
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> CartResponse:
    """Change a line's quantity; 0 removes it."""
    if dish_id not in shopper.cart:
        raise HTTPException(status_code=404, detail="Dish is not in the cart")
    shopper.set_quantity(dish_id, data.quantity)
    return await build_cart_response(db, shopper)


@app.delete("/api/cart/items/{dish_id}", response_model=CartResponse, tags=["Cart"])
async def remove_cart_item(
    dish_id: str,
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> CartResponse:
    if not shopper.remove_item(dish_id):
        raise HTTPException(status_code=404, detail="Dish is not in the cart")
    return await build_cart_response(db, shopper)


@app.delete("/api/cart", response_model=CartResponse, tags=["Cart"])
async def clear_cart(
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> CartResponse:
    shopper.clear_cart()
    return await build_cart_response(db, shopper)


@app.post(
    "/api/cart/quote",
    response_model=PricingSummaryResponse,
    responses={400: {"model": ErrorResponse}},
    tags=["Cart"],
)
async def quote_cart(
    data: QuoteRequest,
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
) -> PricingSummaryResponse:
    """Checkout preview with a coupon and reward points applied."""
    available = 0
    if shopper.is_authenticated:
        user = await require_user(shopper, db)
        available = user.reward_points

    _, _, summary = await price_cart(
        db, shopper.cart, data.coupon_code, data.reward_points, available
    )
    return PricingSummaryResponse.model_validate(summary)


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/api/orders",
    response_model=OrderResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderCreate,
    response: Response,
    shopper: ShopperSession = Depends(get_shopper_session),
    db: AsyncSession = Depends(get_db),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=100),
) -> OrderResponse:
    """
    Place an order.

    Items are priced from the catalog, the coupon and reward points are
    validated, and any pricing fields sent by the client must match the
    server's figures. Redeemed points are deducted and earned points
    credited in the same transaction.
    """
    user = await require_user(shopper, db, message="Please sign in to place an order")
    ensure_owner(user, order_data.user_id)

    if not order_data.items:
        raise HTTPException(status_code=400, detail="Your cart is empty")

    user_id = user.id

    if idempotency_key:
        previous = await find_replayed_order(db, idempotency_key, user_id)
        if previous is not None:
            response.status_code = 200
            return OrderResponse.model_validate(previous)

    # Row lock on databases that support it; concurrent checkouts of the
    # same account price against the balance left by the previous one
    await db.refresh(user, with_for_update=True)

    # Delivery address
    if order_data.address_id:
        address = await db.get(Address, order_data.address_id)
        if address is None or address.user_id != user.id:
            raise HTTPException(status_code=404, detail="Address not found")
    else:
        result = await db.execute(
            select(Address)
            .where(Address.user_id == user.id)
            .order_by(Address.is_default.desc(), Address.city)
            .limit(1)
        )
        address = result.scalar_one_or_none()
        if address is None:
            raise HTTPException(status_code=400, detail="Please add a delivery address to continue")

    quantities = checkout.merge_quantities(
        (item.dish_id, item.quantity) for item in order_data.items
    )
    lines, dishes, summary = await price_cart(
        db,
        quantities,
        order_data.coupon_code,
        order_data.reward_points_used,
        user.reward_points,
    )

    mismatched = checkout.mismatched_totals(
        {
            "subtotal": order_data.subtotal,
            "delivery_fee": order_data.delivery_fee,
            "discount": order_data.discount,
            "total": order_data.total,
        },
        summary,
        settings.price_tolerance,
    )
    if mismatched:
        logger.warning(f"Rejected order from {user.id}: mismatched {mismatched}")
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Order totals do not match current prices",
                "fields": mismatched,
                "expected": PricingSummaryResponse.model_validate(summary).model_dump(
                    mode="json", by_alias=True
                ),
            },
        )

    order = Order(
        id=generate_id(),
        user_id=user.id,
        address_id=address.id,
        items=checkout.freeze_items(lines, dishes),
        subtotal=summary.subtotal,
        discount=summary.discount,
        delivery_fee=summary.delivery_fee,
        total=summary.total,
        coupon_code=summary.coupon_code,
        reward_points_used=summary.reward_points_used,
        points_earned=summary.points_earned,
        scheduled_for=order_data.scheduled_for,
        estimated_delivery_time=settings.estimated_delivery_window,
        idempotency_key=idempotency_key,
    )
    try:
        db.add(order)
        await db.flush()
        await rewards.apply_checkout_points(
            db, user, order, summary.reward_points_used, summary.points_earned
        )
        await db.commit()
    except IntegrityError:
        # Another request with the same idempotency key committed first
        await db.rollback()
        previous = None
        if idempotency_key:
            previous = await find_replayed_order(db, idempotency_key, user_id)
        if previous is None:
            raise HTTPException(status_code=409, detail="Order was already submitted")
        response.status_code = 200
        return OrderResponse.model_validate(previous)
    await db.refresh(order)

    logger.info(
        f"Order {order.id[:8]} placed by {user.id}: total {order.total}, "
        f"points -{order.reward_points_used}/+{order.points_earned}"
    )

    # The cart only holds what was just ordered when checking out from the session
    if set(quantities) == set(shopper.cart):
        shopper.clear_cart()

    schedule_status_progression(order.id)
    return OrderResponse.model_validate(order)


@app.get("/api/orders/user/{user_id}", response_model=list[OrderResponse], tags=["Orders"])
async def list_user_orders(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[OrderResponse]:
    """Order history, newest first."""
    ensure_owner(user, user_id)
    result = await db.execute(
        select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
    )
    return [OrderResponse.model_validate(o) for o in result.scalars().all()]


@app.get("/api/orders/{order_id}", response_model=OrderResponse, tags=["Orders"])
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await db.get(Order, order_id)
    if order is None or order.user_id != user.id:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    return OrderResponse.model_validate(order)


@app.post(
    "/api/orders/{order_id}/advance",
    response_model=OrderResponse,
    tags=["Orders"],
    summary="Advance Order Status (Development)",
)
async def advance_order_status(
    order_id: str,
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    """
    Move an order to its next status.

    Stands in for the kitchen in development; in other environments the
    Celery worker advances orders.
    """
    if not settings.is_development:
        raise HTTPException(
            status_code=403,
            detail="Manual status changes are only available in development mode"
        )

    order = await db.get(Order, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

    try:
        order = await advance_order(db, order)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    return OrderResponse.model_validate(order)


# =============================================================================
# REWARD ENDPOINTS
# =============================================================================

@app.get(
    "/api/rewards/user/{user_id}",
    response_model=list[RewardHistoryResponse],
    tags=["Rewards"],
)
async def list_reward_history(
    user_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[RewardHistoryResponse]:
    ensure_owner(user, user_id)
    history = await rewards.get_history(db, user_id)
    return [RewardHistoryResponse.model_validate(h) for h in history]


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(InvalidRedemptionError)
async def invalid_redemption_handler(request: Request, exc: InvalidRedemptionError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "maxRedeemablePoints": exc.allowed},
    )


@app.exception_handler(rewards.InsufficientPointsError)
async def insufficient_points_handler(
    request: Request,
    exc: rewards.InsufficientPointsError,
) -> JSONResponse:
    logger.warning(f"Checkout refused: {exc}")
    return JSONResponse(
        status_code=409,
        content={"detail": "Your reward balance changed, please review your order"},
    )


@app.exception_handler(checkout.UnknownDishError)
async def unknown_dish_handler(request: Request, exc: checkout.UnknownDishError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


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
