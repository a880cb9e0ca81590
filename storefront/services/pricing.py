"""
Order Pricing Engine

Pure checkout arithmetic shared by the cart quote endpoint and order
creation. Order creation never trusts totals sent by the browser: it
rebuilds the cart from database prices and runs the same computation.

Rules:
    1. subtotal = sum(unit_price * quantity)
    2. delivery fee waived when subtotal > free_delivery_threshold
    3. max redeemable points = floor(min(available, subtotal * max_redemption_ratio))
    4. redeemed points clamp to the max (or fail, with RedemptionPolicy.REJECT)
    5. reward discount = redeemed points * point_value
    6. coupon discount (percentage capped by max_discount, or fixed) adds on top
    7. total = subtotal + delivery fee - discount, never below zero
    8. points earned = floor(total / spend_per_point)

All money is Decimal and quantized to two places on output.

Author: Khalil_Bannouri
Version: 1.0.0
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from enum import Enum
from typing import Any, Iterable, Optional

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


class RedemptionPolicy(str, Enum):
    """How requests above the redeemable maximum are handled."""
    CLAMP = "clamp"
    REJECT = "reject"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class InvalidRedemptionError(ValueError):
    """Raised when a reward point redemption request cannot be honoured."""

    def __init__(self, message: str, requested: int, allowed: int):
        super().__init__(message)
        self.requested = requested
        self.allowed = allowed


def to_decimal(value: Any) -> Decimal:
    """Convert ints, strings and floats to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def floor_int(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


# =============================================================================
# INPUT TYPES
# =============================================================================

@dataclass(frozen=True)
class CartLine:
    """
    One dish in the cart.

    Attributes:
        dish_id: Catalog identifier of the dish
        unit_price: Price of a single portion
        quantity: Number of portions, at least 1
    """
    dish_id: str
    unit_price: Decimal
    quantity: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))
        if self.quantity < 1:
            raise ValueError(f"Quantity for dish {self.dish_id} must be at least 1")
        if self.unit_price < ZERO:
            raise ValueError(f"Unit price for dish {self.dish_id} cannot be negative")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CouponTerms:
    """
    The parts of a coupon that affect pricing.

    Attributes:
        code: Coupon code as typed by the customer
        discount_type: percentage or fixed
        discount_value: Percent (0-100) or flat amount
        expires_at: Moment the coupon stops applying
        is_active: Coupons can be switched off before expiry
        min_order_value: Minimum subtotal, if any
        max_discount: Cap for percentage coupons, if any
    """
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    expires_at: datetime
    is_active: bool = True
    min_order_value: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "discount_type", DiscountType(self.discount_type))
        object.__setattr__(self, "discount_value", to_decimal(self.discount_value))
        if self.min_order_value is not None:
            object.__setattr__(self, "min_order_value", to_decimal(self.min_order_value))
        if self.max_discount is not None:
            object.__setattr__(self, "max_discount", to_decimal(self.max_discount))

    @classmethod
    def from_record(cls, record: Any) -> "CouponTerms":
        """Build terms from any object exposing coupon attributes (e.g. an ORM row)."""
        return cls(
            code=record.code,
            discount_type=record.discount_type,
            discount_value=record.discount_value,
            expires_at=record.expires_at,
            is_active=record.is_active,
            min_order_value=record.min_order_value,
            max_discount=record.max_discount,
        )


@dataclass(frozen=True)
class PricingConfig:
    """Checkout constants. Defaults match the storefront's published rules."""
    delivery_fee: Decimal = Decimal("40")
    free_delivery_threshold: Decimal = Decimal("500")
    point_value: Decimal = Decimal("0.1")
    max_redemption_ratio: Decimal = Decimal("0.2")
    spend_per_point: Decimal = Decimal("10")
    redemption_policy: RedemptionPolicy = RedemptionPolicy.CLAMP


# =============================================================================
# OUTPUT TYPE
# =============================================================================

@dataclass(frozen=True)
class OrderSummary:
    """
    Priced order.

    Attributes:
        subtotal: Sum of all line totals
        delivery_fee: Zero above the free-delivery threshold
        discount: Reward discount plus coupon discount
        total: Amount payable, never negative
        points_earned: Reward points the order earns once placed
        reward_discount: Part of the discount paid with points
        coupon_discount: Part of the discount from the coupon
        reward_points_used: Points actually redeemed after clamping
        max_redeemable_points: Redemption ceiling for this cart
        coupon_code: Code of the applied coupon, None if none applied
    """
    subtotal: Decimal
    delivery_fee: Decimal
    discount: Decimal
    total: Decimal
    points_earned: int
    reward_discount: Decimal = ZERO
    coupon_discount: Decimal = ZERO
    reward_points_used: int = 0
    max_redeemable_points: int = 0
    coupon_code: Optional[str] = None


# =============================================================================
# RULES
# =============================================================================

def compute_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line.line_total for line in lines), ZERO)


def compute_delivery_fee(subtotal: Decimal, config: PricingConfig) -> Decimal:
    return ZERO if subtotal > config.free_delivery_threshold else config.delivery_fee


def max_redeemable_points(
    subtotal: Decimal,
    available_points: int,
    config: PricingConfig,
) -> int:
    """Largest redemption allowed: the balance, capped at a share of the subtotal."""
    available = Decimal(max(available_points, 0))
    return floor_int(min(available, subtotal * config.max_redemption_ratio))


def resolve_redemption(
    requested: int,
    available_points: int,
    max_points: int,
    config: PricingConfig,
) -> int:
    """
    Decide how many points are redeemed.

    Raises:
        InvalidRedemptionError: For negative requests, and for requests
            above the balance or the cap under RedemptionPolicy.REJECT
    """
    if requested < 0:
        raise InvalidRedemptionError(
            "Reward points to redeem cannot be negative", requested, max_points
        )

    if requested <= max_points:
        return requested

    if config.redemption_policy == RedemptionPolicy.REJECT:
        if requested > available_points:
            raise InvalidRedemptionError(
                f"Requested {requested} points but only {available_points} are available",
                requested,
                max_points,
            )
        raise InvalidRedemptionError(
            f"At most {max_points} points can be redeemed on this order",
            requested,
            max_points,
        )

    return max_points


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps (e.g. from SQLite) are stored in UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def has_expired(expires_at: datetime, as_of: Optional[datetime] = None) -> bool:
    as_of = _as_utc(as_of or datetime.now(timezone.utc))
    return _as_utc(expires_at) <= as_of


def coupon_rejection_reason(
    coupon: CouponTerms,
    subtotal: Decimal,
    as_of: Optional[datetime] = None,
) -> Optional[str]:
    """
    Explain why a coupon does not apply to a subtotal.

    Returns:
        A customer-facing reason, or None when the coupon applies
    """
    if not coupon.is_active:
        return f"Coupon {coupon.code} is no longer active"
    if has_expired(coupon.expires_at, as_of):
        return f"Coupon {coupon.code} has expired"
    if coupon.min_order_value is not None and subtotal < coupon.min_order_value:
        return (
            f"Coupon {coupon.code} requires a minimum order of "
            f"{quantize_money(coupon.min_order_value)}"
        )
    return None


def compute_coupon_discount(coupon: CouponTerms, subtotal: Decimal) -> Decimal:
    """Discount granted by an applicable coupon, before quantization."""
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * coupon.discount_value / Decimal(100)
        if coupon.max_discount is not None:
            discount = min(discount, coupon.max_discount)
        return discount
    return coupon.discount_value


def compute_points_earned(total: Decimal, config: PricingConfig) -> int:
    return floor_int(total / config.spend_per_point)


def compute_summary(
    cart_lines: Iterable[CartLine],
    coupon: Optional[CouponTerms] = None,
    reward_points_requested: int = 0,
    available_reward_points: int = 0,
    *,
    as_of: Optional[datetime] = None,
    config: PricingConfig = PricingConfig(),
) -> OrderSummary:
    """
    Price a cart.

    Args:
        cart_lines: Lines of the cart (may be empty)
        coupon: Coupon to try; ignored when it does not apply
        reward_points_requested: Points the customer wants to redeem
        available_reward_points: Customer's current balance
        as_of: Moment used for coupon expiry; pass it for reproducible results
        config: Checkout constants

    Returns:
        OrderSummary: The priced order

    Raises:
        InvalidRedemptionError: See resolve_redemption()
    """
    lines = list(cart_lines)
    subtotal = compute_subtotal(lines)
    delivery_fee = compute_delivery_fee(subtotal, config)

    max_points = max_redeemable_points(subtotal, available_reward_points, config)
    redeemed = resolve_redemption(
        reward_points_requested, available_reward_points, max_points, config
    )
    reward_discount = quantize_money(redeemed * config.point_value)

    coupon_discount = ZERO
    applied_code = None
    if coupon is not None and coupon_rejection_reason(coupon, subtotal, as_of) is None:
        coupon_discount = quantize_money(compute_coupon_discount(coupon, subtotal))
        applied_code = coupon.code

    discount = reward_discount + coupon_discount
    total = max(subtotal + delivery_fee - discount, ZERO)

    return OrderSummary(
        subtotal=quantize_money(subtotal),
        delivery_fee=quantize_money(delivery_fee),
        discount=quantize_money(discount),
        total=quantize_money(total),
        points_earned=compute_points_earned(total, config),
        reward_discount=reward_discount,
        coupon_discount=coupon_discount,
        reward_points_used=redeemed,
        max_redeemable_points=max_points,
        coupon_code=applied_code,
    )
