"""Tests for the order pricing engine."""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.services.pricing import (
    CartLine,
    CouponTerms,
    InvalidRedemptionError,
    PricingConfig,
    RedemptionPolicy,
    compute_summary,
    coupon_rejection_reason,
    max_redeemable_points,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _lines(*pairs):
    return [CartLine(dish_id=f"d{i}", unit_price=Decimal(price), quantity=qty)
            for i, (price, qty) in enumerate(pairs)]


def _coupon(**overrides):
    data = dict(
        code="FEAST20",
        discount_type="percentage",
        discount_value=Decimal("20"),
        expires_at=NOW + timedelta(days=1),
        is_active=True,
        min_order_value=None,
        max_discount=None,
    )
    data.update(overrides)
    return CouponTerms(**data)


def test_subtotal_and_delivery_fee_without_discounts():
    summary = compute_summary(_lines(("100", 2), ("50", 1)), as_of=NOW)

    assert summary.subtotal == Decimal("250.00")
    assert summary.delivery_fee == Decimal("40.00")
    assert summary.discount == Decimal("0.00")
    assert summary.total == Decimal("290.00")
    assert summary.points_earned == 29


def test_free_delivery_above_threshold():
    summary = compute_summary(_lines(("600", 1)), as_of=NOW)

    assert summary.delivery_fee == Decimal("0.00")
    assert summary.total == Decimal("600.00")
    assert summary.points_earned == 60


def test_delivery_charged_at_exactly_threshold():
    summary = compute_summary(_lines(("500", 1)), as_of=NOW)

    assert summary.delivery_fee == Decimal("40.00")
    assert summary.total == Decimal("540.00")


def test_empty_cart():
    summary = compute_summary([], as_of=NOW)

    assert summary.subtotal == Decimal("0.00")
    assert summary.delivery_fee == Decimal("40.00")
    assert summary.total == Decimal("40.00")
    assert summary.max_redeemable_points == 0


def test_redemption_clamped_to_twenty_percent_of_subtotal():
    summary = compute_summary(
        _lines(("200", 1)),
        reward_points_requested=100,
        available_reward_points=1000,
        as_of=NOW,
    )

    assert summary.max_redeemable_points == 40
    assert summary.reward_points_used == 40
    assert summary.reward_discount == Decimal("4.00")
    assert summary.discount == Decimal("4.00")
    assert summary.total == Decimal("236.00")


def test_redemption_limited_by_balance():
    assert max_redeemable_points(Decimal("1000"), 30, PricingConfig()) == 30


def test_max_redeemable_points_floors_fractional_cap():
    # 20% of 99.50 is 19.9
    assert max_redeemable_points(Decimal("99.50"), 1000, PricingConfig()) == 19


def test_reject_policy_raises_on_over_redemption():
    config = PricingConfig(redemption_policy=RedemptionPolicy.REJECT)

    with pytest.raises(InvalidRedemptionError) as exc_info:
        compute_summary(
            _lines(("200", 1)),
            reward_points_requested=100,
            available_reward_points=1000,
            as_of=NOW,
            config=config,
        )
    assert exc_info.value.allowed == 40


def test_reject_policy_reports_insufficient_balance():
    config = PricingConfig(redemption_policy=RedemptionPolicy.REJECT)

    with pytest.raises(InvalidRedemptionError, match="only 10 are available"):
        compute_summary(
            _lines(("1000", 1)),
            reward_points_requested=50,
            available_reward_points=10,
            as_of=NOW,
            config=config,
        )


def test_negative_redemption_always_rejected():
    with pytest.raises(InvalidRedemptionError):
        compute_summary(_lines(("100", 1)), reward_points_requested=-5, as_of=NOW)


def test_percentage_coupon_capped_by_max_discount():
    coupon = _coupon(max_discount=Decimal("150"))
    summary = compute_summary(_lines(("1000", 1)), coupon=coupon, as_of=NOW)

    assert summary.coupon_discount == Decimal("150.00")
    assert summary.coupon_code == "FEAST20"
    assert summary.total == Decimal("850.00")


def test_fixed_coupon_and_points_are_additive():
    coupon = _coupon(code="FLAT50", discount_type="fixed", discount_value=Decimal("50"))
    summary = compute_summary(
        _lines(("300", 1)),
        coupon=coupon,
        reward_points_requested=60,
        available_reward_points=500,
        as_of=NOW,
    )

    assert summary.reward_discount == Decimal("6.00")
    assert summary.coupon_discount == Decimal("50.00")
    assert summary.discount == Decimal("56.00")
    assert summary.total == Decimal("284.00")
    assert summary.points_earned == 28


def test_coupon_ignored_below_minimum_order():
    coupon = _coupon(min_order_value=Decimal("500"))
    summary = compute_summary(_lines(("100", 1)), coupon=coupon, as_of=NOW)

    assert summary.coupon_discount == Decimal("0")
    assert summary.coupon_code is None
    assert "minimum order" in coupon_rejection_reason(coupon, Decimal("100"), NOW)


def test_expired_and_inactive_coupons_do_not_apply():
    expired = _coupon(expires_at=NOW - timedelta(seconds=1))
    inactive = _coupon(is_active=False)

    assert "expired" in coupon_rejection_reason(expired, Decimal("1000"), NOW)
    assert "no longer active" in coupon_rejection_reason(inactive, Decimal("1000"), NOW)
    assert compute_summary(_lines(("1000", 1)), coupon=expired, as_of=NOW).coupon_code is None


def test_naive_expiry_treated_as_utc():
    coupon = _coupon(expires_at=(NOW + timedelta(hours=1)).replace(tzinfo=None))

    assert coupon_rejection_reason(coupon, Decimal("100"), NOW) is None


def test_total_never_negative():
    coupon = _coupon(code="BIG", discount_type="fixed", discount_value=Decimal("500"))
    summary = compute_summary(_lines(("100", 1)), coupon=coupon, as_of=NOW)

    assert summary.total == Decimal("0.00")
    assert summary.points_earned == 0


def test_configurable_delivery_rules():
    config = PricingConfig(delivery_fee=Decimal("25"), free_delivery_threshold=Decimal("200"))

    assert compute_summary(_lines(("150", 1)), as_of=NOW, config=config).delivery_fee == Decimal("25.00")
    assert compute_summary(_lines(("250", 1)), as_of=NOW, config=config).delivery_fee == Decimal("0.00")


def test_compute_summary_is_deterministic():
    lines = _lines(("123.45", 3), ("10", 2))
    coupon = _coupon(max_discount=Decimal("40"))

    first = compute_summary(lines, coupon, 25, 100, as_of=NOW)
    second = compute_summary(lines, coupon, 25, 100, as_of=NOW)

    assert first == second


def test_cart_line_requires_positive_quantity():
    with pytest.raises(ValueError):
        CartLine(dish_id="d1", unit_price=Decimal("10"), quantity=0)


def test_cart_line_accepts_float_prices_without_drift():
    line = CartLine(dish_id="d1", unit_price=0.1, quantity=3)

    assert line.line_total == Decimal("0.3")
