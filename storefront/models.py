"""
SQLAlchemy Database Models

Storefront schema:
- Users with reward point balances
- Address book
- Dish catalog and coupons
- Orders with frozen pricing snapshots
- Reward history ledger

Author: Khalil Bannouri
Version: 1.0.0
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from storefront.database import Base
from storefront.services.order_status import OrderStatus


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class AddressType(str, enum.Enum):
    HOME = "home"
    WORK = "work"
    OTHER = "other"


class User(Base):
    """Storefront customer account."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    # =========================================================================
    # REWARDS
    # =========================================================================
    reward_points = Column(Integer, nullable=False, default=0)
    welcome_bonus_granted = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User {self.email} - {self.reward_points} pts>"


class Address(Base):
    """Saved delivery address."""
    __tablename__ = "addresses"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(
        Enum(AddressType, values_callable=_enum_values, native_enum=False, length=16),
        nullable=False,
        default=AddressType.HOME,
    )
    address_line_1 = Column(String(255), nullable=False)
    address_line_2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pincode = Column(String(10), nullable=False)
    landmark = Column(String(255), nullable=True)
    proof_image_url = Column(String(500), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<Address {self.id} - {self.city} {self.pincode}>"


class Dish(Base):
    """Menu item."""
    __tablename__ = "dishes"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String(500), nullable=False)

    # =========================================================================
    # BADGES
    # =========================================================================
    is_veg = Column(Boolean, nullable=False, default=True)
    is_popular = Column(Boolean, nullable=False, default=False)
    is_new = Column(Boolean, nullable=False, default=False)
    is_chef_special = Column(Boolean, nullable=False, default=False)

    rating = Column(Numeric(3, 2), nullable=True, default=0)
    review_count = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Dish {self.name} - {self.price}>"


class Coupon(Base):
    """Discount code."""
    __tablename__ = "coupons"

    id = Column(String(36), primary_key=True, default=generate_id)
    code = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=False)
    discount_type = Column(String(20), nullable=False)  # percentage, fixed
    discount_value = Column(Numeric(10, 2), nullable=False)
    min_order_value = Column(Numeric(10, 2), nullable=True)
    max_discount = Column(Numeric(10, 2), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Coupon {self.code} - {self.discount_type} {self.discount_value}>"


class Order(Base):
    """
    Placed order.

    Items and pricing are frozen at checkout; only the status moves afterwards.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    # Plain id: the address may be deleted later, the order keeps its reference
    address_id = Column(String(36), nullable=False)

    # =========================================================================
    # ORDER DETAILS
    # =========================================================================
    items = Column(Text, nullable=False)  # JSON string of ordered items

    # =========================================================================
    # PRICING
    # =========================================================================
    subtotal = Column(Numeric(10, 2), nullable=False)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    delivery_fee = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    coupon_code = Column(String(50), nullable=True)
    reward_points_used = Column(Integer, nullable=False, default=0)
    points_earned = Column(Integer, nullable=False, default=0)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus, values_callable=_enum_values, native_enum=False, length=32),
        default=OrderStatus.RECEIVED,
        nullable=False,
        index=True,
    )
    scheduled_for = Column(DateTime(timezone=True), nullable=True)
    estimated_delivery_time = Column(String(50), nullable=True)

    # Repeated submissions with the same key return the original order
    idempotency_key = Column(String(100), nullable=True, unique=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    # Set per row with microseconds so history pages order reliably
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Order {self.id[:8]} - {self.total} - {self.status.value}>"


class RewardHistory(Base):
    """Ledger of reward point changes (positive: earned, negative: redeemed)."""
    __tablename__ = "reward_history"

    # Increasing id breaks ties between rows written in the same transaction
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    def __repr__(self):
        return f"<RewardHistory {self.user_id} {self.points:+d} - {self.reason}>"
