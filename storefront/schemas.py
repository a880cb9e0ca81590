"""
Pydantic Schemas for Request/Response Validation

JSON bodies use camelCase field names (userId, deliveryFee, ...) to match
the storefront client; Python code keeps snake_case attribute names.

Author: Khalil Bannouri
Version: 1.0.0
"""

import re
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    Json,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from storefront.models import AddressType
from storefront.services import order_status
from storefront.services.order_status import OrderStatus


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, readable from ORM objects."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH SCHEMAS
# =============================================================================

class SignupRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=100, examples=["Asha Rao"])
    email: str = Field(..., max_length=255, examples=["asha@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=20, examples=["+91 98765 43210"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not re.match(r'^[\w\.\+-]+@[\w\.-]+\.\w+$', v):
            raise ValueError('Invalid email format')
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() == "":
            return None
        cleaned = re.sub(r'[^\d]', '', v)
        if len(cleaned) < 10:
            raise ValueError('Phone number must have at least 10 digits')
        return v


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(CamelModel):
    """Public view of an account (never includes the password hash)."""
    id: str
    name: str
    email: str
    phone: Optional[str]
    reward_points: int


# =============================================================================
# ADDRESS SCHEMAS
# =============================================================================

class AddressCreate(CamelModel):
    user_id: str
    type: AddressType = AddressType.HOME
    address_line_1: str = Field(..., min_length=3, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=2, max_length=100)
    state: str = Field(..., min_length=2, max_length=100)
    pincode: str = Field(..., examples=["560001"])
    landmark: Optional[str] = Field(None, max_length=255)
    proof_image_url: Optional[str] = Field(None, max_length=500)
    is_default: bool = False

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, v: str) -> str:
        if not re.match(r'^\d{6}$', v.strip()):
            raise ValueError('Pincode must be 6 digits')
        return v.strip()


class AddressResponse(CamelModel):
    id: str
    user_id: str
    type: AddressType
    address_line_1: str
    address_line_2: Optional[str]
    city: str
    state: str
    pincode: str
    landmark: Optional[str]
    proof_image_url: Optional[str]
    is_default: bool


# =============================================================================
# CATALOG SCHEMAS
# =============================================================================

class DishResponse(CamelModel):
    id: str
    name: str
    description: str
    category: str
    price: Decimal
    image_url: str
    is_veg: bool
    is_popular: bool
    is_new: bool
    is_chef_special: bool
    rating: Optional[Decimal]
    review_count: int


class CategoryCount(CamelModel):
    id: str
    label: str
    count: int


class CouponResponse(CamelModel):
    id: str
    code: str
    description: str
    discount_type: str
    discount_value: Decimal
    min_order_value: Optional[Decimal]
    max_discount: Optional[Decimal]
    expires_at: datetime
    is_active: bool


# =============================================================================
# PRICING / CART SCHEMAS
# =============================================================================

class PricingSummaryResponse(CamelModel):
    """Priced order, as shown in the cart drawer."""
    subtotal: Decimal
    delivery_fee: Decimal
    discount: Decimal
    total: Decimal
    points_earned: int
    reward_discount: Decimal
    coupon_discount: Decimal
    reward_points_used: int
    max_redeemable_points: int
    coupon_code: Optional[str] = None


class CartItemRequest(CamelModel):
    dish_id: str
    quantity: int = Field(default=1, ge=1, le=99)


class CartQuantityUpdate(CamelModel):
    """Setting the quantity to 0 removes the line."""
    quantity: int = Field(..., ge=0, le=99)


class CartLineResponse(CamelModel):
    dish: DishResponse
    quantity: int
    line_total: Decimal


class CartResponse(CamelModel):
    items: List[CartLineResponse]
    summary: PricingSummaryResponse


class QuoteRequest(CamelModel):
    coupon_code: Optional[str] = Field(None, max_length=50)
    reward_points: int = Field(default=0, ge=0)


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItemIn(CamelModel):
    """Cart line as submitted at checkout. Client prices are ignored."""
    dish_id: str
    quantity: int = Field(..., ge=1, le=99)


class OrderCreate(CamelModel):
    """
    Checkout request.

    Pricing fields are optional; when present they must match the
    server-side computation.
    """
    user_id: str
    address_id: Optional[str] = None
    items: Json[List[OrderItemIn]]
    subtotal: Optional[Decimal] = None
    discount: Optional[Decimal] = None
    delivery_fee: Optional[Decimal] = None
    total: Optional[Decimal] = None
    coupon_code: Optional[str] = Field(None, max_length=50)
    reward_points_used: int = Field(default=0, ge=0)
    status: Optional[str] = Field(default="received")
    scheduled_for: Optional[datetime] = None
    estimated_delivery_time: Optional[str] = None

    @field_validator("coupon_code")
    @classmethod
    def normalize_coupon_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v.strip() == "":
            return None
        return v.strip().upper()


class OrderResponse(CamelModel):
    id: str
    user_id: str
    address_id: str
    items: str
    subtotal: Decimal
    discount: Decimal
    delivery_fee: Decimal
    total: Decimal
    coupon_code: Optional[str]
    reward_points_used: int
    points_earned: int
    status: OrderStatus
    scheduled_for: Optional[datetime]
    estimated_delivery_time: Optional[str]
    created_at: Optional[datetime]

    @computed_field(alias="statusLabel")
    @property
    def status_label(self) -> str:
        return order_status.describe(self.status).label

    @computed_field(alias="progress")
    @property
    def progress(self) -> float:
        return order_status.progress(self.status)


class RewardHistoryResponse(CamelModel):
    id: int
    user_id: str
    points: int
    reason: str
    order_id: Optional[str]
    created_at: Optional[datetime]


# =============================================================================
# GENERIC RESPONSES
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    redis: str
    timestamp: datetime
