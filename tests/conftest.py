"""Pytest fixtures: app client on a throwaway SQLite database, sample catalog."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal

_DB_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/storefront.db"
os.environ["ENV_MODE"] = "development"
os.environ["SEED_CATALOG"] = "false"
os.environ["ORDER_PROGRESSION_ENABLED"] = "false"
os.environ["SESSION_SECRET"] = "test-session-secret"

import pytest
from fastapi.testclient import TestClient

from storefront.database import async_session_maker, drop_db, init_db
from storefront.main import app
from storefront.models import Coupon, Dish


async def _reset_database() -> None:
    await drop_db()
    await init_db()


def _dish(dish_id, name, category, price, is_veg=True, is_popular=False, rating="4.0", description=None):
    return Dish(
        id=dish_id,
        name=name,
        description=description or f"House {name.lower()}",
        category=category,
        price=Decimal(price),
        image_url=f"/images/{dish_id}.jpg",
        is_veg=is_veg,
        is_popular=is_popular,
        rating=Decimal(rating),
        review_count=10,
    )


def sample_dishes() -> list[Dish]:
    return [
        _dish("dal", "Dal Tadka", "main-course", "100.00", rating="4.2"),
        _dish("biryani", "Chicken Biryani", "main-course", "600.00", is_veg=False, is_popular=True, rating="4.8"),
        _dish("kulfi", "Pista Kulfi", "desserts", "50.00", is_popular=True, rating="4.5"),
        _dish("brownie", "Egg Brownie", "desserts", "120.00", is_veg=False, rating="4.0"),
        _dish("naan", "Butter Naan", "breads", "40.00", rating="4.1", description="Tandoor bread with butter"),
    ]


def sample_coupons() -> list[Coupon]:
    now = datetime.now(timezone.utc)
    return [
        Coupon(
            code="FEAST20",
            description="20% off up to 150",
            discount_type="percentage",
            discount_value=Decimal("20"),
            min_order_value=Decimal("500"),
            max_discount=Decimal("150"),
            expires_at=now + timedelta(days=30),
            is_active=True,
        ),
        Coupon(
            code="FLAT50",
            description="Flat 50 off",
            discount_type="fixed",
            discount_value=Decimal("50"),
            min_order_value=Decimal("200"),
            expires_at=now + timedelta(days=30),
            is_active=True,
        ),
        Coupon(
            code="OLD10",
            description="Expired offer",
            discount_type="percentage",
            discount_value=Decimal("10"),
            expires_at=now - timedelta(days=1),
            is_active=True,
        ),
        Coupon(
            code="PAUSED",
            description="Switched off",
            discount_type="fixed",
            discount_value=Decimal("30"),
            expires_at=now + timedelta(days=30),
            is_active=False,
        ),
    ]


async def _insert_catalog() -> None:
    async with async_session_maker() as db:
        db.add_all(sample_dishes())
        db.add_all(sample_coupons())
        await db.commit()


@pytest.fixture
def client():
    with TestClient(app) as c:
        c.portal.call(_reset_database)
        c.portal.call(_insert_catalog)
        yield c


def signup(client, email="asha@example.com", name="Asha Rao", password="secret123"):
    response = client.post(
        "/api/auth/signup",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()


def add_address(client, user_id, **overrides):
    payload = {
        "userId": user_id,
        "type": "home",
        "addressLine1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    }
    payload.update(overrides)
    response = client.post("/api/addresses", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def shopper(client):
    """Signed-in user with one saved address."""
    user = signup(client)
    address = add_address(client, user["id"])
    return {"user": user, "address": address}
