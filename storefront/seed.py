"""
Catalog Seed Data

Sample menu and coupons loaded into an empty database at startup in
development mode (SEED_CATALOG=true).
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import Coupon, Dish

logger = logging.getLogger(__name__)

SAMPLE_DISHES = [
    {
        "name": "Paneer Tikka",
        "description": "Cottage cheese cubes marinated in spiced yogurt and grilled in the tandoor",
        "category": "starters",
        "price": Decimal("249.00"),
        "is_veg": True,
        "is_popular": True,
        "rating": Decimal("4.60"),
        "review_count": 128,
    },
    {
        "name": "Chicken 65",
        "description": "Crispy fried chicken tossed with curry leaves and red chillies",
        "category": "starters",
        "price": Decimal("279.00"),
        "is_veg": False,
        "is_popular": True,
        "rating": Decimal("4.50"),
        "review_count": 96,
    },
    {
        "name": "Butter Chicken",
        "description": "Tandoori chicken simmered in a creamy tomato and butter gravy",
        "category": "main-course",
        "price": Decimal("349.00"),
        "is_veg": False,
        "is_popular": True,
        "is_chef_special": True,
        "rating": Decimal("4.80"),
        "review_count": 240,
    },
    {
        "name": "Dal Makhani",
        "description": "Black lentils slow cooked overnight with butter and cream",
        "category": "main-course",
        "price": Decimal("229.00"),
        "is_veg": True,
        "rating": Decimal("4.40"),
        "review_count": 87,
    },
    {
        "name": "Garlic Naan",
        "description": "Leavened flatbread brushed with garlic butter",
        "category": "breads",
        "price": Decimal("69.00"),
        "is_veg": True,
        "rating": Decimal("4.30"),
        "review_count": 150,
    },
    {
        "name": "Gulab Jamun",
        "description": "Milk dumplings soaked in rose and cardamom syrup",
        "category": "desserts",
        "price": Decimal("99.00"),
        "is_veg": True,
        "is_popular": True,
        "rating": Decimal("4.70"),
        "review_count": 110,
    },
    {
        "name": "Mango Lassi",
        "description": "Chilled yogurt drink blended with Alphonso mango",
        "category": "beverages",
        "price": Decimal("119.00"),
        "is_veg": True,
        "is_new": True,
        "rating": Decimal("4.50"),
        "review_count": 64,
    },
]


def sample_coupons(now: datetime) -> list[dict]:
    expires = now + timedelta(days=365)
    return [
        {
            "code": "WELCOME50",
            "description": "Flat 50 off on orders above 299",
            "discount_type": "fixed",
            "discount_value": Decimal("50"),
            "min_order_value": Decimal("299"),
            "expires_at": expires,
        },
        {
            "code": "FEAST20",
            "description": "20% off up to 150 on orders above 500",
            "discount_type": "percentage",
            "discount_value": Decimal("20"),
            "min_order_value": Decimal("500"),
            "max_discount": Decimal("150"),
            "expires_at": expires,
        },
    ]


async def seed_catalog(db: AsyncSession) -> bool:
    """
    Insert the sample catalog if the dishes table is empty.

    Returns:
        True if data was inserted
    """
    count = (await db.execute(select(func.count(Dish.id)))).scalar() or 0
    if count:
        logger.debug(f"Catalog already has {count} dishes, skipping seed")
        return False

    for data in SAMPLE_DISHES:
        slug = data["name"].lower().replace(" ", "-")
        db.add(Dish(image_url=f"/images/dishes/{slug}.jpg", **data))

    existing = (await db.execute(select(func.count(Coupon.id)))).scalar() or 0
    if not existing:
        for data in sample_coupons(datetime.now(timezone.utc)):
            db.add(Coupon(**data))

    await db.commit()
    logger.info(f"✅ Seeded {len(SAMPLE_DISHES)} dishes")
    return True
