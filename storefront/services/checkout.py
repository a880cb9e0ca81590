"""
Checkout Helpers

Glue between stored data and the pricing engine: turn requested
(dish id, quantity) pairs into priced cart lines from database prices,
look up coupons, compare client-submitted totals with the server's, and
freeze the cart into the JSON snapshot stored on the order.
"""

import json
import logging
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import Coupon, Dish
from storefront.services.pricing import CartLine, OrderSummary, quantize_money

logger = logging.getLogger(__name__)

# Client field name -> OrderSummary attribute
CHECKED_FIELDS = {
    "subtotal": "subtotal",
    "delivery_fee": "delivery_fee",
    "discount": "discount",
    "total": "total",
}


class UnknownDishError(LookupError):
    def __init__(self, dish_id: str):
        super().__init__(f"Dish {dish_id} is not on the menu")
        self.dish_id = dish_id


def merge_quantities(items: Iterable[tuple[str, int]]) -> dict[str, int]:
    """Collapse repeated dish ids into one quantity, keeping first-seen order."""
    merged: dict[str, int] = {}
    for dish_id, quantity in items:
        merged[dish_id] = merged.get(dish_id, 0) + quantity
    return merged


async def load_dishes(db: AsyncSession, dish_ids: Iterable[str]) -> dict[str, Dish]:
    ids = list(dish_ids)
    if not ids:
        return {}
    result = await db.execute(select(Dish).where(Dish.id.in_(ids)))
    return {dish.id: dish for dish in result.scalars().all()}


def build_cart_lines(quantities: dict[str, int], dishes: dict[str, Dish]) -> list[CartLine]:
    """
    Price each requested dish from the catalog.

    Raises:
        UnknownDishError: If a dish id is not in the catalog
    """
    lines = []
    for dish_id, quantity in quantities.items():
        dish = dishes.get(dish_id)
        if dish is None:
            raise UnknownDishError(dish_id)
        lines.append(CartLine(dish_id=dish_id, unit_price=dish.price, quantity=quantity))
    return lines


async def find_coupon(db: AsyncSession, code: str) -> Optional[Coupon]:
    result = await db.execute(
        select(Coupon).where(func.upper(Coupon.code) == code.strip().upper())
    )
    return result.scalar_one_or_none()


def mismatched_totals(
    submitted: dict[str, Optional[Decimal]],
    summary: OrderSummary,
    tolerance: Decimal,
) -> list[str]:
    """
    Names of submitted pricing fields that disagree with the server.

    Fields the client left out are not compared.
    """
    mismatched = []
    for field, attribute in CHECKED_FIELDS.items():
        value = submitted.get(field)
        if value is None:
            continue
        expected = getattr(summary, attribute)
        if abs(quantize_money(Decimal(value)) - expected) > tolerance:
            mismatched.append(field)
    return mismatched


def freeze_items(lines: list[CartLine], dishes: dict[str, Dish]) -> str:
    """JSON snapshot of the cart, with the prices the order was charged."""
    return json.dumps([
        {
            "dishId": line.dish_id,
            "name": dishes[line.dish_id].name,
            "quantity": line.quantity,
            "unitPrice": str(quantize_money(line.unit_price)),
            "lineTotal": str(quantize_money(line.line_total)),
        }
        for line in lines
    ])
