"""
Catalog Filtering and Sorting

Pure helpers behind the menu page: narrow a dish list by category,
dietary preference and free-text search, then order it. Works on any
objects exposing the dish attributes (ORM rows or response schemas).
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

ALL = "all"

# Display order of the menu tabs
CATEGORIES: dict[str, str] = {
    "starters": "Starters",
    "main-course": "Main Course",
    "breads": "Breads",
    "desserts": "Desserts",
    "beverages": "Beverages",
}


class DietFilter(str, Enum):
    ALL = "all"
    VEG = "veg"
    NON_VEG = "non-veg"


class SortOrder(str, Enum):
    POPULAR = "popular"
    RATING = "rating"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"


def _number(value: Any) -> Decimal:
    if value is None:
        return Decimal(0)
    return Decimal(str(value))


def matches_category(dish: Any, category: str) -> bool:
    return category == ALL or dish.category == category


def matches_diet(dish: Any, diet: DietFilter) -> bool:
    if diet == DietFilter.VEG:
        return bool(dish.is_veg)
    if diet == DietFilter.NON_VEG:
        return not dish.is_veg
    return True


def matches_search(dish: Any, search: Optional[str]) -> bool:
    if not search:
        return True
    needle = search.lower()
    return needle in dish.name.lower() or needle in dish.description.lower()


# Sort key and direction for each order. Python's sort is stable, so dishes
# with equal keys keep their input order.
_SORT_KEYS = {
    SortOrder.POPULAR: (lambda d: 1 if d.is_popular else 0, True),
    SortOrder.RATING: (lambda d: _number(d.rating), True),
    SortOrder.PRICE_LOW: (lambda d: _number(d.price), False),
    SortOrder.PRICE_HIGH: (lambda d: _number(d.price), True),
}


def sort_dishes(dishes: Iterable[Any], sort_by: SortOrder = SortOrder.POPULAR) -> list:
    key, descending = _SORT_KEYS[SortOrder(sort_by)]
    return sorted(dishes, key=key, reverse=descending)


def filter_dishes(
    dishes: Iterable[Any],
    category: str = ALL,
    diet: DietFilter = DietFilter.ALL,
    search: Optional[str] = None,
    sort_by: SortOrder = SortOrder.POPULAR,
) -> list:
    """
    Apply the menu filters and sort.

    Args:
        dishes: Dishes in catalog order
        category: Category id, or "all"
        diet: veg, non-veg or all
        search: Case-insensitive substring of the name or description
        sort_by: popular, rating, price-low or price-high

    Returns:
        Matching dishes; ties keep their original relative order
    """
    diet = DietFilter(diet)
    selected = [
        dish for dish in dishes
        if matches_category(dish, category)
        and matches_diet(dish, diet)
        and matches_search(dish, search)
    ]
    return sort_dishes(selected, sort_by)


def category_counts(dishes: Sequence[Any]) -> dict[str, int]:
    """Number of dishes per known category, plus the "all" total."""
    counts = {ALL: len(dishes)}
    for category_id in CATEGORIES:
        counts[category_id] = sum(1 for d in dishes if d.category == category_id)
    return counts
