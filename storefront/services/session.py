"""
Shopper Session

State of one browsing session: the signed-in user and the cart. It is
kept in the signed session cookie (Starlette SessionMiddleware) and handed
to route handlers as an explicit object through get_shopper_session(),
never as a module-level singleton. Signing out resets all of it.

Usage:
    @app.post("/api/cart/items")
    async def add_to_cart(
        item: CartItemRequest,
        shopper: ShopperSession = Depends(get_shopper_session),
    ):
        shopper.add_item(item.dish_id, item.quantity)
"""

from typing import MutableMapping, Optional

from fastapi import Request

USER_KEY = "user_id"
CART_KEY = "cart"


class ShopperSession:
    """
    Session context for one browser.

    Attributes:
        data: The underlying session mapping (request.session)
    """

    def __init__(self, data: MutableMapping):
        self.data = data

    # =========================================================================
    # AUTH
    # =========================================================================

    @property
    def user_id(self) -> Optional[str]:
        return self.data.get(USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def sign_in(self, user_id: str) -> None:
        # The cart survives signing in so guests can check out what they picked
        self.data[USER_KEY] = user_id

    def sign_out(self) -> None:
        self.data.clear()

    # =========================================================================
    # CART
    # =========================================================================

    @property
    def cart(self) -> dict[str, int]:
        """Dish id to quantity, in the order dishes were first added."""
        return dict(self.data.get(CART_KEY, {}))

    def _save_cart(self, cart: dict[str, int]) -> None:
        self.data[CART_KEY] = cart

    def add_item(self, dish_id: str, quantity: int = 1) -> int:
        """Add portions of a dish. Returns the new quantity."""
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        cart = self.cart
        cart[dish_id] = cart.get(dish_id, 0) + quantity
        self._save_cart(cart)
        return cart[dish_id]

    def set_quantity(self, dish_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        cart = self.cart
        if quantity <= 0:
            cart.pop(dish_id, None)
        else:
            cart[dish_id] = quantity
        self._save_cart(cart)

    def remove_item(self, dish_id: str) -> bool:
        cart = self.cart
        removed = cart.pop(dish_id, None) is not None
        self._save_cart(cart)
        return removed

    def clear_cart(self) -> None:
        self.data.pop(CART_KEY, None)


def get_shopper_session(request: Request) -> ShopperSession:
    """FastAPI dependency returning the session context of the request."""
    return ShopperSession(request.session)
