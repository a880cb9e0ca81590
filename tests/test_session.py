"""Tests for the shopper session context."""
import pytest

from storefront.services.session import ShopperSession


def test_cart_add_update_remove():
    shopper = ShopperSession({})

    shopper.add_item("dal", 2)
    shopper.add_item("naan")
    shopper.add_item("dal", 1)
    assert shopper.cart == {"dal": 3, "naan": 1}

    shopper.set_quantity("naan", 4)
    assert shopper.cart["naan"] == 4

    shopper.set_quantity("dal", 0)
    assert "dal" not in shopper.cart

    assert shopper.remove_item("naan") is True
    assert shopper.remove_item("naan") is False
    assert shopper.cart == {}


def test_add_item_rejects_non_positive_quantity():
    with pytest.raises(ValueError):
        ShopperSession({}).add_item("dal", 0)


def test_sign_out_resets_user_and_cart():
    data = {}
    shopper = ShopperSession(data)
    shopper.add_item("dal")
    shopper.sign_in("user-1")
    assert shopper.is_authenticated
    assert shopper.cart == {"dal": 1}

    shopper.sign_out()

    assert not shopper.is_authenticated
    assert shopper.cart == {}
    assert data == {}
