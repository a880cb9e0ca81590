"""API tests for the session cart and checkout quotes."""
from decimal import Decimal

from conftest import signup


def _summary(response):
    assert response.status_code == 200, response.text
    data = response.json()
    return data.get("summary", data)


def test_empty_cart(client):
    cart = client.get("/api/cart").json()

    assert cart["items"] == []
    assert Decimal(cart["summary"]["subtotal"]) == Decimal("0")
    assert Decimal(cart["summary"]["deliveryFee"]) == Decimal("40")


def test_add_items_accumulates_quantities(client):
    client.post("/api/cart/items", json={"dishId": "dal", "quantity": 2})
    response = client.post("/api/cart/items", json={"dishId": "kulfi"})
    client.post("/api/cart/items", json={"dishId": "kulfi"})
    cart = client.get("/api/cart").json()

    assert response.status_code == 200
    assert [(line["dish"]["id"], line["quantity"]) for line in cart["items"]] == [
        ("dal", 2),
        ("kulfi", 2),
    ]
    assert Decimal(cart["summary"]["subtotal"]) == Decimal("300")
    assert Decimal(cart["summary"]["total"]) == Decimal("340")


def test_add_unknown_dish(client):
    response = client.post("/api/cart/items", json={"dishId": "pizza"})

    assert response.status_code == 404
    assert client.get("/api/cart").json()["items"] == []


def test_set_quantity_zero_removes_line(client):
    client.post("/api/cart/items", json={"dishId": "dal", "quantity": 2})
    client.post("/api/cart/items", json={"dishId": "naan", "quantity": 3})

    updated = client.patch("/api/cart/items/naan", json={"quantity": 5}).json()
    assert [line["quantity"] for line in updated["items"]] == [2, 5]

    removed = client.patch("/api/cart/items/dal", json={"quantity": 0}).json()
    assert [line["dish"]["id"] for line in removed["items"]] == ["naan"]


def test_remove_and_clear(client):
    client.post("/api/cart/items", json={"dishId": "dal"})
    client.post("/api/cart/items", json={"dishId": "naan"})

    assert client.delete("/api/cart/items/dal").status_code == 200
    assert client.delete("/api/cart/items/dal").status_code == 404

    cart = client.delete("/api/cart").json()
    assert cart["items"] == []


def test_free_delivery_in_cart_summary(client):
    summary = _summary(client.post("/api/cart/items", json={"dishId": "biryani"}))

    assert Decimal(summary["deliveryFee"]) == Decimal("0")
    assert Decimal(summary["total"]) == Decimal("600")
    assert summary["pointsEarned"] == 60


def test_quote_with_coupon_and_points(client):
    signup(client)
    client.post("/api/cart/items", json={"dishId": "dal", "quantity": 2})
    client.post("/api/cart/items", json={"dishId": "kulfi"})

    summary = _summary(
        client.post("/api/cart/quote", json={"couponCode": "flat50", "rewardPoints": 20})
    )

    assert summary["couponCode"] == "FLAT50"
    assert Decimal(summary["couponDiscount"]) == Decimal("50")
    assert Decimal(summary["rewardDiscount"]) == Decimal("2")
    assert Decimal(summary["discount"]) == Decimal("52")
    assert Decimal(summary["total"]) == Decimal("238")
    assert summary["pointsEarned"] == 23
    assert summary["maxRedeemablePoints"] == 50


def test_guest_quote_redeems_nothing(client):
    client.post("/api/cart/items", json={"dishId": "dal", "quantity": 2})

    summary = _summary(client.post("/api/cart/quote", json={"rewardPoints": 20}))

    assert summary["rewardPointsUsed"] == 0
    assert Decimal(summary["total"]) == Decimal("240")


def test_quote_rejects_coupon_below_minimum(client):
    client.post("/api/cart/items", json={"dishId": "dal"})

    response = client.post("/api/cart/quote", json={"couponCode": "FEAST20"})

    assert response.status_code == 400
    assert "minimum order" in response.json()["detail"]


def test_quote_rejects_unknown_and_disabled_coupons(client):
    client.post("/api/cart/items", json={"dishId": "biryani"})

    unknown = client.post("/api/cart/quote", json={"couponCode": "NOPE"})
    paused = client.post("/api/cart/quote", json={"couponCode": "PAUSED"})

    assert unknown.status_code == 400
    assert paused.status_code == 400
    assert "no longer active" in paused.json()["detail"]
