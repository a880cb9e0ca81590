"""Tests for the reward point ledger against the test database."""
import pytest

from storefront.database import async_session_maker
from storefront.models import Order, User, generate_id
from storefront.services import rewards


async def _create_user(points=0, bonus=False):
    async with async_session_maker() as db:
        user = User(
            name="Asha",
            email=f"{generate_id()}@example.com",
            password_hash="x",
            reward_points=points,
            welcome_bonus_granted=bonus,
        )
        db.add(user)
        await db.commit()
        return user.id


async def _history(user_id):
    async with async_session_maker() as db:
        return [(h.points, h.reason, h.order_id) for h in await rewards.get_history(db, user_id)]


async def _balance(user_id):
    async with async_session_maker() as db:
        return (await db.get(User, user_id)).reward_points


def test_welcome_bonus_granted_once(client):
    user_id = client.portal.call(_create_user)

    async def grant_twice():
        async with async_session_maker() as db:
            user = await db.get(User, user_id)
            first = await rewards.grant_welcome_bonus(db, user, 150)
            second = await rewards.grant_welcome_bonus(db, user, 150)
            await db.commit()
            return first, second, user.reward_points, user.welcome_bonus_granted

    assert client.portal.call(grant_twice) == (True, False, 150, True)
    assert client.portal.call(_history, user_id) == [(150, rewards.WELCOME_BONUS_REASON, None)]


def test_checkout_points_logged_newest_first(client):
    user_id = client.portal.call(_create_user, 150, True)
    order = Order(id="0123456789abcdef")

    async def checkout():
        async with async_session_maker() as db:
            user = await db.get(User, user_id)
            await rewards.apply_checkout_points(db, user, order, redeemed=50, earned=28)
            await db.commit()
            return user.reward_points

    assert client.portal.call(checkout) == 128
    assert client.portal.call(_history, user_id) == [
        (28, "Earned from order #01234567", order.id),
        (-50, "Redeemed on order #01234567", order.id),
    ]


def test_checkout_without_point_changes_logs_nothing(client):
    user_id = client.portal.call(_create_user, 10, True)

    async def checkout():
        async with async_session_maker() as db:
            user = await db.get(User, user_id)
            await rewards.apply_checkout_points(db, user, Order(id="order-1"), redeemed=0, earned=0)
            await db.commit()

    client.portal.call(checkout)

    assert client.portal.call(_history, user_id) == []
    assert client.portal.call(_balance, user_id) == 10


def test_balance_cannot_go_negative(client):
    user_id = client.portal.call(_create_user, 5, True)

    async def overdraw():
        async with async_session_maker() as db:
            user = await db.get(User, user_id)
            with pytest.raises(rewards.InsufficientPointsError):
                await rewards.record_points_change(db, user, -10, "Redeemed")
            await db.rollback()

    client.portal.call(overdraw)

    assert client.portal.call(_balance, user_id) == 5
    assert client.portal.call(_history, user_id) == []


def test_overlapping_redemptions_cannot_overspend(client):
    """Two sessions read the same balance; only the first redemption goes through."""
    user_id = client.portal.call(_create_user, 150, True)

    async def redeem_twice():
        async with async_session_maker() as first, async_session_maker() as second:
            user_a = await first.get(User, user_id)
            user_b = await second.get(User, user_id)
            assert user_a.reward_points == user_b.reward_points == 150

            await rewards.apply_checkout_points(first, user_a, Order(id=generate_id()), 150, 0)
            await first.commit()

            with pytest.raises(rewards.InsufficientPointsError):
                await rewards.apply_checkout_points(second, user_b, Order(id=generate_id()), 150, 0)
            await second.rollback()
            return user_b.reward_points

    assert client.portal.call(redeem_twice) == 0
    assert client.portal.call(_balance, user_id) == 0
    assert [points for points, _, _ in client.portal.call(_history, user_id)] == [-150]
