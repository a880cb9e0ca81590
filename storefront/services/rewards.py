"""
Reward Point Ledger

Every change to a user's balance goes through record_points_change(),
which updates the balance with a single conditional UPDATE and appends a
reward_history row in the same database session. A balance that would go
negative is refused at the database, so overlapping checkouts cannot spend
the same points twice. Callers commit.

Author: Khalil_Bannouri
Version: 1.0.0
"""

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models import Order, RewardHistory, User

logger = logging.getLogger(__name__)

WELCOME_BONUS_REASON = "Welcome bonus"
REDEEMED_REASON = "Redeemed on order #{order_ref}"
EARNED_REASON = "Earned from order #{order_ref}"


class InsufficientPointsError(ValueError):
    pass


async def record_points_change(
    db: AsyncSession,
    user: User,
    points: int,
    reason: str,
    order_id: Optional[str] = None,
) -> RewardHistory:
    """
    Apply a signed point change and log it.

    The balance is changed by a single conditional UPDATE, so concurrent
    transactions can never take it below zero; `user.reward_points` is
    reloaded afterwards.

    Raises:
        InsufficientPointsError: If the balance would become negative
    """
    result = await db.execute(
        update(User)
        .where(User.id == user.id, User.reward_points + points >= 0)
        .values(reward_points=User.reward_points + points)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(user, ["reward_points"])
    if result.rowcount == 0:
        raise InsufficientPointsError(
            f"Cannot deduct {-points} points from a balance of {user.reward_points}"
        )

    entry = RewardHistory(
        user_id=user.id,
        points=points,
        reason=reason,
        order_id=order_id,
    )
    db.add(entry)
    logger.debug(f"Reward points {points:+d} for {user.id} ({reason})")
    return entry


async def grant_welcome_bonus(db: AsyncSession, user: User, points: int) -> bool:
    """
    Grant the one-time signup bonus.

    Returns:
        True if granted now, False if the account already had it
    """
    if user.welcome_bonus_granted:
        return False

    await record_points_change(db, user, points, WELCOME_BONUS_REASON)
    user.welcome_bonus_granted = True
    logger.info(f"Welcome bonus of {points} points granted to {user.id}")
    return True


async def apply_checkout_points(
    db: AsyncSession,
    user: User,
    order: Order,
    redeemed: int,
    earned: int,
) -> None:
    """Deduct redeemed points, then credit earned points, for a placed order."""
    order_ref = order.id[:8]
    if redeemed:
        await record_points_change(
            db, user, -redeemed, REDEEMED_REASON.format(order_ref=order_ref), order.id
        )
    if earned:
        await record_points_change(
            db, user, earned, EARNED_REASON.format(order_ref=order_ref), order.id
        )


async def get_history(db: AsyncSession, user_id: str) -> list[RewardHistory]:
    """Reward history of a user, newest first."""
    result = await db.execute(
        select(RewardHistory)
        .where(RewardHistory.user_id == user_id)
        # Rows written by one checkout share a timestamp; the id keeps insertion order
        .order_by(RewardHistory.created_at.desc(), RewardHistory.id.desc())
    )
    return list(result.scalars().all())
