"""
Celery Tasks
Background tasks walking placed orders through their status lifecycle.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.celery_worker import celery_app
from storefront.core.config import get_settings
from storefront.database import async_session_maker, engine
from storefront.models import Order
from storefront.services import order_status

logger = logging.getLogger(__name__)


async def advance_order(db: AsyncSession, order: Order) -> Order:
    """
    Move a stored order one status forward and commit.

    Raises:
        InvalidStatusTransition: If the order is already delivered
    """
    previous = order.status
    order.status = order_status.advance(order.status)
    await db.commit()
    await db.refresh(order)
    logger.info(f"Order {order.id[:8]}: {previous.value} → {order.status.value}")
    return order


async def _advance_by_id(order_id: str) -> Optional[str]:
    try:
        async with async_session_maker() as db:
            result = await db.execute(select(Order).where(Order.id == order_id))
            order = result.scalar_one_or_none()
            if order is None:
                logger.warning(f"Order {order_id} not found, nothing to advance")
                return None
            if order_status.is_final(order.status):
                return order.status.value
            order = await advance_order(db, order)
            return order.status.value
    finally:
        # Pooled connections are bound to this event loop
        await engine.dispose()


def schedule_status_progression(order_id: str) -> bool:
    """
    Queue the next status step of an order.

    Broker failures are logged and never propagate to the caller.

    Returns:
        True if the task was queued
    """
    settings = get_settings()
    if not settings.order_progression_enabled:
        return False
    try:
        advance_order_status.apply_async(
            (order_id,),
            countdown=settings.order_status_step_minutes * 60,
        )
        return True
    except Exception as e:
        logger.warning(f"Could not queue status progression for {order_id}: {e}")
        return False


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def advance_order_status(self, order_id: str) -> dict:
    """
    Advance an order one status step and schedule the next one.

    Args:
        order_id: Order to advance

    Returns:
        dict: New status of the order
    """
    task_id = self.request.id
    logger.info(f"📋 Task {task_id}: advancing order {order_id}")

    status = asyncio.run(_advance_by_id(order_id))

    if status is not None and status != order_status.STATUS_FLOW[-1].value:
        schedule_status_progression(order_id)

    return {
        'task_id': task_id,
        'order_id': order_id,
        'status': status,
        'timestamp': datetime.now().isoformat(),
    }

