"""
Order Status Lifecycle

Descriptor table for the order lifecycle:

    received → preparing → out-for-delivery → delivered

Orders only ever move forward, one step at a time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    """Order status workflow."""
    RECEIVED = "received"
    PREPARING = "preparing"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"


@dataclass(frozen=True)
class StatusDescriptor:
    label: str
    step: int


STATUS_DESCRIPTORS: dict[OrderStatus, StatusDescriptor] = {
    OrderStatus.RECEIVED: StatusDescriptor("Received", 0),
    OrderStatus.PREPARING: StatusDescriptor("Preparing", 1),
    OrderStatus.OUT_FOR_DELIVERY: StatusDescriptor("Out for Delivery", 2),
    OrderStatus.DELIVERED: StatusDescriptor("Delivered", 3),
}

STATUS_FLOW: list[OrderStatus] = sorted(STATUS_DESCRIPTORS, key=lambda s: STATUS_DESCRIPTORS[s].step)


class InvalidStatusTransition(ValueError):
    pass


def describe(status: OrderStatus) -> StatusDescriptor:
    return STATUS_DESCRIPTORS[OrderStatus(status)]


def is_final(status: OrderStatus) -> bool:
    return OrderStatus(status) == STATUS_FLOW[-1]


def next_status(status: OrderStatus) -> Optional[OrderStatus]:
    """Status following `status`, or None once the order is delivered."""
    step = describe(status).step
    if step + 1 >= len(STATUS_FLOW):
        return None
    return STATUS_FLOW[step + 1]


def progress(status: OrderStatus) -> float:
    """Completed share of the lifecycle, from 0.0 (received) to 1.0 (delivered)."""
    return describe(status).step / (len(STATUS_FLOW) - 1)


def advance(status: OrderStatus) -> OrderStatus:
    """
    Move an order one step forward.

    Raises:
        InvalidStatusTransition: If the order is already delivered
    """
    following = next_status(status)
    if following is None:
        raise InvalidStatusTransition(f"Order is already {OrderStatus(status).value}")
    return following
