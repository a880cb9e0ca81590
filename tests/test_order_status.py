"""Tests for the order status lifecycle table."""
import pytest

from storefront.services import order_status
from storefront.services.order_status import InvalidStatusTransition, OrderStatus


def test_lifecycle_order():
    assert order_status.STATUS_FLOW == [
        OrderStatus.RECEIVED,
        OrderStatus.PREPARING,
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.DELIVERED,
    ]


def test_next_status_walks_forward_one_step():
    assert order_status.next_status(OrderStatus.RECEIVED) == OrderStatus.PREPARING
    assert order_status.next_status("preparing") == OrderStatus.OUT_FOR_DELIVERY
    assert order_status.next_status(OrderStatus.DELIVERED) is None


def test_descriptor_labels_and_progress():
    assert order_status.describe("out-for-delivery").label == "Out for Delivery"
    assert order_status.progress(OrderStatus.RECEIVED) == 0.0
    assert order_status.progress(OrderStatus.DELIVERED) == 1.0


def test_advance_past_delivered_fails():
    assert order_status.is_final(OrderStatus.DELIVERED)
    with pytest.raises(InvalidStatusTransition):
        order_status.advance(OrderStatus.DELIVERED)


def test_unknown_status_rejected():
    with pytest.raises(ValueError):
        order_status.describe("cancelled")
