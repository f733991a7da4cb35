"""Unit tests for the Order aggregate and its business rules."""

import pytest

from stockhold.domain.exceptions import InvalidStatusError, ValidationError
from stockhold.domain.model.order import Order, OrderLineItem, OrderStatus
from stockhold.domain.model.value_objects import BuyerInfo, DeliveryInfo, Money, Quantity
from tests.fakes import T0


def _make_item(qty: int = 1, price: int = 15990) -> OrderLineItem:
    """Helper to build a valid line item."""
    return OrderLineItem(
        variant_id=1, sku="TEE-BLK-M", quantity=Quantity(qty), unit_price=Money(price)
    )


def _order(**kwargs) -> Order:
    return Order.create(
        reservation_id=7,
        buyer=BuyerInfo("Ana", "ana@example.com", "123"),
        delivery=DeliveryInfo.of("pickup"),
        items=[_make_item(**kwargs)],
        now=T0,
    )


class TestOrderCreation:

    def test_happy_path(self):
        order = _order(qty=2)
        assert order.status == OrderStatus.PENDING_PAYMENT
        assert order.total == Money(31980)
        assert order.id is None  # assigned by repository

    def test_requires_items(self):
        with pytest.raises(ValidationError, match="at least one item"):
            Order.create(
                7, BuyerInfo("Ana", "a@b.c", "1"), DeliveryInfo.of("pickup"), [], T0
            )


class TestPriceSnapshot:

    def test_line_price_is_frozen(self):
        item = _make_item(qty=1, price=100)
        with pytest.raises(AttributeError):
            item.unit_price = Money(200)  # type: ignore[misc]


class TestReference:

    def test_assigned_once(self):
        order = _order()
        order.assign_reference("ORD-1")
        order.assign_reference("ORD-2")
        assert order.reference == "ORD-1"

    def test_length_limit(self):
        with pytest.raises(ValidationError):
            _order().assign_reference("X" * 33)


class TestStatusTransitions:

    def test_mark_paid(self):
        order = _order()
        order.mark_paid(T0, "REQ-9")
        assert order.status == OrderStatus.PAID
        assert order.paid_at == T0
        assert order.payment_reference == "REQ-9"

    def test_paid_order_cannot_be_paid_again(self):
        order = _order()
        order.mark_paid(T0)
        with pytest.raises(InvalidStatusError):
            order.mark_paid(T0)

    def test_failed_order_cannot_be_updated(self):
        order = _order()
        order.mark_failed(T0)
        with pytest.raises(InvalidStatusError):
            order.update_details(order.buyer, order.delivery, order.items, T0)

    def test_flag_keeps_status(self):
        order = _order()
        order.flag_for_review("late payment", T0)
        assert order.needs_review
        assert order.status == OrderStatus.PENDING_PAYMENT
