"""Tests for the CreatePayment use case."""

import pytest

from stockhold.application.create_payment import CreatePaymentHandler
from stockhold.application.create_order import CreateOrderHandler
from stockhold.application.reserve_stock import ReserveStockHandler
from stockhold.domain.exceptions import (
    EntityNotFoundError,
    InvalidStatusError,
    PaymentGatewayError,
    ReservationInactiveError,
)
from tests.fakes import BUYER, FakeClock, FakePaymentGateway, memory_uow_factory, seed_variant


class RefusingGateway(FakePaymentGateway):

    def create_intent(self, request):
        raise PaymentGatewayError("declined by provider")


@pytest.fixture
def env():
    clock = FakeClock()
    uow_factory = memory_uow_factory()
    variant_id = seed_variant(uow_factory)
    reservation = ReserveStockHandler(uow_factory, clock=clock).handle(variant_id, 2)
    order = CreateOrderHandler(uow_factory, clock).handle(
        reservation.id,
        delivery_method="despacho",
        delivery_address="Calle 1, Castro",
        **BUYER,
    )
    return clock, uow_factory, order


def test_assigns_reference_and_builds_request(env):
    clock, uow_factory, order = env
    gateway = FakePaymentGateway()
    intent = CreatePaymentHandler(
        uow_factory, gateway, return_url="https://shop.test/back", clock=clock
    ).handle(order.id, client_ip="200.1.2.3", user_agent="pytest")

    assert intent.reference == f"ORD-{order.id}"
    assert intent.redirect_url == f"https://pay.test/ORD-{order.id}"
    request = gateway.requests[0]
    assert request.amount == 2 * 15990
    assert request.currency == "CLP"
    assert request.delivery_address == "Calle 1, Castro"
    assert request.cancel_url == "https://shop.test/back"
    assert request.lines[0].quantity == 2
    with uow_factory() as uow:
        stored = uow.orders.get_by_id(order.id)
    assert stored.reference == intent.reference
    assert stored.payment_reference == "REQ-1"


def test_retry_keeps_reference(env):
    clock, uow_factory, order = env
    handler = CreatePaymentHandler(uow_factory, FakePaymentGateway(), clock=clock)
    first = handler.handle(order.id)
    second = handler.handle(order.id)
    assert first.reference == second.reference


def test_gateway_refusal_propagates_but_keeps_reference(env):
    clock, uow_factory, order = env
    with pytest.raises(PaymentGatewayError):
        CreatePaymentHandler(uow_factory, RefusingGateway(), clock=clock).handle(order.id)
    with uow_factory() as uow:
        assert uow.orders.get_by_id(order.id).reference == f"ORD-{order.id}"


def test_expired_reservation_cannot_be_paid(env):
    clock, uow_factory, order = env
    clock.advance(minutes=16)
    with pytest.raises(ReservationInactiveError):
        CreatePaymentHandler(uow_factory, FakePaymentGateway(), clock=clock).handle(order.id)


def test_unknown_order(env):
    clock, uow_factory, _ = env
    with pytest.raises(EntityNotFoundError):
        CreatePaymentHandler(uow_factory, FakePaymentGateway(), clock=clock).handle(999)


def test_failed_order_cannot_be_paid(env):
    clock, uow_factory, order = env
    with uow_factory() as uow:
        locked = uow.orders.get_by_reservation_for_update(order.reservation_id)
        locked.mark_failed(clock())
        uow.orders.save(locked)
        uow.commit()
    with pytest.raises(InvalidStatusError):
        CreatePaymentHandler(uow_factory, FakePaymentGateway(), clock=clock).handle(order.id)
