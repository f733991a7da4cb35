"""Tests for the CreateOrder use case."""

import threading
from datetime import timedelta

import pytest

from stockhold.application.create_order import CreateOrderHandler
from stockhold.application.dto import OrderItemSpec
from stockhold.application.reserve_stock import ReserveStockHandler
from stockhold.application.update_variant import UpdateVariantHandler
from stockhold.domain.exceptions import (
    EntityNotFoundError,
    ReservationInactiveError,
    ValidationError,
)
from tests.fakes import BUYER, FakeClock, load_variant, memory_uow_factory, seed_variant


@pytest.fixture
def uow_factory():
    return memory_uow_factory()


@pytest.fixture
def clock():
    return FakeClock()


def _setup(uow_factory, clock, stock=5, qty=2):
    variant_id = seed_variant(uow_factory, stock_total=stock)
    reservation = ReserveStockHandler(uow_factory, clock=clock).handle(variant_id, qty)
    return CreateOrderHandler(uow_factory, clock), variant_id, reservation.id


class TestCreateOrderHappyPath:

    def test_snapshots_price_and_quantity(self, uow_factory, clock):
        handler, variant_id, reservation_id = _setup(uow_factory, clock)
        dto = handler.handle(reservation_id, delivery_method="retiro", **BUYER)
        assert dto.status == "pending_payment"
        assert dto.total == 2 * 15990
        assert dto.items[0].variant_id == variant_id
        assert dto.items[0].quantity == 2
        assert dto.delivery_method == "pickup"

    def test_does_not_touch_stock(self, uow_factory, clock):
        handler, variant_id, reservation_id = _setup(uow_factory, clock)
        handler.handle(reservation_id, delivery_method="pickup", **BUYER)
        variant = load_variant(uow_factory, variant_id)
        assert (variant.stock_total, variant.stock_reserved) == (5, 2)

    def test_retry_updates_the_same_order(self, uow_factory, clock):
        handler, _, reservation_id = _setup(uow_factory, clock)
        first = handler.handle(reservation_id, delivery_method="pickup", **BUYER)
        second = handler.handle(
            reservation_id,
            buyer_name="Ana María",
            buyer_email=BUYER["buyer_email"],
            buyer_phone=BUYER["buyer_phone"],
            delivery_method="despacho",
            delivery_address="Calle 1, Castro",
        )
        assert second.id == first.id
        assert second.buyer_name == "Ana María"
        assert second.delivery_address == "Calle 1, Castro"
        with uow_factory() as uow:
            assert uow.orders.get_by_id(first.id + 1) is None

    def test_concurrent_retries_create_one_order(self, uow_factory, clock):
        handler, _, reservation_id = _setup(uow_factory, clock)
        attempts = 8
        barrier = threading.Barrier(attempts)
        order_ids = []

        def submit():
            barrier.wait()
            order_ids.append(
                handler.handle(reservation_id, delivery_method="pickup", **BUYER).id
            )

        threads = [threading.Thread(target=submit) for _ in range(attempts)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert len(order_ids) == attempts
        assert len(set(order_ids)) == 1
        with uow_factory() as uow:
            assert uow.orders.get_by_id(order_ids[0] + 1) is None

    def test_price_change_reaches_retried_order_only_on_retry(self, uow_factory, clock):
        handler, variant_id, reservation_id = _setup(uow_factory, clock)
        first = handler.handle(reservation_id, delivery_method="pickup", **BUYER)
        UpdateVariantHandler(uow_factory).handle(variant_id, price=9990)
        with uow_factory() as uow:
            assert uow.orders.get_by_id(first.id).total.amount == first.total
        retried = handler.handle(reservation_id, delivery_method="pickup", **BUYER)
        assert retried.total == 2 * 9990

    def test_matching_item_specs_accepted(self, uow_factory, clock):
        handler, variant_id, reservation_id = _setup(uow_factory, clock)
        dto = handler.handle(
            reservation_id,
            delivery_method="pickup",
            item_specs=[OrderItemSpec(variant_id, 2)],
            **BUYER,
        )
        assert dto.items[0].quantity == 2


class TestCreateOrderRejections:

    def test_missing_buyer_fields(self, uow_factory, clock):
        handler, _, reservation_id = _setup(uow_factory, clock)
        with pytest.raises(ValidationError, match="Missing buyer data: phone"):
            handler.handle(reservation_id, "Ana", "ana@example.com", "", "pickup")

    def test_shipping_without_address(self, uow_factory, clock):
        handler, _, reservation_id = _setup(uow_factory, clock)
        with pytest.raises(ValidationError, match="address"):
            handler.handle(reservation_id, delivery_method="envio", **BUYER)

    def test_unknown_reservation(self, uow_factory, clock):
        handler, _, _ = _setup(uow_factory, clock)
        with pytest.raises(EntityNotFoundError):
            handler.handle(404, delivery_method="pickup", **BUYER)

    def test_expired_reservation(self, uow_factory, clock):
        handler, _, reservation_id = _setup(uow_factory, clock)
        clock.advance(minutes=15)
        with pytest.raises(ReservationInactiveError) as exc_info:
            handler.handle(reservation_id, delivery_method="pickup", **BUYER)
        payload = exc_info.value.to_dict()
        assert payload["error"] == "reservation_expired_or_inactive"
        assert payload["reservation_id"] == reservation_id

    def test_item_specs_must_match_hold(self, uow_factory, clock):
        handler, variant_id, reservation_id = _setup(uow_factory, clock)
        with pytest.raises(ValidationError, match="holds 2"):
            handler.handle(
                reservation_id,
                delivery_method="pickup",
                item_specs=[OrderItemSpec(variant_id, 3)],
                **BUYER,
            )

    def test_item_specs_for_other_variant(self, uow_factory, clock):
        handler, variant_id, reservation_id = _setup(uow_factory, clock)
        with pytest.raises(ValidationError, match="not held"):
            handler.handle(
                reservation_id,
                delivery_method="pickup",
                item_specs=[OrderItemSpec(variant_id + 1, 2)],
                **BUYER,
            )
