"""Tests for the ReserveStock use case, including concurrent holds."""

import threading
from datetime import timedelta

import pytest

from stockhold.application.reserve_stock import ReserveStockHandler
from stockhold.domain.exceptions import OutOfStockError, ValidationError
from tests.fakes import FakeClock, T0, load_variant, memory_uow_factory, seed_variant


@pytest.fixture
def uow_factory():
    return memory_uow_factory()


class TestReserveHappyPath:

    def test_returns_active_reservation(self, uow_factory):
        variant_id = seed_variant(uow_factory, stock_total=5)
        handler = ReserveStockHandler(uow_factory, clock=FakeClock())
        dto = handler.handle(variant_id, 2)
        assert dto.status == "active"
        assert dto.quantity == 2
        assert dto.expires_at == (T0 + timedelta(minutes=15)).isoformat()

    def test_increments_reserved_only(self, uow_factory):
        variant_id = seed_variant(uow_factory, stock_total=5)
        ReserveStockHandler(uow_factory).handle(variant_id, 2)
        variant = load_variant(uow_factory, variant_id)
        assert (variant.stock_total, variant.stock_reserved) == (5, 2)

    def test_custom_ttl(self, uow_factory):
        variant_id = seed_variant(uow_factory)
        handler = ReserveStockHandler(uow_factory, ttl=timedelta(seconds=1), clock=FakeClock())
        dto = handler.handle(variant_id, 1)
        assert dto.expires_at == (T0 + timedelta(seconds=1)).isoformat()


class TestReserveRejections:

    def test_out_of_stock_reports_available(self, uow_factory):
        variant_id = seed_variant(uow_factory, stock_total=5)
        handler = ReserveStockHandler(uow_factory)
        handler.handle(variant_id, 5)
        with pytest.raises(OutOfStockError) as exc_info:
            handler.handle(variant_id, 1)
        assert exc_info.value.available == 0
        assert load_variant(uow_factory, variant_id).stock_reserved == 5

    def test_zero_quantity(self, uow_factory):
        variant_id = seed_variant(uow_factory)
        with pytest.raises(ValidationError):
            ReserveStockHandler(uow_factory).handle(variant_id, 0)

    def test_inactive_variant(self, uow_factory):
        variant_id = seed_variant(uow_factory, active=False)
        with pytest.raises(ValidationError, match="not available"):
            ReserveStockHandler(uow_factory).handle(variant_id, 1)


def test_lapsed_holds_are_reclaimed_before_reserving(uow_factory):
    clock = FakeClock()
    variant_id = seed_variant(uow_factory, stock_total=2)
    handler = ReserveStockHandler(uow_factory, ttl=timedelta(seconds=1), clock=clock)
    handler.handle(variant_id, 2)

    clock.advance(seconds=2)
    dto = handler.handle(variant_id, 2)

    assert dto.status == "active"
    assert load_variant(uow_factory, variant_id).stock_reserved == 2


def test_parallel_holds_never_oversell(uow_factory):
    stock, attempts = 3, 12
    variant_id = seed_variant(uow_factory, stock_total=stock)
    handler = ReserveStockHandler(uow_factory)
    barrier = threading.Barrier(attempts)
    successes, failures = [], []

    def attempt():
        barrier.wait()
        try:
            successes.append(handler.handle(variant_id, 1))
        except OutOfStockError as exc:
            failures.append(exc)

    threads = [threading.Thread(target=attempt) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert len(successes) == stock
    assert len(failures) == attempts - stock
    assert load_variant(uow_factory, variant_id).stock_reserved == stock
