"""Tests for the background expiry sweeper."""

import threading
from datetime import timedelta

from stockhold.application.expire_reservations import ExpireReservationsHandler
from stockhold.application.reserve_stock import ReserveStockHandler
from stockhold.infrastructure.sweeper import ExpirySweeper
from tests.fakes import FakeClock, load_variant, memory_uow_factory, seed_variant


class ExplodingHandler:

    def __init__(self):
        self.calls = 0

    def handle(self):
        self.calls += 1
        raise RuntimeError("database went away")


def test_run_once_expires_lapsed_holds():
    clock = FakeClock()
    uow_factory = memory_uow_factory()
    variant_id = seed_variant(uow_factory)
    ReserveStockHandler(uow_factory, ttl=timedelta(seconds=1), clock=clock).handle(variant_id, 2)
    sweeper = ExpirySweeper(ExpireReservationsHandler(uow_factory, clock), interval_seconds=1)

    assert sweeper.run_once() == 0
    clock.advance(seconds=1)
    assert sweeper.run_once() == 1
    assert load_variant(uow_factory, variant_id).stock_reserved == 0


def test_failed_cycle_is_logged_and_survived(caplog):
    sweeper = ExpirySweeper(ExplodingHandler(), interval_seconds=1)
    assert sweeper.run_once() == 0
    assert "Expiry sweep failed" in caplog.text


def test_background_loop_stops_on_event():
    handler = ExplodingHandler()
    thread, stop = ExpirySweeper(handler, interval_seconds=0.01).start()
    while handler.calls < 2:
        threading.Event().wait(0.01)
    stop.set()
    thread.join(timeout=5)
    assert not thread.is_alive()
