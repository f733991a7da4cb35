"""Test doubles and small builders.

Persistence is not faked: tests run against the in-process store, which
honours the same locking and commit contract as the database.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from stockhold.application.create_order import CreateOrderHandler
from stockhold.application.create_payment import CreatePaymentHandler
from stockhold.application.dto import OrderDTO
from stockhold.application.finalize_payment import FinalizePaymentHandler
from stockhold.application.notifier import Notifier
from stockhold.application.payment_gateway import (
    PaymentGateway,
    PaymentIntent,
    PaymentNotification,
    PaymentOutcome,
    PaymentRequest,
)
from stockhold.application.reserve_stock import ReserveStockHandler
from stockhold.domain.model.value_objects import Money
from stockhold.domain.model.variant import ProductVariant
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory
from stockhold.infrastructure.persistence.memory import InMemoryStore, InMemoryUnitOfWork

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakePaymentGateway(PaymentGateway):
    """Records intents; notifications are ``{"reference", "outcome", "id"}``."""

    name = "fake"

    def __init__(self, request_id: str | None = "REQ-1") -> None:
        self.requests: list[PaymentRequest] = []
        self._request_id = request_id

    def create_intent(self, request: PaymentRequest) -> PaymentIntent:
        self.requests.append(request)
        return PaymentIntent(
            provider=self.name,
            redirect_url=f"https://pay.test/{request.reference}",
            request_id=self._request_id,
        )

    def interpret_notification(self, payload: Mapping[str, Any]) -> PaymentNotification:
        return PaymentNotification(
            reference=payload.get("reference"),
            outcome=PaymentOutcome(payload.get("outcome", "unknown")),
            correlation_id=payload.get("id"),
            raw_status=payload.get("outcome"),
            payload=dict(payload),
        )


class RecordingNotifier(Notifier):

    def __init__(self) -> None:
        self.paid: list[OrderDTO] = []

    def order_paid(self, order: OrderDTO) -> None:
        self.paid.append(order)


class FailingNotifier(Notifier):

    def order_paid(self, order: OrderDTO) -> None:
        raise ConnectionError("SMTP server unreachable")


def memory_uow_factory(store: InMemoryStore | None = None) -> UnitOfWorkFactory:
    store = store or InMemoryStore()
    return lambda: InMemoryUnitOfWork(store, lock_timeout=5.0)


def seed_variant(
    uow_factory: UnitOfWorkFactory,
    stock_total: int = 5,
    price: int = 15990,
    sku: str = "TEE-BLK-M",
    active: bool = True,
) -> int:
    variant = ProductVariant.create(
        sku=sku, price=Money(price), stock_total=stock_total, color="black", size="M"
    )
    variant.active = active
    with uow_factory() as uow:
        uow.variants.add(variant)
        uow.commit()
    return variant.id  # type: ignore[return-value]


def load_variant(uow_factory: UnitOfWorkFactory, variant_id: int) -> ProductVariant:
    with uow_factory() as uow:
        return uow.variants.get(variant_id)  # type: ignore[return-value]


BUYER = {
    "buyer_name": "Ana Pérez",
    "buyer_email": "ana@example.com",
    "buyer_phone": "+56911112222",
}


class Checkout:
    """Variant, reservation and pending order with a payment reference."""

    def __init__(self, stock=5, qty=2, uow_factory=None):
        self.clock = FakeClock()
        self.uow_factory = uow_factory or memory_uow_factory()
        self.variant_id = seed_variant(self.uow_factory, stock_total=stock)
        self.reserve = ReserveStockHandler(self.uow_factory, clock=self.clock)
        reservation = self.reserve.handle(self.variant_id, qty)
        self.reservation_id = reservation.id
        order = CreateOrderHandler(self.uow_factory, self.clock).handle(
            reservation.id, delivery_method="pickup", **BUYER
        )
        self.order_id = order.id
        intent = CreatePaymentHandler(
            self.uow_factory, FakePaymentGateway(), clock=self.clock
        ).handle(order.id)
        self.reference = intent.reference
        self.finalizer = FinalizePaymentHandler(self.uow_factory, self.clock)

    def finalize(self, outcome, correlation_id="REQ-1"):
        return self.finalizer.handle(self.reference, outcome, correlation_id)

    def variant(self):
        return load_variant(self.uow_factory, self.variant_id)

    def order(self):
        with self.uow_factory() as uow:
            return uow.orders.get_by_id(self.order_id)

    def reservation(self):
        with self.uow_factory() as uow:
            return uow.reservations.get(self.reservation_id)

