"""Application service: Finalize Payment use case (the payment reconciler).

Turns an at-least-once, possibly reordered stream of gateway outcomes
into exactly one terminal transition per order.

Two idempotency layers guard the stock counters:

1. Order level: an order that is already PAID is acknowledged without
   touching stock.
2. Reservation level: under the reservation row lock, a CONSUMED
   reservation means another delivery already took the stock, so the
   order is only marked PAID.

A success that arrives after the hold lapsed is never applied blindly:
the stock may have been released and sold again. The order is flagged
for an operator instead.
"""

from __future__ import annotations

import logging
from enum import Enum

from stockhold.application.clock import Clock, utc_now
from stockhold.application.payment_gateway import PaymentOutcome
from stockhold.domain.exceptions import InvalidStatusError
from stockhold.domain.model.order import Order, OrderStatus
from stockhold.domain.model.reservation import ReservationStatus, StockReservation
from stockhold.domain.repository.unit_of_work import UnitOfWork, UnitOfWorkFactory
from stockhold.domain.service.variant_ledger import VariantLedger

logger = logging.getLogger(__name__)


class ReconciliationResult(Enum):
    PAID = "paid"
    ALREADY_PAID = "already_paid"
    FAILED = "failed"
    IGNORED = "ignored"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    FLAGGED = "flagged"


class FinalizePaymentHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        reference: str | None,
        outcome: PaymentOutcome,
        correlation_id: str | None = None,
    ) -> ReconciliationResult:
        log_ctx = {"reference": reference}
        if not reference:
            logger.warning("Payment notification without reference discarded")
            return ReconciliationResult.NOT_FOUND

        with self._uow_factory() as uow:
            order = uow.orders.get_by_reference(reference)

        if order is None:
            logger.warning(
                "No order for payment reference %s; notification discarded",
                reference, extra=log_ctx,
            )
            return ReconciliationResult.NOT_FOUND

        log_ctx["order_id"] = order.id
        if outcome == PaymentOutcome.UNKNOWN:
            logger.info(
                "Ambiguous payment outcome for order #%s ignored", order.id, extra=log_ctx
            )
            return ReconciliationResult.IGNORED

        if order.status == OrderStatus.PAID:
            if outcome == PaymentOutcome.FAILURE:
                logger.warning(
                    "Failure notice for already paid order #%s ignored",
                    order.id, extra=log_ctx,
                )
                return ReconciliationResult.REJECTED
            logger.info("Duplicate payment notice for order #%s", order.id, extra=log_ctx)
            return ReconciliationResult.ALREADY_PAID

        if order.status != OrderStatus.PENDING_PAYMENT:
            logger.warning(
                "Order #%s is %s; payment %s not applied",
                order.id, order.status.value, outcome.value, extra=log_ctx,
            )
            return ReconciliationResult.REJECTED

        try:
            with self._uow_factory() as uow:
                if outcome == PaymentOutcome.SUCCESS:
                    result = self._apply_success(uow, order.reservation_id, correlation_id)
                else:
                    result = self._apply_failure(uow, order.reservation_id, correlation_id)
                uow.commit()
        except InvalidStatusError as exc:
            # Lost a race with another delivery between the read and the locks.
            logger.warning(
                "Order #%s changed while finalizing: %s", order.id, exc, extra=log_ctx
            )
            return ReconciliationResult.REJECTED

        if result == ReconciliationResult.FLAGGED:
            logger.error(
                "Payment for order #%s needs manual review (reservation #%s)",
                order.id, order.reservation_id, extra=log_ctx,
            )
        else:
            logger.info(
                "Order #%s reconciled: %s", order.id, result.value, extra=log_ctx
            )
        return result

    # --- Transitions (run inside one unit of work) ---------------------------

    def _apply_success(
        self, uow: UnitOfWork, reservation_id: int, correlation_id: str | None
    ) -> ReconciliationResult:
        now = self._clock()
        reservation = uow.reservations.get_for_update(reservation_id)

        if reservation is not None and reservation.status == ReservationStatus.CONSUMED:
            locked = uow.orders.get_by_reservation_for_update(reservation_id)
            if locked is not None and locked.status == OrderStatus.PAID:
                return ReconciliationResult.ALREADY_PAID
            order = _require_pending(locked, reservation_id)
            order.mark_paid(now, correlation_id)
            uow.orders.save(order)
            return ReconciliationResult.PAID

        if reservation is None or not reservation.is_live_at(now):
            order = self._lock_pending_order(uow, reservation_id)
            order.record_payment_reference(correlation_id)
            order.flag_for_review(_late_payment_reason(reservation), now)
            uow.orders.save(order)
            return ReconciliationResult.FLAGGED

        VariantLedger(uow).consume(reservation.variant_id, reservation.quantity)
        reservation.consume()
        uow.reservations.save(reservation)

        order = self._lock_pending_order(uow, reservation_id)
        order.mark_paid(now, correlation_id)
        uow.orders.save(order)
        return ReconciliationResult.PAID

    def _apply_failure(
        self, uow: UnitOfWork, reservation_id: int, correlation_id: str | None
    ) -> ReconciliationResult:
        now = self._clock()
        reservation = uow.reservations.get_for_update(reservation_id)

        if reservation is not None and reservation.status == ReservationStatus.CONSUMED:
            order = self._lock_pending_order(uow, reservation_id)
            order.flag_for_review(
                f"payment failure reported but reservation #{reservation_id} "
                f"was already consumed",
                now,
            )
            uow.orders.save(order)
            return ReconciliationResult.FLAGGED

        if reservation is not None and reservation.is_active:
            VariantLedger(uow).release_hold(reservation.variant_id, reservation.quantity)
            reservation.expire()
            uow.reservations.save(reservation)

        order = self._lock_pending_order(uow, reservation_id)
        order.mark_failed(now, correlation_id)
        uow.orders.save(order)
        return ReconciliationResult.FAILED

    @staticmethod
    def _lock_pending_order(uow: UnitOfWork, reservation_id: int) -> Order:
        return _require_pending(
            uow.orders.get_by_reservation_for_update(reservation_id), reservation_id
        )


def _require_pending(order: Order | None, reservation_id: int) -> Order:
    if order is None or order.status != OrderStatus.PENDING_PAYMENT:
        raise InvalidStatusError(
            f"Order for reservation #{reservation_id}",
            OrderStatus.PENDING_PAYMENT.value,
            order.status.value if order else "missing",
        )
    return order


def _late_payment_reason(reservation: StockReservation | None) -> str:
    if reservation is None:
        return "payment succeeded but the reservation no longer exists"
    return (
        f"payment succeeded after reservation #{reservation.id} lapsed "
        f"(status={reservation.status.value}, "
        f"expires_at={reservation.expires_at.isoformat()})"
    )
