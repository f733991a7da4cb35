"""Application service: Receive Payment Notification use case.

Entry point for gateway webhooks. The gateway always gets an
acknowledgement, whatever happens inside: an error answer would only
make it redeliver the same notice again and again. Internal failures
are logged; the order stays where it was and the next delivery (or an
operator) picks it up.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Any, Mapping

from stockhold.application.dto import Acknowledgement
from stockhold.application.finalize_payment import (
    FinalizePaymentHandler,
    ReconciliationResult,
)
from stockhold.application.mapping import order_to_dto
from stockhold.application.notifier import Notifier
from stockhold.application.payment_gateway import PaymentGateway
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class ReceivePaymentNotificationHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        gateway: PaymentGateway,
        finalizer: FinalizePaymentHandler,
        notifier: Notifier,
        executor: Executor | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway
        self._finalizer = finalizer
        self._notifier = notifier
        self._executor = executor

    def handle(self, payload: Mapping[str, Any]) -> Acknowledgement:
        """Acknowledge a gateway notification.

        With an executor the reconciliation runs in the background and the
        acknowledgement returns immediately.
        """
        if self._executor is not None:
            self._executor.submit(self.process, payload)
            return Acknowledgement(ok=True, detail={"result": "queued"})

        result = self.process(payload)
        return Acknowledgement(
            ok=True, detail={"result": result.value if result else "error"}
        )

    def process(self, payload: Mapping[str, Any]) -> ReconciliationResult | None:
        try:
            notification = self._gateway.interpret_notification(payload)
            logger.info(
                "Payment notice from %s: reference=%s status=%s outcome=%s",
                self._gateway.name,
                notification.reference,
                notification.raw_status,
                notification.outcome.value,
                extra={"reference": notification.reference},
            )
            result = self._finalizer.handle(
                notification.reference,
                notification.outcome,
                notification.correlation_id,
            )
        except Exception:
            logger.exception("Payment notification could not be reconciled")
            return None

        if result == ReconciliationResult.PAID:
            self._notify_paid(notification.reference)  # type: ignore[arg-type]
        return result

    def _notify_paid(self, reference: str) -> None:
        try:
            with self._uow_factory() as uow:
                order = uow.orders.get_by_reference(reference)
            if order is not None:
                self._notifier.order_paid(order_to_dto(order))
        except Exception:
            logger.exception(
                "Paid-order notification failed for reference %s", reference,
                extra={"reference": reference},
            )
