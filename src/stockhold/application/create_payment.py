"""Application service: Create Payment use case.

Hands a pending order to the configured payment collaborator and
returns the checkout URL for the buyer. The order's external reference
is assigned once, in its own transaction, before the gateway is
called; retries reuse it so late notifications still find the order.
"""

from __future__ import annotations

import logging

from stockhold.application.clock import Clock, utc_now
from stockhold.application.dto import PaymentIntentDTO
from stockhold.application.payment_gateway import (
    PaymentGateway,
    PaymentLine,
    PaymentRequest,
)
from stockhold.domain.exceptions import (
    EntityNotFoundError,
    InvalidStatusError,
    ReservationInactiveError,
    ValidationError,
)
from stockhold.domain.model.order import Order, OrderStatus
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "ORD"


class CreatePaymentHandler:

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        gateway: PaymentGateway,
        return_url: str | None = None,
        cancel_url: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._uow_factory = uow_factory
        self._gateway = gateway
        self._return_url = return_url
        self._cancel_url = cancel_url or return_url
        self._clock = clock

    def handle(
        self,
        order_id: int,
        client_ip: str | None = None,
        user_agent: str | None = None,
    ) -> PaymentIntentDTO:
        order = self._prepare(order_id)

        intent = self._gateway.create_intent(
            self._build_request(order, client_ip, user_agent)
        )

        if intent.request_id:
            with self._uow_factory() as uow:
                locked = uow.orders.get_by_reservation_for_update(order.reservation_id)
                if locked is not None:
                    locked.record_payment_reference(intent.request_id)
                    uow.orders.save(locked)
                    uow.commit()

        logger.info(
            "Payment intent for order #%s via %s (reference=%s)",
            order.id, intent.provider, order.reference,
            extra={"order_id": order.id, "reference": order.reference},
        )
        return PaymentIntentDTO(
            order_id=order.id,  # type: ignore[arg-type]
            reference=order.reference,  # type: ignore[arg-type]
            provider=intent.provider,
            redirect_url=intent.redirect_url,
            request_id=intent.request_id,
        )

    def _prepare(self, order_id: int) -> Order:
        """Check the order is payable and give it its external reference."""
        with self._uow_factory() as uow:
            current = uow.orders.get_by_id(order_id)
            if current is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            reservation = uow.reservations.get_for_update(current.reservation_id)
            order = uow.orders.get_by_reservation_for_update(current.reservation_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            if order.status != OrderStatus.PENDING_PAYMENT:
                raise InvalidStatusError(
                    f"Order #{order_id}", OrderStatus.PENDING_PAYMENT.value, order.status.value
                )
            if reservation is None or not reservation.is_live_at(self._clock()):
                raise ReservationInactiveError(
                    order.reservation_id,
                    reservation.status.value if reservation else "missing",
                    reservation.expires_at.isoformat() if reservation else "",
                )
            if order.total.amount <= 0:
                raise ValidationError(f"Order #{order_id} has no payable total")

            order.assign_reference(f"{REFERENCE_PREFIX}-{order.id}")
            uow.orders.save(order)
            uow.commit()
        return order

    def _build_request(
        self, order: Order, client_ip: str | None, user_agent: str | None
    ) -> PaymentRequest:
        return PaymentRequest(
            reference=order.reference,  # type: ignore[arg-type]
            amount=order.total.amount,
            currency=order.total.currency,
            description=f"Order {order.reference}",
            buyer_name=order.buyer.name,
            buyer_email=order.buyer.email,
            buyer_phone=order.buyer.phone,
            lines=[
                PaymentLine(
                    sku=item.sku,
                    name=" ".join(
                        part for part in (item.sku, item.color, item.size) if part
                    ),
                    quantity=item.quantity.value,
                    unit_price=item.unit_price.amount,
                )
                for item in order.items
            ],
            return_url=self._return_url,
            cancel_url=self._cancel_url,
            delivery_address=order.delivery.address,
            client_ip=client_ip,
            user_agent=user_agent,
        )
