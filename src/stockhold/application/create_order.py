"""Application service: Create Order use case.

Binds buyer and delivery details to a live reservation. The order is
keyed by its reservation: a retried request updates the same order
instead of creating a second one. Neither the stock counters nor the
reservation status are touched here.
"""

from __future__ import annotations

import logging

from stockhold.application.clock import Clock, utc_now
from stockhold.application.dto import OrderDTO, OrderItemSpec
from stockhold.application.mapping import order_to_dto
from stockhold.domain.exceptions import (
    EntityNotFoundError,
    ReservationInactiveError,
    ValidationError,
)
from stockhold.domain.model.order import Order, OrderLineItem
from stockhold.domain.model.reservation import StockReservation
from stockhold.domain.model.value_objects import BuyerInfo, DeliveryInfo, Quantity
from stockhold.domain.model.variant import ProductVariant
from stockhold.domain.repository.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


class CreateOrderHandler:

    def __init__(self, uow_factory: UnitOfWorkFactory, clock: Clock = utc_now) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    def handle(
        self,
        reservation_id: int,
        buyer_name: str | None,
        buyer_email: str | None,
        buyer_phone: str | None,
        delivery_method: str | None,
        delivery_address: str | None = None,
        item_specs: list[OrderItemSpec] | None = None,
        notes: str | None = None,
    ) -> OrderDTO:
        """Create the order for a reservation, or overwrite its details.

        Steps:
        1. Validate buyer and delivery input (no I/O).
        2. Lock the reservation; it must be ACTIVE and unexpired.
        3. Snapshot the variant's *current* price into the item line.
        4. Upsert the order keyed by ``reservation_id``.
        """
        buyer = BuyerInfo.of(buyer_name, buyer_email, buyer_phone)
        delivery = DeliveryInfo.of(delivery_method, delivery_address)
        notes = (notes or "").strip() or None

        with self._uow_factory() as uow:
            now = self._clock()

            reservation = uow.reservations.get_for_update(reservation_id)
            if reservation is None:
                raise EntityNotFoundError(f"Reservation #{reservation_id} not found")
            if not reservation.is_live_at(now):
                raise ReservationInactiveError(
                    reservation_id,
                    reservation.status.value,
                    reservation.expires_at.isoformat(),
                )

            variant = uow.variants.get(reservation.variant_id)
            if variant is None:
                raise EntityNotFoundError(
                    f"Variant #{reservation.variant_id} not found"
                )
            _check_item_specs(item_specs, reservation)
            items = [_snapshot_line(variant, reservation)]

            order = uow.orders.get_by_reservation_for_update(reservation_id)
            if order is None:
                order = Order.create(reservation_id, buyer, delivery, items, now, notes)
                uow.orders.add(order)
                created = True
            else:
                order.update_details(buyer, delivery, items, now, notes)
                uow.orders.save(order)
                created = False

            uow.commit()

        logger.info(
            "Order #%s %s for reservation #%s (total=%s)",
            order.id, "created" if created else "updated", reservation_id, order.total,
            extra={"order_id": order.id, "reservation_id": reservation_id},
        )
        return order_to_dto(order)


def _snapshot_line(variant: ProductVariant, reservation: StockReservation) -> OrderLineItem:
    return OrderLineItem(
        variant_id=variant.id,  # type: ignore[arg-type]
        sku=variant.sku,
        quantity=Quantity(reservation.quantity),
        unit_price=variant.price,  # <-- price snapshot
        color=variant.color,
        size=variant.size,
        engraving_code=variant.engraving_code,
        engraving_name=variant.engraving_name,
    )


def _check_item_specs(
    item_specs: list[OrderItemSpec] | None, reservation: StockReservation
) -> None:
    """Client-sent item lines must describe exactly what is held."""
    if item_specs is None:
        return
    if not item_specs:
        raise ValidationError("Order must contain at least one item")
    for spec in item_specs:
        if spec.variant_id != reservation.variant_id:
            raise ValidationError(
                f"Variant #{spec.variant_id} is not held by "
                f"reservation #{reservation.id}"
            )
    requested = sum(spec.quantity for spec in item_specs)
    if requested != reservation.quantity:
        raise ValidationError(
            f"Items request {requested} units but reservation "
            f"#{reservation.id} holds {reservation.quantity}"
        )
