"""Domain -> DTO mapping shared by the order use cases."""

from __future__ import annotations

from stockhold.application.dto import OrderDTO, OrderLineItemDTO, ReservationDTO
from stockhold.domain.model.order import Order
from stockhold.domain.model.reservation import StockReservation


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        reservation_id=order.reservation_id,
        status=order.status.value,
        buyer_name=order.buyer.name,
        buyer_email=order.buyer.email,
        buyer_phone=order.buyer.phone,
        delivery_method=order.delivery.method.value,
        delivery_address=order.delivery.address,
        items=[
            OrderLineItemDTO(
                variant_id=item.variant_id,
                sku=item.sku,
                quantity=item.quantity.value,
                unit_price=item.unit_price.amount,
                line_total=item.line_total.amount,
                color=item.color,
                size=item.size,
                engraving_code=item.engraving_code,
                engraving_name=item.engraving_name,
            )
            for item in order.items
        ],
        total=order.total.amount,
        currency=order.total.currency,
        reference=order.reference,
        payment_reference=order.payment_reference,
        paid_at=order.paid_at.isoformat() if order.paid_at else None,
        review_reason=order.review_reason,
        notes=order.notes,
        created_at=order.created_at.isoformat() if order.created_at else None,
    )


def reservation_to_dto(reservation: StockReservation) -> ReservationDTO:
    return ReservationDTO(
        id=reservation.id,  # type: ignore[arg-type]
        variant_id=reservation.variant_id,
        quantity=reservation.quantity,
        status=reservation.status.value,
        expires_at=reservation.expires_at.isoformat(),
    )
