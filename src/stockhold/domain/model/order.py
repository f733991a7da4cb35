"""Order aggregate: an intent to buy layered on a live reservation.

The Order owns a frozen snapshot of what is being bought and at what
price. All business invariants on buyer, delivery and status are
enforced here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from stockhold.domain.exceptions import InvalidStatusError, ValidationError
from stockhold.domain.model.value_objects import BuyerInfo, DeliveryInfo, Money, Quantity


class OrderStatus(Enum):
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


MAX_REFERENCE_LENGTH = 32


@dataclass(frozen=True)
class OrderLineItem:
    """Captures the variant and its price at order-creation time.

    Later price changes on the variant never reach an existing order.
    """

    variant_id: int
    sku: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time
    color: str | None = None
    size: str | None = None
    engraving_code: str | None = None
    engraving_name: str | None = None

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass
class Order:
    """Aggregate root for purchase orders.

    Use ``Order.create()`` for new orders. The ``__init__`` is kept simple
    so repositories can reconstitute persisted orders without
    re-validating.
    """

    id: int | None
    reservation_id: int
    buyer: BuyerInfo
    delivery: DeliveryInfo
    items: list[OrderLineItem]
    status: OrderStatus = OrderStatus.PENDING_PAYMENT
    notes: str | None = None
    reference: str | None = None
    payment_reference: str | None = None
    paid_at: datetime | None = None
    review_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        reservation_id: int,
        buyer: BuyerInfo,
        delivery: DeliveryInfo,
        items: list[OrderLineItem],
        now: datetime,
        notes: str | None = None,
    ) -> Order:
        _validate_items(items)
        return Order(
            id=None,
            reservation_id=reservation_id,
            buyer=buyer,
            delivery=delivery,
            items=list(items),
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    # --- Mutations ------------------------------------------------------------

    def update_details(
        self,
        buyer: BuyerInfo,
        delivery: DeliveryInfo,
        items: list[OrderLineItem],
        now: datetime,
        notes: str | None = None,
    ) -> None:
        """Overwrite buyer, delivery and item snapshot on a retried request."""
        self._require_status(OrderStatus.PENDING_PAYMENT)
        _validate_items(items)
        self.buyer = buyer
        self.delivery = delivery
        self.items = list(items)
        self.notes = notes
        self.updated_at = now

    def assign_reference(self, reference: str) -> None:
        """Set the external order reference. It never changes afterwards."""
        if self.reference is not None:
            return
        if not reference or len(reference) > MAX_REFERENCE_LENGTH:
            raise ValidationError(
                f"Order reference must be 1-{MAX_REFERENCE_LENGTH} characters"
            )
        self.reference = reference

    def record_payment_reference(self, correlation_id: str | None) -> None:
        if correlation_id and self.payment_reference is None:
            self.payment_reference = correlation_id

    # --- State transitions ----------------------------------------------------

    def mark_paid(self, now: datetime, correlation_id: str | None = None) -> None:
        """Transition PENDING_PAYMENT -> PAID.

        Stock consumption must happen in the same transaction, before this
        is called (coordinated by the payment reconciler).
        """
        self._require_status(OrderStatus.PENDING_PAYMENT)
        self.status = OrderStatus.PAID
        self.paid_at = now
        self.updated_at = now
        self.record_payment_reference(correlation_id)

    def mark_failed(self, now: datetime, correlation_id: str | None = None) -> None:
        self._require_status(OrderStatus.PENDING_PAYMENT)
        self.status = OrderStatus.FAILED
        self.updated_at = now
        self.record_payment_reference(correlation_id)

    def flag_for_review(self, reason: str, now: datetime) -> None:
        """Mark the order as needing an operator.

        The status is left alone: the anomaly is recorded, not resolved.
        """
        self.review_reason = reason
        self.updated_at = now

    # --- Computed properties --------------------------------------------------

    @property
    def total(self) -> Money:
        if not self.items:
            return Money.zero()
        result = Money.zero(self.items[0].unit_price.currency)
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def needs_review(self) -> bool:
        return self.review_reason is not None

    # --- Internal helpers -----------------------------------------------------

    def _require_status(self, expected: OrderStatus) -> None:
        if self.status != expected:
            raise InvalidStatusError(
                f"Order #{self.id}", expected.value, self.status.value
            )


def _validate_items(items: list[OrderLineItem]) -> None:
    if not items:
        raise ValidationError("Order must contain at least one item")
